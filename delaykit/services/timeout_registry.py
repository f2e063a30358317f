"""Реестр отменяемых ожиданий с идентификаторами.

Каждое ожидание получает уникальный id и future. Пока срок не истёк,
ожидание можно отменить (future отклоняется TimeoutCancelledError) или
перезапустить с новой длительностью под тем же id. При завершении
процесса все оставшиеся ожидания снимаются через teardown_all.

Пример использования:
    registry = TimeoutRegistry()
    install_exit_hook(registry)

    handle = registry.create(500)
    registry.cancel(handle.id, "user left")
    await handle.future  # TimeoutCancelledError("user left")

Таймеры планируются на цикле событий, поэтому create и update нужно
вызывать из потока этого цикла. cancel и teardown_all можно вызывать
из любого потока: запись снимается сразу, а future отклоняется и
таймер отменяется в потоке цикла через call_soon_threadsafe.
Отображение id -> запись защищено одной блокировкой на реестр, она
не удерживается во время ожидания.
"""

import asyncio
import atexit
import functools
import threading
import uuid

from delaykit.config import get_logger
from delaykit.models import DelayHandle, PendingDelay, TimeoutCancelledError

logger = get_logger("timeout_registry")

EXIT_REASON = "Process exiting"
NOT_FOUND_REASON = "Timeout not found"


class TimeoutRegistry:
    """Владелец всех незавершённых ожиданий процесса.

    Attributes:
        _entries: Активные записи по идентификатору.
        _lock: Сериализует доступ к _entries.
        _loop: Явно переданный цикл событий или None (берётся текущий).
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._entries: dict[str, PendingDelay] = {}
        self._lock = threading.Lock()
        self._loop = loop
        self._exit_hook_installed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, timeout_id: object) -> bool:
        with self._lock:
            return timeout_id in self._entries

    def active_ids(self) -> list[str]:
        """Возвращает идентификаторы активных ожиданий."""
        with self._lock:
            return list(self._entries)

    def create(self, ms: float) -> DelayHandle:
        """Запускает новое отменяемое ожидание.

        По истечении ms миллисекунд future разрешается строкой
        'Completed timeout ID: <id>', а запись удаляется из реестра.

        Args:
            ms: Длительность в миллисекундах.

        Returns:
            DelayHandle с идентификатором и future.

        Raises:
            RuntimeError: Если цикл не передан и нет запущенного цикла.
        """
        loop = self._get_loop()
        timeout_id = uuid.uuid4().hex
        entry = self._schedule(
            loop, timeout_id, ms, f"Completed timeout ID: {timeout_id}"
        )
        with self._lock:
            self._entries[timeout_id] = entry

        logger.debug("timeout_created", timeout_id=timeout_id, ms=ms)
        return DelayHandle(timeout_id, entry.future)

    def cancel(self, timeout_id: str, reason: str | None = None) -> bool:
        """Отменяет ожидание и отклоняет его future.

        Args:
            timeout_id: Идентификатор ожидания.
            reason: Причина отмены. По умолчанию 'Timeout <id> cancelled'.

        Returns:
            True, если ожидание было найдено и отменено, иначе False.
        """
        with self._lock:
            entry = self._entries.pop(timeout_id, None)

        if entry is None:
            logger.debug("timeout_not_found", timeout_id=timeout_id, action="cancel")
            return False

        error = TimeoutCancelledError(timeout_id, reason)
        _call_in_loop(entry.future.get_loop(), _reject, entry, error)

        logger.info("timeout_cancelled", timeout_id=timeout_id, reason=error.reason)
        return True

    def update(self, timeout_id: str, ms: float) -> "asyncio.Future[str]":
        """Перезапускает ожидание с новой длительностью под тем же id.

        Старая future остаётся неразрешённой: её таймер снят, и ни этот
        метод, ни реестр её больше не трогают.

        Args:
            timeout_id: Идентификатор живого ожидания.
            ms: Новая длительность в миллисекундах.

        Returns:
            Новая future, которая разрешится строкой
            'Updated timeout ID: <id>'.

        Raises:
            TimeoutCancelledError: Если ожидание с таким id не найдено.
        """
        with self._lock:
            old = self._entries.get(timeout_id)
            if old is None:
                raise TimeoutCancelledError(timeout_id, NOT_FOUND_REASON)
            loop = self._get_loop()
            old.retire()
            entry = self._schedule(
                loop, timeout_id, ms, f"Updated timeout ID: {timeout_id}"
            )
            self._entries[timeout_id] = entry

        logger.debug("timeout_updated", timeout_id=timeout_id, ms=ms)
        return entry.future

    def teardown_all(self, reason: str = EXIT_REASON) -> int:
        """Снимает все оставшиеся ожидания.

        Каждая future отклоняется TimeoutCancelledError с причиной reason,
        таймер отменяется. Ошибка при снятии одной записи логируется и
        не мешает снять остальные.

        Returns:
            Количество снятых записей.
        """
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()

        for entry in entries:
            try:
                loop = entry.future.get_loop()
                # После asyncio.run цикл уже закрыт, отклонять future некому.
                if loop.is_closed():
                    entry.retire()
                    continue
                _call_in_loop(
                    loop, _reject, entry, TimeoutCancelledError(entry.id, reason)
                )
            except Exception as e:
                logger.error(
                    "timeout_teardown_failed",
                    exc_info=True,
                    timeout_id=entry.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        if entries:
            logger.info("timeouts_torn_down", count=len(entries), reason=reason)
        return len(entries)

    def install_exit_hook(self) -> bool:
        """Регистрирует teardown_all в atexit (один раз на реестр).

        Returns:
            True, если хук установлен этим вызовом.
        """
        with self._lock:
            if self._exit_hook_installed:
                return False
            self._exit_hook_installed = True
        atexit.register(self.teardown_all)
        return True

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def _schedule(
        self,
        loop: asyncio.AbstractEventLoop,
        timeout_id: str,
        ms: float,
        message: str,
    ) -> PendingDelay:
        future: asyncio.Future[str] = loop.create_future()
        entry = PendingDelay(id=timeout_id, future=future)
        entry.timer = loop.call_later(
            max(ms, 0) / 1000, self._complete, entry, message
        )
        future.add_done_callback(functools.partial(self._on_future_done, entry))
        return entry

    def _complete(self, entry: PendingDelay, message: str) -> None:
        # Таймер уже сработал, отменять нечего.
        entry.timer = None
        # Запись уже сняли (cancel из другого потока), отклонение в пути.
        if not self._discard(entry):
            return
        if not entry.future.done():
            entry.future.set_result(message)
        logger.debug("timeout_completed", timeout_id=entry.id)

    def _on_future_done(self, entry: PendingDelay, future: "asyncio.Future[str]") -> None:
        # Future отменили снаружи (например, истёк asyncio.wait_for).
        if not future.cancelled():
            return
        entry.retire()
        if self._discard(entry):
            logger.debug("timeout_future_cancelled", timeout_id=entry.id)

    def _discard(self, entry: PendingDelay) -> bool:
        """Удаляет запись, только если под её id лежит именно она."""
        with self._lock:
            if self._entries.get(entry.id) is entry:
                del self._entries[entry.id]
                return True
        return False


def _reject(entry: PendingDelay, error: TimeoutCancelledError) -> None:
    entry.retire()
    if not entry.future.done():
        entry.future.set_exception(error)


def _on_loop_thread(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


def _call_in_loop(loop: asyncio.AbstractEventLoop, callback, *args) -> None:
    """Выполняет callback сразу или, если цикл крутится в другом потоке, в нём."""
    if loop.is_running() and not _on_loop_thread(loop):
        loop.call_soon_threadsafe(callback, *args)
    else:
        callback(*args)


def install_exit_hook(registry: TimeoutRegistry) -> bool:
    """Привязывает registry.teardown_all к завершению процесса."""
    return registry.install_exit_hook()


_default_registry: TimeoutRegistry | None = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> TimeoutRegistry:
    """Возвращает общий реестр процесса, создавая его при первом вызове.

    Для общего реестра сразу устанавливается хук завершения процесса.
    """
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = TimeoutRegistry()
            _default_registry.install_exit_hook()
        return _default_registry


def wait_with_id(ms: float) -> DelayHandle:
    """registry.create(ms) на общем реестре."""
    return get_default_registry().create(ms)


def cancel_wait(timeout_id: str, reason: str | None = None) -> bool:
    """registry.cancel(timeout_id, reason) на общем реестре."""
    return get_default_registry().cancel(timeout_id, reason)


def update_wait(timeout_id: str, ms: float) -> "asyncio.Future[str]":
    """registry.update(timeout_id, ms) на общем реестре."""
    return get_default_registry().update(timeout_id, ms)
