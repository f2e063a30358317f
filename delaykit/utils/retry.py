"""Повтор операций с фиксированной или экспоненциальной паузой.

Пример использования:
    result = await retry(fetch_quote, retries=3, delay=500, backoff="exponential")

    @async_retry(retries=2, delay=1000)
    async def send_report(report_id: str) -> None:
        ...

Если все попытки неудачны, выбрасывается RetryExhaustedError с числом
попыток, последней паузой и последней ошибкой в поле cause.
"""

import asyncio
import functools
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from delaykit.config import get_logger
from delaykit.config.settings import DEFAULT_BACKOFF, DEFAULT_RETRIES, DEFAULT_RETRY_DELAY_MS
from delaykit.models import Backoff, RetryExhaustedError, RetryPolicy
from delaykit.services.delay import wait

logger = get_logger("retry")

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _operation_name(operation: Callable[..., Any]) -> str:
    if isinstance(operation, functools.partial):
        operation = operation.func
    return getattr(operation, "__qualname__", repr(operation))


async def run_with_retry(
    operation: Callable[[], Any],
    policy: RetryPolicy,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Any:
    """Вызывает operation, пока она не завершится успешно или не кончатся попытки.

    Всего делается не больше policy.retries + 1 попыток. После каждой
    неудачной попытки, кроме последней, выдерживается пауза; при
    экспоненциальной стратегии пауза удваивается до ожидания.

    Args:
        operation: Функция без аргументов. Если она возвращает awaitable,
            результат дожидается.
        policy: Число повторов, начальная пауза и стратегия её роста.
        exceptions: Типы исключений, после которых делается повтор.
            Остальные выбрасываются сразу.

    Returns:
        Результат первой успешной попытки.

    Raises:
        RetryExhaustedError: Если все попытки завершились ошибкой.
    """
    name = _operation_name(operation)
    attempt = 0
    current_delay = policy.delay

    while True:
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
            return result
        except asyncio.CancelledError:
            raise
        except exceptions as e:
            if attempt >= policy.retries:
                logger.error(
                    "retry_exhausted",
                    function=name,
                    attempts=attempt + 1,
                    final_delay=current_delay,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise RetryExhaustedError(e, attempt + 1, current_delay) from e

            if policy.backoff is Backoff.EXPONENTIAL:
                current_delay *= 2

            logger.warning(
                "retry_attempt",
                function=name,
                attempt=attempt + 1,
                retries=policy.retries,
                next_delay=current_delay,
                error=str(e),
                error_type=type(e).__name__,
            )

            await wait(current_delay)
            attempt += 1


async def retry(
    operation: Callable[[], Any],
    *,
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_RETRY_DELAY_MS,
    backoff: Backoff | str = DEFAULT_BACKOFF,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Any:
    """Повторяет operation по заданным параметрам.

    Args:
        operation: Функция без аргументов (синхронная или асинхронная).
        retries: Число повторов после первой попытки.
        delay: Начальная пауза в миллисекундах.
        backoff: 'fixed' или 'exponential'.
        exceptions: Типы исключений, после которых делается повтор.

    Raises:
        RetryExhaustedError: Если все попытки завершились ошибкой.
        ValueError: Если параметры повторов некорректны.
    """
    policy = RetryPolicy(retries=retries, delay=delay, backoff=Backoff(backoff))
    return await run_with_retry(operation, policy, exceptions)


def async_retry(
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_RETRY_DELAY_MS,
    backoff: Backoff | str = DEFAULT_BACKOFF,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[F], F]:
    """Декоратор retry для асинхронных функций.

    Параметры те же, что у retry. Некорректные значения обнаруживаются
    сразу при декорировании.
    """
    policy = RetryPolicy(retries=retries, delay=delay, backoff=Backoff(backoff))

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await run_with_retry(
                functools.partial(func, *args, **kwargs), policy, exceptions
            )

        return wrapper  # type: ignore[return-value]

    return decorator
