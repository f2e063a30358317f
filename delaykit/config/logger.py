"""Структурированное JSON-логирование библиотеки.

Все модули delaykit получают логгер через get_logger и пишут события
в формате snake_case с контекстными полями:

    logger = get_logger("timeout_registry")
    logger.info("timeout_created", timeout_id=handle.id, ms=500)

Без вызова setup_logging записи уходят в стандартную иерархию logging
и обрабатываются так, как настроило приложение-потребитель.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_trace_id_var: ContextVar[str] = ContextVar("delaykit_trace_id", default="")

# Общий префикс, чтобы логгеры библиотеки не смешивались с чужими.
LOGGER_NAMESPACE = "delaykit"


def set_trace_id(trace_id: str | None = None) -> str:
    """Устанавливает trace_id для текущего контекста выполнения.

    Args:
        trace_id: Идентификатор трассировки. Если None, генерируется
            короткий UUID4 (8 символов).

    Returns:
        Установленный trace_id.
    """
    if trace_id is None:
        trace_id = uuid.uuid4().hex[:8]
    _trace_id_var.set(trace_id)
    return trace_id


def get_trace_id() -> str:
    """Возвращает trace_id текущего контекста или пустую строку."""
    return _trace_id_var.get()


class JSONFormatter(logging.Formatter):
    """Сериализует LogRecord в одну JSON-строку.

    Поля: timestamp (UTC, ISO 8601), level, message, trace_id, logger
    и необязательный context с полями, переданными в ContextLogger.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "trace_id": get_trace_id(),
            "logger": record.name,
        }

        context: dict[str, Any] = dict(getattr(record, "context_data", {}))
        if record.exc_info and record.exc_info[1] is not None:
            context["exception_type"] = type(record.exc_info[1]).__name__
            context["exception_message"] = str(record.exc_info[1])
        if context:
            payload["context"] = context

        return json.dumps(payload, ensure_ascii=False, default=str)


class ContextLogger:
    """Обёртка над logging.Logger, принимающая контекст через kwargs.

    Контекстные поля кладутся в атрибут записи context_data, откуда их
    забирает JSONFormatter.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(
        self,
        level: int,
        message: str,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(
            level, message, exc_info=exc_info, extra={"context_data": kwargs}
        )

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)


_loggers: dict[str, ContextLogger] = {}


def setup_logging(level: str = "INFO", log_file_path: str = "") -> None:
    """Подключает JSON-вывод к логгерам библиотеки.

    Настраивается только логгер пространства имён delaykit, корневой
    логгер приложения не трогается. Повторный вызов заменяет хендлеры.

    Args:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file_path: Путь к файлу логов. Пустая строка: только консоль.
    """
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)


def get_logger(name: str) -> ContextLogger:
    """Возвращает именованный логгер внутри пространства delaykit.

    Повторный вызов с тем же именем возвращает тот же экземпляр.

    Args:
        name: Короткое имя компонента, например 'retry'.

    Returns:
        ContextLogger с именем 'delaykit.<name>'.
    """
    if name not in _loggers:
        _loggers[name] = ContextLogger(
            logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
        )
    return _loggers[name]
