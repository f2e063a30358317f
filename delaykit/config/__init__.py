"""Пакет конфигурации и логирования.

    from delaykit.config import load_settings, get_logger, setup_logging
"""

from delaykit.config.logger import get_logger, get_trace_id, set_trace_id, setup_logging
from delaykit.config.settings import (
    ConfigValidationError,
    LogSettings,
    RetrySettings,
    Settings,
    load_settings,
)

__all__ = [
    "ConfigValidationError",
    "LogSettings",
    "RetrySettings",
    "Settings",
    "get_logger",
    "get_trace_id",
    "load_settings",
    "set_trace_id",
    "setup_logging",
]
