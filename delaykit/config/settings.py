"""Конфигурация delaykit из переменных окружения.

Значения читаются из окружения процесса и из ближайшего .env файла
(поиск от текущего каталога вверх). Все ошибки валидации собираются
и выбрасываются одним ConfigValidationError, чтобы пользователь
увидел их сразу.

Переменные:
    DELAYKIT_RETRIES         число повторов после первой попытки (3)
    DELAYKIT_RETRY_DELAY_MS  пауза между попытками в мс (2000)
    DELAYKIT_BACKOFF         fixed | exponential (fixed)
    LOG_LEVEL                уровень логирования (INFO)
    LOG_FILE_PATH            файл логов, пусто: только консоль
"""

import math
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

DEFAULT_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 2000.0
DEFAULT_BACKOFF = "fixed"

BACKOFF_CHOICES = ("fixed", "exponential")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _load_env() -> None:
    """Подгружает .env, не перезаписывая окружение.

    Файл ищется от текущего каталога вверх, поэтому работает и для
    установленного пакета, и для запуска из исходников.
    """
    load_dotenv(dotenv_path=find_dotenv(usecwd=True))


class ConfigValidationError(Exception):
    """Некорректные значения переменных окружения."""


@dataclass(frozen=True)
class RetrySettings:
    """Параметры повторов по умолчанию.

    Attributes:
        retries: Сколько раз повторять после первой неудачной попытки.
        delay: Начальная пауза между попытками в миллисекундах.
        backoff: Стратегия роста паузы: 'fixed' или 'exponential'.
    """

    retries: int = DEFAULT_RETRIES
    delay: float = DEFAULT_RETRY_DELAY_MS
    backoff: str = DEFAULT_BACKOFF


@dataclass(frozen=True)
class LogSettings:
    """Настройки логирования.

    Attributes:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file_path: Путь к файлу логов (пустая строка: только консоль).
    """

    level: str = "INFO"
    file_path: str = ""


@dataclass(frozen=True)
class Settings:
    """Корневой объект конфигурации."""

    retry: RetrySettings
    log: LogSettings


def _parse_int(value: str, param_name: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть целым числом, "
            f"получено: '{value}'"
        )


def _parse_float(value: str, param_name: str) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        parsed = math.nan
    if not math.isfinite(parsed):
        raise ConfigValidationError(
            f"Параметр '{param_name}' должен быть конечным числом, "
            f"получено: '{value}'"
        )
    return parsed


def _validate_non_negative(value: float, param_name: str) -> float:
    if value < 0:
        raise ConfigValidationError(
            f"Параметр '{param_name}' не может быть отрицательным, "
            f"получено: {value}"
        )
    return value


def _validate_choice(value: str, param_name: str, choices: tuple[str, ...]) -> str:
    """Нормализует значение и проверяет, что оно входит в choices.

    Raises:
        ConfigValidationError: Если значение недопустимо.
    """
    normalized = value.strip()
    for choice in choices:
        if normalized.lower() == choice.lower():
            return choice
    raise ConfigValidationError(
        f"Значение '{value}' параметра '{param_name}' недопустимо. "
        f"Допустимые значения: {', '.join(choices)}"
    )


def load_settings() -> Settings:
    """Читает, валидирует и возвращает настройки delaykit.

    Returns:
        Иммутабельный объект Settings.

    Raises:
        ConfigValidationError: Если хотя бы одно значение некорректно.
    """
    _load_env()

    errors: list[str] = []

    # --- Повторы ---
    try:
        retries = int(
            _validate_non_negative(
                _parse_int(
                    os.getenv("DELAYKIT_RETRIES", str(DEFAULT_RETRIES)),
                    "DELAYKIT_RETRIES",
                ),
                "DELAYKIT_RETRIES",
            )
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        retries = DEFAULT_RETRIES

    try:
        delay = _validate_non_negative(
            _parse_float(
                os.getenv("DELAYKIT_RETRY_DELAY_MS", str(DEFAULT_RETRY_DELAY_MS)),
                "DELAYKIT_RETRY_DELAY_MS",
            ),
            "DELAYKIT_RETRY_DELAY_MS",
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        delay = DEFAULT_RETRY_DELAY_MS

    try:
        backoff = _validate_choice(
            os.getenv("DELAYKIT_BACKOFF", DEFAULT_BACKOFF),
            "DELAYKIT_BACKOFF",
            BACKOFF_CHOICES,
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        backoff = DEFAULT_BACKOFF

    # --- Логирование ---
    try:
        log_level = _validate_choice(
            os.getenv("LOG_LEVEL", "INFO"), "LOG_LEVEL", LOG_LEVELS
        )
    except ConfigValidationError as e:
        errors.append(str(e))
        log_level = "INFO"

    log_file_path = os.getenv("LOG_FILE_PATH", "")

    if errors:
        raise ConfigValidationError(
            "Ошибки конфигурации:\n" + "\n".join(f"  - {err}" for err in errors)
        )

    return Settings(
        retry=RetrySettings(retries=retries, delay=delay, backoff=backoff),
        log=LogSettings(level=log_level, file_path=log_file_path),
    )
