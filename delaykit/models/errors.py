"""Исключения delaykit.

Две ошибки предметной области:
    - TimeoutCancelledError: отложенное ожидание отменено, не найдено
      или снято при завершении процесса
    - RetryExhaustedError: все попытки операции исчерпаны
"""

from typing import Any


class DelayKitError(Exception):
    """Базовое исключение библиотеки."""


class TimeoutCancelledError(DelayKitError):
    """Ожидание с идентификатором было отменено или не найдено.

    Attributes:
        id: Идентификатор ожидания.
        reason: Человекочитаемая причина, совпадает с str(error).
        code: Машиночитаемый код ошибки.
    """

    code = "ETIMEOUT"

    def __init__(self, id: str, reason: str | None = None) -> None:
        self.id = id
        self.reason = reason or f"Timeout {id} cancelled"
        super().__init__(self.reason)

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.id, self.reason))


def normalize_cause(failure: Any) -> BaseException:
    """Приводит значение неудачи к исключению.

    Исключение возвращается как есть, любое другое значение
    оборачивается в Exception с его строковым представлением.
    """
    if isinstance(failure, BaseException):
        return failure
    return Exception(str(failure))


class RetryExhaustedError(DelayKitError):
    """Операция так и не завершилась успешно за отведённые попытки.

    Attributes:
        cause: Последняя неудача, приведённая к исключению.
        attempts: Сколько попыток было сделано.
        final_delay: Пауза (мс), которая была бы выдержана перед
            следующей попыткой.
    """

    def __init__(self, cause: Any, attempts: int, final_delay: float) -> None:
        self.cause = normalize_cause(cause)
        self.attempts = attempts
        self.final_delay = final_delay
        super().__init__(f"Retry failed after {attempts} attempts")

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.cause, self.attempts, self.final_delay))
