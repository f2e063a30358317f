"""Модели отложенных ожиданий и политики повторов.

    - DelayHandle: то, что получает вызывающий код при создании ожидания
    - PendingDelay: запись реестра, владеющая future и таймером
    - Backoff / RetryPolicy: параметры исполнителя повторов
"""

import asyncio
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from delaykit.config.settings import (
    DEFAULT_BACKOFF,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    RetrySettings,
)


class DelayHandle(NamedTuple):
    """Идентификатор ожидания и future, которую можно await-ить.

    Attributes:
        id: Непрозрачный уникальный идентификатор.
        future: Разрешается строкой с идентификатором по истечении
            срока или отклоняется TimeoutCancelledError.
    """

    id: str
    future: "asyncio.Future[str]"


@dataclass(eq=False)
class PendingDelay:
    """Запись реестра для одного незавершённого ожидания.

    Принадлежит только реестру. Сравнение по identity: после update
    под тем же id живёт уже другая запись.

    Attributes:
        id: Идентификатор ожидания.
        future: Future, которую держит вызывающий код.
        timer: Таймер естественного завершения.
    """

    id: str
    future: "asyncio.Future[str]"
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    def retire(self) -> None:
        """Отменяет таймер. Повторный вызов ничего не делает."""
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    @property
    def retired(self) -> bool:
        """True, если таймер уже снят или сработал."""
        return self.timer is None


class Backoff(str, Enum):
    """Правило изменения паузы между попытками."""

    FIXED = "fixed"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class RetryPolicy:
    """Параметры исполнителя повторов.

    Attributes:
        retries: Число повторов после первой попытки (>= 0).
        delay: Начальная пауза между попытками в миллисекундах (>= 0).
        backoff: FIXED держит паузу постоянной, EXPONENTIAL удваивает
            её перед каждой паузой.
    """

    retries: int = DEFAULT_RETRIES
    delay: float = DEFAULT_RETRY_DELAY_MS
    backoff: Backoff = Backoff(DEFAULT_BACKOFF)

    def __post_init__(self) -> None:
        if isinstance(self.retries, bool) or not isinstance(self.retries, int):
            raise ValueError(f"retries must be an integer, got {self.retries!r}")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if not math.isfinite(self.delay) or self.delay < 0:
            raise ValueError(f"delay must be a finite number >= 0, got {self.delay}")
        # Строки 'fixed' / 'exponential' приводим к enum.
        object.__setattr__(self, "backoff", Backoff(self.backoff))

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryPolicy":
        """Строит политику из загруженной конфигурации."""
        return cls(
            retries=settings.retries,
            delay=settings.delay,
            backoff=Backoff(settings.backoff),
        )
