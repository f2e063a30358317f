"""Пакет моделей и исключений.

    from delaykit.models import RetryPolicy, TimeoutCancelledError
"""

from delaykit.models.delay import Backoff, DelayHandle, PendingDelay, RetryPolicy
from delaykit.models.errors import (
    DelayKitError,
    RetryExhaustedError,
    TimeoutCancelledError,
    normalize_cause,
)

__all__ = [
    "Backoff",
    "DelayHandle",
    "DelayKitError",
    "PendingDelay",
    "RetryExhaustedError",
    "RetryPolicy",
    "TimeoutCancelledError",
    "normalize_cause",
]
