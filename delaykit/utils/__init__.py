"""Пакет утилит.

    from delaykit.utils import retry, async_retry
"""

from delaykit.utils.retry import async_retry, retry, run_with_retry

__all__ = [
    "async_retry",
    "retry",
    "run_with_retry",
]
