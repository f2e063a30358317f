"""delaykit: отменяемые ожидания с идентификаторами и повторы с паузой.

    from delaykit import wait, TimeoutRegistry, retry

    await wait(100)

    registry = TimeoutRegistry()
    handle = registry.create(500)
    registry.update(handle.id, 1000)

    value = await retry(fetch, retries=2, delay=250, backoff="exponential")
"""

from delaykit.config import (
    ConfigValidationError,
    Settings,
    get_logger,
    load_settings,
    setup_logging,
)
from delaykit.models import (
    Backoff,
    DelayHandle,
    DelayKitError,
    RetryExhaustedError,
    RetryPolicy,
    TimeoutCancelledError,
)
from delaykit.services import (
    TimeoutRegistry,
    cancel_wait,
    get_default_registry,
    install_exit_hook,
    update_wait,
    wait,
    wait_with_id,
)
from delaykit.utils import async_retry, retry, run_with_retry

__version__ = "0.1.0"

__all__ = [
    "Backoff",
    "ConfigValidationError",
    "DelayHandle",
    "DelayKitError",
    "RetryExhaustedError",
    "RetryPolicy",
    "Settings",
    "TimeoutCancelledError",
    "TimeoutRegistry",
    "async_retry",
    "cancel_wait",
    "get_default_registry",
    "get_logger",
    "install_exit_hook",
    "load_settings",
    "retry",
    "run_with_retry",
    "setup_logging",
    "update_wait",
    "wait",
    "wait_with_id",
]
