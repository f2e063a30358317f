"""Пакет ожиданий.

    from delaykit.services import wait, TimeoutRegistry
"""

from delaykit.services.delay import wait
from delaykit.services.timeout_registry import (
    TimeoutRegistry,
    cancel_wait,
    get_default_registry,
    install_exit_hook,
    update_wait,
    wait_with_id,
)

__all__ = [
    "TimeoutRegistry",
    "cancel_wait",
    "get_default_registry",
    "install_exit_hook",
    "update_wait",
    "wait",
    "wait_with_id",
]
