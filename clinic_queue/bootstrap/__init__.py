"""Composition root for the queue engine."""

from clinic_queue.bootstrap.logging import configure_structlog
from clinic_queue.bootstrap.queue_service import (
    create_policy_provider,
    create_queue_service,
    get_queue_service,
    reset_queue_service,
    set_queue_service,
)

__all__ = [
    "configure_structlog",
    "create_policy_provider",
    "create_queue_service",
    "get_queue_service",
    "reset_queue_service",
    "set_queue_service",
]
