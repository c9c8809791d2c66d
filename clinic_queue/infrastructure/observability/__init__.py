"""Observability: structured logging and correlation IDs."""

from clinic_queue.infrastructure.observability.correlation import (
    correlation_id_processor,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from clinic_queue.infrastructure.observability.logging import (
    SERVICE_NAME,
    build_processors,
    configure_structlog,
    resolve_log_level,
)

__all__ = [
    "SERVICE_NAME",
    "build_processors",
    "configure_structlog",
    "correlation_id_processor",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "resolve_log_level",
    "set_correlation_id",
]
