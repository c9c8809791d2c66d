"""structlog setup for the queue engine.

Two renderings share one processor chain. "production" writes a JSON
object per line; anything else gets the coloured dev console. Every
line carries the level, an ISO timestamp, the service name, contextvars
bound by callers and the request correlation ID.

    {"event": "patient_called", "level": "info", "service": "clinic-queue",
     "timestamp": "2026-01-15T09:15:00Z", "correlation_id": "...",
     "entry_id": "...", "queue_position": 3, "skipped_count": 1}
"""

import logging
import os
from typing import Any, cast

import structlog
from structlog.typing import Processor

from clinic_queue.infrastructure.observability.correlation import (
    correlation_id_processor,
)

SERVICE_NAME = "clinic-queue"


def resolve_log_level(name: str | None = None) -> int:
    """Map a level name (default: $LOG_LEVEL, else INFO) to a logging level.

    Unknown names fall back to INFO.
    """
    raw = (name or os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.INFO


def _service_stamper(service: str) -> Processor:
    def stamp(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return cast(Processor, stamp)


def build_processors(
    environment: str, service: str = SERVICE_NAME
) -> list[Processor]:
    """Processor chain for an environment, renderer last."""
    renderer: Processor
    if environment == "production":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_stamper(service),
        cast(Processor, correlation_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_structlog(
    environment: str = "production", level: str | None = None
) -> None:
    """Install the queue processor chain globally.

    Loggers created with get_logger(__name__) are cached on first use, so
    call this before any queue operation logs.
    """
    structlog.configure(
        processors=build_processors(environment),
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
