"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

import os

from clinic_queue.infrastructure.observability import (
    configure_structlog as _configure_structlog,
)


def configure_structlog(environment: str | None = None, level: str | None = None) -> None:
    """Configure structlog; environment defaults to $ENVIRONMENT, else development.

    ENVIRONMENT is the same variable the metrics collector labels with.
    """
    _configure_structlog(
        environment=environment or os.environ.get("ENVIRONMENT", "development"),
        level=level,
    )


__all__ = ["configure_structlog"]
