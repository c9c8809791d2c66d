"""Per-request context stamped onto queue log lines.

A front-desk request (HTTP call, kiosk tap, sweep job) sets a correlation
ID once; every log line emitted while serving it, across await points,
carries the same ID. Tasks started inside a request inherit it.

    with correlation_scope():
        await service.call_next_patient(clinic_id, staff_id, day)
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

_current: ContextVar[str] = ContextVar("queue_correlation_id", default="")


def generate_correlation_id() -> str:
    return str(uuid4())


def get_correlation_id() -> str:
    """The active ID, or "" outside any request."""
    return _current.get()


def set_correlation_id(correlation_id: str) -> None:
    _current.set(correlation_id)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Run a block under a correlation ID, restoring the previous one after.

    A fresh ID is generated when none is given.
    """
    token = _current.set(correlation_id or generate_correlation_id())
    try:
        yield _current.get()
    finally:
        _current.reset(token)


def correlation_id_processor(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor: add correlation_id when a request is active."""
    correlation_id = _current.get()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
