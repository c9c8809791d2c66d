"""In-memory queue event bus.

Implements QueueEventPublisherProtocol for in-process listeners and
tests. Handlers subscribe per event type (or to every type with "*").
A failing handler is logged and skipped; the remaining handlers still
run and publish() never raises because of a handler.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Awaitable, Callable

from structlog import get_logger

from clinic_queue.application.ports.event_publisher import QueueEventPublisherProtocol
from clinic_queue.domain.events.queue import QueueEvent

logger = get_logger(__name__)

QueueEventHandler = Callable[[QueueEvent], Awaitable[None]]

ALL_EVENT_TYPES = "*"


class InMemoryEventBus(QueueEventPublisherProtocol):
    """Publishes queue events to subscribed async handlers.

    Every published event is also kept in publish order for inspection.
    """

    def __init__(self) -> None:
        """Initialize bus with no subscribers."""
        self._handlers: dict[str, list[QueueEventHandler]] = defaultdict(list)
        self._published: list[QueueEvent] = []

    def subscribe(self, event_type: str, handler: QueueEventHandler) -> None:
        """Register a handler for one event type, or "*" for all types."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: QueueEventHandler) -> None:
        """Remove a previously registered handler, if present."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: QueueEvent) -> None:
        self._published.append(event)
        handlers = [
            *self._handlers.get(event.event_type, []),
            *self._handlers.get(ALL_EVENT_TYPES, []),
        ]
        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "queue_event_handler_failed",
                    event_type=event.event_type,
                    event_id=str(event.event_id),
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(e),
                    exc_info=True,
                )

    # =========================================================================
    # Test helpers
    # =========================================================================

    @property
    def published(self) -> list[QueueEvent]:
        """All published events in publish order."""
        return list(self._published)

    def published_of_type(self, event_type: str) -> list[QueueEvent]:
        """Published events of one type."""
        return [e for e in self._published if e.event_type == event_type]

    def clear(self) -> None:
        """Forget published events. Subscriptions are kept."""
        self._published.clear()

    def count(self) -> int:
        """Return the number of published events."""
        return len(self._published)
