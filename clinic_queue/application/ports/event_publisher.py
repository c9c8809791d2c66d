"""Queue event publisher port.

Publishing is fire-and-forget from the queue engine's perspective: the
engine logs and counts a failed publish but never retries or rolls back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from clinic_queue.domain.events.queue import QueueEvent


@runtime_checkable
class QueueEventPublisherProtocol(Protocol):
    """Abstract interface for delivering queue events to listeners."""

    async def publish(self, event: QueueEvent) -> None:
        """Publish an event.

        Args:
            event: The queue event to deliver.
        """
        ...
