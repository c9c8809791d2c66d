"""Queue event emitter service.

Builds typed queue events from updated entries and hands them to the
event publisher. Emission happens after the store mutation succeeded;
a failed publish is logged and counted but the mutation stands.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from structlog import get_logger

from clinic_queue.application.ports.event_publisher import QueueEventPublisherProtocol
from clinic_queue.application.ports.queue_metrics import QueueMetricsProtocol
from clinic_queue.application.ports.time_authority import TimeAuthorityProtocol
from clinic_queue.domain.events.queue import (
    EntryPositionChangedEvent,
    EntryStatusChangedEvent,
    PatientCalledEvent,
    PatientCheckedInEvent,
    PatientMarkedAbsentEvent,
    PatientReturnedEvent,
    QueueEntryAddedEvent,
    QueueEvent,
)
from clinic_queue.domain.models.queue_entry import AppointmentStatus, QueueEntry

logger = get_logger(__name__)

EVENT_CHANNEL = "event"


class QueueEventEmitter:
    """Emits queue lifecycle events through the publisher port.

    Every emit_* method returns True on success and False when the
    event could not be built or published. It never raises.
    """

    def __init__(
        self,
        publisher: QueueEventPublisherProtocol,
        time_authority: TimeAuthorityProtocol,
        metrics: QueueMetricsProtocol | None = None,
    ) -> None:
        self._publisher = publisher
        self._time = time_authority
        self._metrics = metrics

    async def _emit(
        self, event_cls: type[QueueEvent], entry: QueueEntry, actor_id: str, **extra: Any
    ) -> bool:
        log = logger.bind(
            event_type=event_cls.event_type,
            entry_id=str(entry.id),
            clinic_id=str(entry.clinic_id),
            actor_id=actor_id,
        )
        try:
            event = event_cls.from_entry(  # type: ignore[attr-defined]
                uuid4(), entry, actor_id, self._time.utcnow(), **extra
            )
            await self._publisher.publish(event)
        except Exception as e:
            log.error(
                "queue_event_publish_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            if self._metrics is not None:
                self._metrics.record_side_effect_failure(EVENT_CHANNEL)
            return False

        log.debug("queue_event_published", event_id=str(event.event_id))
        return True

    async def emit_entry_added(self, entry: QueueEntry, actor_id: str) -> bool:
        """Emit queue.entry.added for a newly created entry."""
        return await self._emit(QueueEntryAddedEvent, entry, actor_id)

    async def emit_checked_in(self, entry: QueueEntry, actor_id: str) -> bool:
        """Emit queue.patient.checked_in."""
        return await self._emit(PatientCheckedInEvent, entry, actor_id)

    async def emit_called(
        self,
        entry: QueueEntry,
        actor_id: str,
        skipped_entry_ids: tuple[UUID, ...] = (),
        completed_entry_id: UUID | None = None,
    ) -> bool:
        """Emit queue.patient.called, noting bypassed and auto-completed entries."""
        return await self._emit(
            PatientCalledEvent,
            entry,
            actor_id,
            skipped_entry_ids=skipped_entry_ids,
            completed_entry_id=completed_entry_id,
        )

    async def emit_marked_absent(
        self,
        entry: QueueEntry,
        actor_id: str,
        grace_period_ends_at: datetime | None,
        reason: str | None = None,
    ) -> bool:
        """Emit queue.patient.marked_absent carrying the grace deadline."""
        return await self._emit(
            PatientMarkedAbsentEvent,
            entry,
            actor_id,
            grace_period_ends_at=grace_period_ends_at,
            reason=reason,
        )

    async def emit_returned(
        self, entry: QueueEntry, actor_id: str, previous_position: int
    ) -> bool:
        """Emit queue.patient.returned with old and new positions."""
        return await self._emit(
            PatientReturnedEvent, entry, actor_id, previous_position=previous_position
        )

    async def emit_status_changed(
        self,
        entry: QueueEntry,
        actor_id: str,
        previous_status: AppointmentStatus,
        reason: str | None = None,
    ) -> bool:
        """Emit queue.entry.status_changed for completion and cancellation."""
        return await self._emit(
            EntryStatusChangedEvent,
            entry,
            actor_id,
            previous_status=previous_status,
            reason=reason,
        )

    async def emit_position_changed(
        self,
        entry: QueueEntry,
        actor_id: str,
        previous_position: int,
        displaced_entry_id: UUID | None = None,
        reason: str | None = None,
    ) -> bool:
        """Emit queue.entry.position_changed for a manual reorder."""
        return await self._emit(
            EntryPositionChangedEvent,
            entry,
            actor_id,
            previous_position=previous_position,
            displaced_entry_id=displaced_entry_id,
            reason=reason,
        )
