"""Queue domain events.

This module defines the typed events emitted after every successful
queue mutation. Events drive asynchronous UI refresh and notifications;
no scheduling decision reads them back.

Constraints:
- Exactly one event per mutating operation
- Publishing is best-effort: a failed publish never rolls back the mutation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

from clinic_queue.domain.models.queue_entry import AppointmentStatus, QueueEntry

# Event type constants
QUEUE_ENTRY_ADDED_EVENT_TYPE: str = "queue.entry.added"
PATIENT_CHECKED_IN_EVENT_TYPE: str = "queue.patient.checked_in"
PATIENT_CALLED_EVENT_TYPE: str = "queue.patient.called"
PATIENT_MARKED_ABSENT_EVENT_TYPE: str = "queue.patient.marked_absent"
PATIENT_RETURNED_EVENT_TYPE: str = "queue.patient.returned"
ENTRY_STATUS_CHANGED_EVENT_TYPE: str = "queue.entry.status_changed"
ENTRY_POSITION_CHANGED_EVENT_TYPE: str = "queue.entry.position_changed"

# Schema version for queue events
QUEUE_EVENT_SCHEMA_VERSION: str = "1.0.0"


@dataclass(frozen=True, eq=True, kw_only=True)
class QueueEvent:
    """Common envelope of every queue event.

    Attributes:
        event_id: Unique identifier for this event.
        entry_id: The queue entry the event concerns.
        clinic_id: Owning clinic.
        staff_id: Staff member the entry belongs to.
        patient_id: Registered or guest patient identity.
        actor_id: Who performed the action.
        emitted_at: When the action happened (UTC).
    """

    event_type: ClassVar[str] = ""

    event_id: UUID
    entry_id: UUID
    clinic_id: UUID
    staff_id: UUID
    patient_id: UUID
    actor_id: str
    emitted_at: datetime
    schema_version: str = field(default=QUEUE_EVENT_SCHEMA_VERSION, init=False)

    @classmethod
    def _envelope(
        cls, event_id: UUID, entry: QueueEntry, actor_id: str, at: datetime
    ) -> dict[str, Any]:
        return {
            "event_id": event_id,
            "entry_id": entry.id,
            "clinic_id": entry.clinic_id,
            "staff_id": entry.staff_id,
            "patient_id": entry.patient_key,
            "actor_id": actor_id,
            "emitted_at": at,
        }

    def payload(self) -> dict[str, Any]:
        """Event-specific fields. Overridden by each event type."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dict for storage/transmission.

        Returns:
            Dict with the envelope fields and the event payload.
        """
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "entry_id": str(self.entry_id),
            "clinic_id": str(self.clinic_id),
            "staff_id": str(self.staff_id),
            "patient_id": str(self.patient_id),
            "actor_id": self.actor_id,
            "emitted_at": self.emitted_at.isoformat(),
            "schema_version": self.schema_version,
            "payload": self.payload(),
        }


@dataclass(frozen=True, eq=True, kw_only=True)
class QueueEntryAddedEvent(QueueEvent):
    """Emitted when an appointment or walk-in joins the queue."""

    event_type: ClassVar[str] = QUEUE_ENTRY_ADDED_EVENT_TYPE

    queue_position: int
    start_time: datetime
    is_walk_in: bool

    @classmethod
    def from_entry(
        cls, event_id: UUID, entry: QueueEntry, actor_id: str, at: datetime
    ) -> QueueEntryAddedEvent:
        """Create event from the newly created entry."""
        return cls(
            **cls._envelope(event_id, entry, actor_id, at),
            queue_position=entry.queue_position,
            start_time=entry.start_time,
            is_walk_in=entry.is_walk_in,
        )

    def payload(self) -> dict[str, Any]:
        return {
            "queue_position": self.queue_position,
            "start_time": self.start_time.isoformat(),
            "is_walk_in": self.is_walk_in,
        }


@dataclass(frozen=True, eq=True, kw_only=True)
class PatientCheckedInEvent(QueueEvent):
    """Emitted when a patient checks in."""

    event_type: ClassVar[str] = PATIENT_CHECKED_IN_EVENT_TYPE

    queue_position: int

    @classmethod
    def from_entry(
        cls, event_id: UUID, entry: QueueEntry, actor_id: str, at: datetime
    ) -> PatientCheckedInEvent:
        """Create event from the checked-in entry."""
        return cls(
            **cls._envelope(event_id, entry, actor_id, at),
            queue_position=entry.queue_position,
        )

    def payload(self) -> dict[str, Any]:
        return {"queue_position": self.queue_position}


@dataclass(frozen=True, eq=True, kw_only=True)
class PatientCalledEvent(QueueEvent):
    """Emitted when a patient is called into consultation.

    Attributes:
        queue_position: Position of the called entry.
        skipped_entry_ids: Entries bypassed by this call.
        completed_entry_id: Entry auto-completed to free the staff member.
    """

    event_type: ClassVar[str] = PATIENT_CALLED_EVENT_TYPE

    queue_position: int
    skipped_entry_ids: tuple[UUID, ...] = ()
    completed_entry_id: UUID | None = None

    @classmethod
    def from_entry(
        cls,
        event_id: UUID,
        entry: QueueEntry,
        actor_id: str,
        at: datetime,
        skipped_entry_ids: tuple[UUID, ...] = (),
        completed_entry_id: UUID | None = None,
    ) -> PatientCalledEvent:
        """Create event from the called entry."""
        return cls(
            **cls._envelope(event_id, entry, actor_id, at),
            queue_position=entry.queue_position,
            skipped_entry_ids=skipped_entry_ids,
            completed_entry_id=completed_entry_id,
        )

    def payload(self) -> dict[str, Any]:
        return {
            "queue_position": self.queue_position,
            "skipped_entry_ids": [str(i) for i in self.skipped_entry_ids],
            "completed_entry_id": (
                str(self.completed_entry_id) if self.completed_entry_id else None
            ),
        }


@dataclass(frozen=True, eq=True, kw_only=True)
class PatientMarkedAbsentEvent(QueueEvent):
    """Emitted when a patient is declared absent.

    Attributes:
        queue_position: Position held at the time of absence.
        grace_period_ends_at: Deadline stored on the absence record.
        reason: Staff-supplied reason.
    """

    event_type: ClassVar[str] = PATIENT_MARKED_ABSENT_EVENT_TYPE

    queue_position: int
    grace_period_ends_at: datetime | None
    reason: str | None = None

    @classmethod
    def from_entry(
        cls,
        event_id: UUID,
        entry: QueueEntry,
        actor_id: str,
        at: datetime,
        grace_period_ends_at: datetime | None,
        reason: str | None = None,
    ) -> PatientMarkedAbsentEvent:
        """Create event from the absent entry."""
        return cls(
            **cls._envelope(event_id, entry, actor_id, at),
            queue_position=entry.queue_position,
            grace_period_ends_at=grace_period_ends_at,
            reason=reason,
        )

    def payload(self) -> dict[str, Any]:
        return {
            "queue_position": self.queue_position,
            "grace_period_ends_at": (
                self.grace_period_ends_at.isoformat()
                if self.grace_period_ends_at
                else None
            ),
            "reason": self.reason,
        }


@dataclass(frozen=True, eq=True, kw_only=True)
class PatientReturnedEvent(QueueEvent):
    """Emitted when an absent patient returns and rejoins the queue."""

    event_type: ClassVar[str] = PATIENT_RETURNED_EVENT_TYPE

    previous_position: int
    new_position: int

    @classmethod
    def from_entry(
        cls,
        event_id: UUID,
        entry: QueueEntry,
        actor_id: str,
        at: datetime,
        previous_position: int,
    ) -> PatientReturnedEvent:
        """Create event from the returned entry."""
        return cls(
            **cls._envelope(event_id, entry, actor_id, at),
            previous_position=previous_position,
            new_position=entry.queue_position,
        )

    def payload(self) -> dict[str, Any]:
        return {
            "previous_position": self.previous_position,
            "new_position": self.new_position,
        }


@dataclass(frozen=True, eq=True, kw_only=True)
class EntryStatusChangedEvent(QueueEvent):
    """Emitted when an entry reaches a terminal status."""

    event_type: ClassVar[str] = ENTRY_STATUS_CHANGED_EVENT_TYPE

    previous_status: AppointmentStatus
    new_status: AppointmentStatus
    reason: str | None = None

    @classmethod
    def from_entry(
        cls,
        event_id: UUID,
        entry: QueueEntry,
        actor_id: str,
        at: datetime,
        previous_status: AppointmentStatus,
        reason: str | None = None,
    ) -> EntryStatusChangedEvent:
        """Create event from the updated entry."""
        return cls(
            **cls._envelope(event_id, entry, actor_id, at),
            previous_status=previous_status,
            new_status=entry.status,
            reason=reason,
        )

    def payload(self) -> dict[str, Any]:
        return {
            "previous_status": self.previous_status.value,
            "new_status": self.new_status.value,
            "reason": self.reason,
        }


@dataclass(frozen=True, eq=True, kw_only=True)
class EntryPositionChangedEvent(QueueEvent):
    """Emitted when staff manually move an entry in the queue.

    Attributes:
        previous_position: Position before the move.
        new_position: Position after the move.
        displaced_entry_id: Entry that swapped into the old position, if any.
        reason: Staff-supplied reason.
    """

    event_type: ClassVar[str] = ENTRY_POSITION_CHANGED_EVENT_TYPE

    previous_position: int
    new_position: int
    displaced_entry_id: UUID | None = None
    reason: str | None = None

    @classmethod
    def from_entry(
        cls,
        event_id: UUID,
        entry: QueueEntry,
        actor_id: str,
        at: datetime,
        previous_position: int,
        displaced_entry_id: UUID | None = None,
        reason: str | None = None,
    ) -> EntryPositionChangedEvent:
        """Create event from the moved entry."""
        return cls(
            **cls._envelope(event_id, entry, actor_id, at),
            previous_position=previous_position,
            new_position=entry.queue_position,
            displaced_entry_id=displaced_entry_id,
            reason=reason,
        )

    def payload(self) -> dict[str, Any]:
        return {
            "previous_position": self.previous_position,
            "new_position": self.new_position,
            "displaced_entry_id": (
                str(self.displaced_entry_id) if self.displaced_entry_id else None
            ),
            "reason": self.reason,
        }
