"""Queue entry domain model.

A queue entry is one scheduled or walk-in visit: the unit the queue
engine manages. This module defines the entry aggregate, its status
state machine and the draft used to create it.

Constraints:
- At most one IN_PROGRESS entry per (staff, day)
- Status is monotone along SCHEDULED/WAITING -> IN_PROGRESS -> COMPLETED
- CANCELLED is reachable from any non-terminal status
- Nothing is reachable from COMPLETED or CANCELLED
- Absence is an orthogonal flag, not a status
- Entries are never physically deleted
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any
from uuid import UUID

from clinic_queue.domain.models.service_day import ServiceDay


class AppointmentStatus(str, Enum):
    """Lifecycle status of a queue entry.

    State Transition Matrix:
    - SCHEDULED -> WAITING, IN_PROGRESS, CANCELLED
    - WAITING -> WAITING (repeat check-in), IN_PROGRESS, CANCELLED
    - IN_PROGRESS -> COMPLETED, CANCELLED
    - COMPLETED -> (terminal)
    - CANCELLED -> (terminal)
    """

    SCHEDULED = "scheduled"
    """Booked, patient not yet checked in."""

    WAITING = "waiting"
    """Patient checked in (or walked in) and waiting to be called."""

    IN_PROGRESS = "in_progress"
    """Patient called and being seen."""

    COMPLETED = "completed"
    """Visit finished."""

    CANCELLED = "cancelled"
    """Visit cancelled before completion."""

    def is_terminal(self) -> bool:
        """Check if this is a terminal status.

        Returns:
            True if COMPLETED or CANCELLED, False otherwise.
        """
        return self in TERMINAL_STATUSES

    def is_callable(self) -> bool:
        """Check if an entry in this status may be called next."""
        return self in CALLABLE_STATUSES

    def can_transition_to(self, target: AppointmentStatus) -> bool:
        """Check if transition to target status is valid.

        Args:
            target: The target status.

        Returns:
            True if the transition is in the matrix, False otherwise.
        """
        return target in STATUS_TRANSITION_MATRIX.get(self, frozenset())


TERMINAL_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
)

CALLABLE_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {AppointmentStatus.SCHEDULED, AppointmentStatus.WAITING}
)

STATUS_TRANSITION_MATRIX: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.WAITING,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.WAITING: frozenset(
        {
            AppointmentStatus.WAITING,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


class SkipReason(str, Enum):
    """Why an entry is being passed over by the queue."""

    PATIENT_ABSENT = "patient_absent"
    EMERGENCY_CASE = "emergency_case"
    DOCTOR_PREFERENCE = "doctor_preference"
    LATE_ARRIVAL = "late_arrival"
    TECHNICAL_ISSUE = "technical_issue"
    OTHER = "other"


class AppointmentType(str, Enum):
    """Kind of visit. Carried for display and estimation only."""

    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    EMERGENCY = "emergency"
    PROCEDURE = "procedure"
    VACCINATION = "vaccination"
    SCREENING = "screening"


@dataclass(frozen=True, eq=True)
class WaitEstimate:
    """Wait-time estimator output, stored verbatim on an entry.

    The queue engine never interprets or recomputes these values.

    Attributes:
        estimated_minutes: Predicted wait in minutes.
        source: Estimator mode or name (e.g. "basic", "ml", "hybrid").
        confidence: Optional confidence score reported by the estimator.
        predicted_start_time: Optional predicted start timestamp.
        produced_at: When the estimate was produced.
        details: Any further estimator-specific payload.
    """

    estimated_minutes: int
    source: str
    confidence: float | None = None
    predicted_start_time: datetime | None = None
    produced_at: datetime | None = None
    details: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage or transmission."""
        return {
            "estimated_minutes": self.estimated_minutes,
            "source": self.source,
            "confidence": self.confidence,
            "predicted_start_time": (
                self.predicted_start_time.isoformat()
                if self.predicted_start_time
                else None
            ),
            "produced_at": self.produced_at.isoformat() if self.produced_at else None,
            "details": dict(self.details),
        }


@dataclass(frozen=True, eq=True)
class AppointmentDraft:
    """Input for creating a queue entry.

    Exactly one of patient_id or guest_patient_id identifies the patient.
    Timing is validated by the domain service, not here, so malformed
    drafts surface as ValidationError rather than construction failures.

    Attributes:
        clinic_id: Clinic the visit belongs to.
        staff_id: Staff member who will see the patient.
        start_time: Scheduled start (timezone-aware).
        end_time: Scheduled end (timezone-aware).
        patient_id: Registered patient identity.
        guest_patient_id: Guest patient record identity.
        is_walk_in: True for patients already present without a booking.
        appointment_type: Kind of visit.
        reason_for_visit: Free text supplied at booking.
    """

    clinic_id: UUID
    staff_id: UUID
    start_time: datetime | None
    end_time: datetime | None
    patient_id: UUID | None = None
    guest_patient_id: UUID | None = None
    is_walk_in: bool = False
    appointment_type: AppointmentType = AppointmentType.CONSULTATION
    reason_for_visit: str | None = None

    @property
    def is_guest(self) -> bool:
        """True if the visit is for a guest patient."""
        return self.guest_patient_id is not None

    def with_default_end(self, duration: timedelta) -> AppointmentDraft:
        """Return a draft whose missing end time is start + duration.

        Args:
            duration: Fallback visit duration.

        Returns:
            A new draft, or self if end_time is already set or start is missing.
        """
        if self.end_time is not None or self.start_time is None:
            return self
        return replace(self, end_time=self.start_time + duration)


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class QueueEntry:
    """An appointment in the queue.

    Entries are immutable; every mutation produces a new instance through
    one of the with_* methods, which enforce the status state machine.

    Attributes:
        id: Unique entry identifier.
        clinic_id: Owning clinic.
        staff_id: Staff member seeing the patient.
        start_time: Scheduled start.
        end_time: Scheduled end.
        queue_position: Position within the clinic-day (>= 1).
        status: Lifecycle status.
        patient_id: Registered patient (mutually exclusive with guest).
        guest_patient_id: Guest patient (mutually exclusive with registered).
        is_present: Whether the patient is physically present.
        skip_reason: Why the entry is being passed over, if it is.
        is_walk_in: Created as a walk-in.
        appointment_type: Kind of visit.
        reason_for_visit: Free text supplied at booking.
        original_queue_position: Position before the first manual move or return.
        skip_count: Times the entry was bypassed by a call.
        override_by: Last actor who manually touched the entry.
        marked_absent_at: When the patient was last declared absent.
        returned_at: When the patient returned after the last absence.
        checked_in_at: When the patient checked in.
        actual_start_time: When the patient was called.
        actual_end_time: When the visit was completed.
        cancellation_reason: Free text recorded on cancellation.
        wait_estimate: Opaque estimator output.
        created_at: Creation timestamp (UTC).
        updated_at: Last modification timestamp (UTC).
    """

    id: UUID
    clinic_id: UUID
    staff_id: UUID
    start_time: datetime
    end_time: datetime
    queue_position: int
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    patient_id: UUID | None = None
    guest_patient_id: UUID | None = None
    is_present: bool = False
    skip_reason: SkipReason | None = None
    is_walk_in: bool = False
    appointment_type: AppointmentType = AppointmentType.CONSULTATION
    reason_for_visit: str | None = None
    original_queue_position: int | None = None
    skip_count: int = 0
    override_by: str | None = None
    marked_absent_at: datetime | None = None
    returned_at: datetime | None = None
    checked_in_at: datetime | None = None
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    cancellation_reason: str | None = None
    wait_estimate: WaitEstimate | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Validate entry invariants that hold regardless of status."""
        if self.queue_position < 1:
            raise ValueError(
                f"Queue position must be greater than 0, got {self.queue_position}"
            )
        if (self.patient_id is None) == (self.guest_patient_id is None):
            raise ValueError(
                "Exactly one of patient_id or guest_patient_id must be set"
            )
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")

    # =========================================================================
    # Projections
    # =========================================================================

    @property
    def is_guest(self) -> bool:
        """True if the visit is for a guest patient."""
        return self.guest_patient_id is not None

    @property
    def patient_key(self) -> UUID:
        """Identity of the patient, registered or guest."""
        return self.patient_id or self.guest_patient_id  # type: ignore[return-value]

    @property
    def is_absent(self) -> bool:
        """True if declared absent and not yet returned."""
        return self.marked_absent_at is not None and self.returned_at is None

    @property
    def is_active(self) -> bool:
        """True if the entry has not reached a terminal status."""
        return not self.status.is_terminal()

    @property
    def is_waiting_in_queue(self) -> bool:
        """True if the entry still occupies a waiting slot (callable status)."""
        return self.status.is_callable()

    @property
    def is_excluded_as_absent(self) -> bool:
        """True if absence excludes the entry from next-eligible selection."""
        return self.skip_reason == SkipReason.PATIENT_ABSENT and self.returned_at is None

    def service_day(self, tz: tzinfo | str | None = None) -> ServiceDay:
        """Date-only view of the scheduled start in the given timezone."""
        return ServiceDay.of(self.start_time, tz)

    def scheduled_time_of_day(self, tz: tzinfo | str | None = None) -> time:
        """Time-of-day view of the scheduled start in the given timezone."""
        zone = ServiceDay.of(self.start_time, tz).tz
        return self.start_time.astimezone(zone).timetz()

    # =========================================================================
    # State transitions
    # =========================================================================

    def _transition(self, target: AppointmentStatus, **changes: Any) -> QueueEntry:
        if not self.status.can_transition_to(target):
            raise ValueError(
                f"Invalid status transition: {self.status.value} -> {target.value}"
            )
        return replace(self, status=target, **changes)

    def with_checked_in(self, at: datetime) -> QueueEntry:
        """Return the entry checked in and waiting."""
        return self._transition(
            AppointmentStatus.WAITING,
            is_present=True,
            checked_in_at=at,
            updated_at=at,
        )

    def with_called(self, at: datetime, actor_id: str) -> QueueEntry:
        """Return the entry called into consultation."""
        return self._transition(
            AppointmentStatus.IN_PROGRESS,
            actual_start_time=at,
            override_by=actor_id,
            updated_at=at,
        )

    def with_completed(self, at: datetime, actor_id: str) -> QueueEntry:
        """Return the entry completed."""
        return self._transition(
            AppointmentStatus.COMPLETED,
            actual_end_time=at,
            override_by=actor_id,
            updated_at=at,
        )

    def with_cancelled(
        self, at: datetime, actor_id: str, reason: str | None = None
    ) -> QueueEntry:
        """Return the entry cancelled."""
        return self._transition(
            AppointmentStatus.CANCELLED,
            cancellation_reason=reason,
            override_by=actor_id,
            updated_at=at,
        )

    def with_absent(self, at: datetime, actor_id: str) -> QueueEntry:
        """Return the entry flagged absent. Status is unchanged."""
        if not self.status.is_callable():
            raise ValueError(
                f"Cannot mark absent: status must be scheduled or waiting, "
                f"got {self.status.value}"
            )
        return replace(
            self,
            is_present=False,
            skip_reason=SkipReason.PATIENT_ABSENT,
            marked_absent_at=at,
            returned_at=None,
            override_by=actor_id,
            updated_at=at,
        )

    def with_returned(self, at: datetime, actor_id: str, new_position: int) -> QueueEntry:
        """Return the entry re-inserted at a new position after absence."""
        return self._transition(
            AppointmentStatus.WAITING,
            is_present=True,
            skip_reason=None,
            returned_at=at,
            queue_position=new_position,
            original_queue_position=self.original_queue_position or self.queue_position,
            override_by=actor_id,
            updated_at=at,
        )

    def with_position(self, new_position: int, at: datetime, actor_id: str) -> QueueEntry:
        """Return the entry moved to a new queue position."""
        return replace(
            self,
            queue_position=new_position,
            original_queue_position=self.original_queue_position or self.queue_position,
            override_by=actor_id,
            updated_at=at,
        )

    def with_skipped(self, at: datetime) -> QueueEntry:
        """Return the entry with its bypass counter incremented."""
        return replace(self, skip_count=self.skip_count + 1, updated_at=at)

    def with_wait_estimate(self, estimate: WaitEstimate, at: datetime) -> QueueEntry:
        """Return the entry carrying a new opaque wait estimate."""
        return replace(self, wait_estimate=estimate, updated_at=at)
