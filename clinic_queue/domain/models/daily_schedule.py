"""Scheduling mode and read models for a clinic-day.

QueueMode replaces mode dispatch on free-form strings: each mode maps to
exactly one selection strategy. Legacy mode names are normalized here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from clinic_queue.domain.models.queue_entry import (
    AppointmentStatus,
    QueueEntry,
    WaitEstimate,
)
from clinic_queue.domain.models.service_day import ServiceDay


class QueueMode(str, Enum):
    """Queue discipline a clinic runs under.

    Modes:
        FLOW: Continuous first-come-first-served queue ordered by position.
        SLOTTED: Fixed time grid ordered by scheduled start time.
    """

    FLOW = "flow"
    SLOTTED = "slotted"

    @classmethod
    def parse(cls, value: str | QueueMode) -> QueueMode:
        """Parse a mode name, accepting legacy aliases.

        Legacy names: "fluid" -> FLOW; "fixed" and "hybrid" -> SLOTTED.

        Args:
            value: Mode name or QueueMode.

        Returns:
            The matching QueueMode.

        Raises:
            ValueError: If the name is not recognized.
        """
        if isinstance(value, QueueMode):
            return value
        normalized = value.strip().lower()
        alias = _LEGACY_MODE_ALIASES.get(normalized)
        if alias is not None:
            return alias
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"Unknown queue mode '{value}'. "
                f"Must be one of: {[m.value for m in cls]}"
            ) from None


_LEGACY_MODE_ALIASES: dict[str, QueueMode] = {
    "fluid": QueueMode.FLOW,
    "fixed": QueueMode.SLOTTED,
    "hybrid": QueueMode.SLOTTED,
}


@dataclass(frozen=True, eq=True)
class DailySchedule:
    """A staff member's schedule for one service day.

    Attributes:
        mode: The clinic's queue mode for the day.
        service_day: The day the schedule covers.
        entries: All entries of the day in the mode's ordering.
    """

    mode: QueueMode
    service_day: ServiceDay
    entries: tuple[QueueEntry, ...]

    @property
    def in_progress(self) -> QueueEntry | None:
        """The entry currently being seen, if any."""
        return next(
            (e for e in self.entries if e.status == AppointmentStatus.IN_PROGRESS),
            None,
        )

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True, eq=True)
class QueueSummary:
    """Counts and observed averages for a clinic-day.

    Attributes:
        clinic_id: Clinic summarized.
        service_day: Day summarized.
        total_appointments: All entries of the day.
        scheduled: Entries booked but not checked in.
        waiting: Entries checked in and waiting.
        in_progress: Entries being seen.
        completed: Finished entries.
        cancelled: Cancelled entries.
        absent: Entries currently absent.
        current_queue_length: Scheduled plus waiting entries.
        average_wait_minutes: Mean observed check-in to call time of
            completed entries, rounded; 0 if none.
    """

    clinic_id: UUID
    service_day: ServiceDay
    total_appointments: int
    scheduled: int
    waiting: int
    in_progress: int
    completed: int
    cancelled: int
    absent: int
    current_queue_length: int
    average_wait_minutes: int


@dataclass(frozen=True, eq=True)
class QueuePositionView:
    """A patient's standing in the active queue.

    Attributes:
        entry_id: The patient's entry.
        position: 1-based rank among active waiting entries.
        total: Number of active waiting entries.
        patients_ahead: Entries ranked before this one.
        wait_estimate: Opaque estimator output carried on the entry.
    """

    entry_id: UUID
    position: int
    total: int
    patients_ahead: int
    wait_estimate: WaitEstimate | None = None
