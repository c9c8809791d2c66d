"""Absence record domain model.

An absence record links to one queue entry and tracks a single
declared absence: when it was declared, the grace deadline, whether the
grace expiry led to cancellation, and when the patient came back.

The grace deadline is stored only. Nothing here acts on it; callers
poll the expiry sweep of the queue service.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from uuid import UUID


@dataclass(frozen=True, eq=True)
class AbsenceRecord:
    """A single declared absence of a queued patient.

    Attributes:
        id: Unique record identifier.
        entry_id: The queue entry declared absent.
        clinic_id: Owning clinic.
        marked_absent_at: When the absence was declared.
        grace_period_ends_at: Deadline after which the absence may be acted on.
        auto_cancelled: True once the expiry sweep cancelled the entry.
        returned_at: When the patient returned, if they did.
        new_position: Queue position assigned on return.
        reason: Free-text reason supplied by staff.
    """

    id: UUID
    entry_id: UUID
    clinic_id: UUID
    marked_absent_at: datetime
    grace_period_ends_at: datetime | None = None
    auto_cancelled: bool = False
    returned_at: datetime | None = None
    new_position: int | None = None
    reason: str | None = None

    @classmethod
    def declare(
        cls,
        record_id: UUID,
        entry_id: UUID,
        clinic_id: UUID,
        at: datetime,
        grace_period: timedelta | None,
        reason: str | None = None,
    ) -> AbsenceRecord:
        """Create a record for a newly declared absence.

        Args:
            record_id: Identifier for the new record.
            entry_id: The absent entry.
            clinic_id: Owning clinic.
            at: Declaration time.
            grace_period: Grace window, or None for no deadline.
            reason: Optional staff-supplied reason.

        Returns:
            A new open AbsenceRecord.
        """
        return cls(
            id=record_id,
            entry_id=entry_id,
            clinic_id=clinic_id,
            marked_absent_at=at,
            grace_period_ends_at=at + grace_period if grace_period is not None else None,
            reason=reason,
        )

    @property
    def is_open(self) -> bool:
        """True while the patient has neither returned nor been auto-cancelled."""
        return self.returned_at is None and not self.auto_cancelled

    def is_grace_expired(self, now: datetime) -> bool:
        """Check whether the grace deadline has passed for an open absence.

        Args:
            now: Current time.

        Returns:
            True if open, has a deadline, and the deadline is at or before now.
        """
        if not self.is_open or self.grace_period_ends_at is None:
            return False
        return self.grace_period_ends_at <= now

    def with_returned(self, at: datetime, new_position: int) -> AbsenceRecord:
        """Return the record closed by the patient's return."""
        if not self.is_open:
            raise ValueError(f"Absence record {self.id} is already closed")
        return replace(self, returned_at=at, new_position=new_position)

    def with_auto_cancelled(self) -> AbsenceRecord:
        """Return the record closed by grace-period expiry."""
        if not self.is_open:
            raise ValueError(f"Absence record {self.id} is already closed")
        return replace(self, auto_cancelled=True)
