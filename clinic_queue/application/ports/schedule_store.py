"""Schedule store port - durable storage for the queue engine.

The store owns every piece of queue state: entries, absence records and
audit records. The domain service is stateless and re-reads the store
on every call, so correctness under concurrency rests on the atomic
primitives defined here.

Atomic primitives:
- create_entry: assigns the next (clinic, day) position and inserts in one step
- transition_status: conditional status change guarded by expected statuses
  and, when the target is in_progress, by staff-day exclusivity
- reinsert_at_tail: moves an absent entry to the next (clinic, day) position
  and writes its returned state in one step
- save_positions: multi-entry position update used by reorder swaps,
  guarded by the positions the caller last saw
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from clinic_queue.domain.models.absence_record import AbsenceRecord
    from clinic_queue.domain.models.queue_entry import (
        AppointmentStatus,
        QueueEntry,
        WaitEstimate,
    )
    from clinic_queue.domain.models.queue_override import QueueOverrideRecord
    from clinic_queue.domain.models.service_day import ServiceDay


@runtime_checkable
class ScheduleStoreProtocol(Protocol):
    """Abstract interface for queue storage.

    Implementations must make the four primitives atomic with respect
    to each other. Read methods may return snapshots.
    """

    # =========================================================================
    # Entries
    # =========================================================================

    async def create_entry(
        self,
        clinic_id: UUID,
        day: ServiceDay,
        build: Callable[[int], QueueEntry],
    ) -> QueueEntry:
        """Atomically allocate the next position and insert an entry.

        Args:
            clinic_id: Clinic scope of the position.
            day: Service day scope of the position.
            build: Builds the entry from the allocated position.

        Returns:
            The stored entry.
        """
        ...

    async def get_entry(self, entry_id: UUID) -> QueueEntry | None:
        """Retrieve an entry by ID, or None if it does not exist."""
        ...

    async def list_entries_for_clinic(
        self, clinic_id: UUID, day: ServiceDay
    ) -> list[QueueEntry]:
        """List every entry of a clinic-day, terminal ones included."""
        ...

    async def list_entries_for_staff(
        self, staff_id: UUID, day: ServiceDay
    ) -> list[QueueEntry]:
        """List every entry of a staff-day, terminal ones included."""
        ...

    async def max_position(self, clinic_id: UUID, day: ServiceDay) -> int | None:
        """Return the highest position assigned in a clinic-day, or None."""
        ...

    async def transition_status(
        self,
        updated: QueueEntry,
        expected_statuses: frozenset[AppointmentStatus],
        day: ServiceDay,
    ) -> QueueEntry | None:
        """Conditionally replace an entry whose status is still expected.

        When updated.status is in_progress the write also requires that no
        other entry of the same staff member on the given day is
        in_progress.

        Args:
            updated: The new entry state.
            expected_statuses: Statuses the stored entry must currently have.
            day: Service day used for the staff-day exclusivity check.

        Returns:
            The stored entry, or None if a condition failed.
        """
        ...

    async def reinsert_at_tail(
        self,
        entry_id: UUID,
        day: ServiceDay,
        expected_statuses: frozenset[AppointmentStatus],
        build: Callable[[QueueEntry, int], QueueEntry],
    ) -> QueueEntry | None:
        """Atomically give an absent entry the next position of its clinic-day.

        Args:
            entry_id: The absent entry.
            day: Service day scope of the position.
            expected_statuses: Statuses the stored entry must currently have.
            build: Builds the returned entry from the stored one and the
                allocated position.

        Returns:
            The stored entry, or None unless the stored entry is still
            absent and in an expected status.
        """
        ...

    async def save_positions(
        self,
        entries: Sequence[QueueEntry],
        expected_positions: Mapping[UUID, int],
        day: ServiceDay,
    ) -> list[QueueEntry] | None:
        """Atomically persist position changes of several entries.

        Only queue_position, original_queue_position, override_by and
        updated_at are taken from the given entries; every other field
        keeps its currently stored value.

        The write is refused when a changed entry is no longer active or
        no longer at its expected position, or when an entry outside the
        change set of the same clinic-day holds one of the new positions.

        Args:
            entries: Entries carrying their new positions.
            expected_positions: Position each changed entry must still hold.
            day: Service day scope of the uniqueness check.

        Returns:
            The stored entries in the given order, or None if refused.

        Raises:
            KeyError: If any entry does not exist.
        """
        ...

    async def increment_skip_counts(
        self, entry_ids: Sequence[UUID], at: datetime
    ) -> None:
        """Atomically add one to the skip counter of each given entry."""
        ...

    async def set_wait_estimate(
        self, entry_id: UUID, estimate: WaitEstimate, at: datetime
    ) -> QueueEntry | None:
        """Store an opaque wait estimate on an entry.

        Returns:
            The stored entry, or None if it does not exist.
        """
        ...

    # =========================================================================
    # Absence records
    # =========================================================================

    async def save_absence(self, record: AbsenceRecord) -> AbsenceRecord:
        """Insert or replace an absence record."""
        ...

    async def get_open_absence(self, entry_id: UUID) -> AbsenceRecord | None:
        """Return the entry's absence that is neither returned nor cancelled."""
        ...

    async def list_open_absences(
        self, clinic_id: UUID, day: ServiceDay
    ) -> list[AbsenceRecord]:
        """List open absences whose entries belong to a clinic-day."""
        ...

    # =========================================================================
    # Audit records
    # =========================================================================

    async def append_override(self, record: QueueOverrideRecord) -> None:
        """Append an audit record. Records are never updated."""
        ...

    async def list_overrides(self, entry_id: UUID) -> list[QueueOverrideRecord]:
        """List audit records of an entry in append order."""
        ...
