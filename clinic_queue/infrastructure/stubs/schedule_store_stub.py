"""In-memory schedule store for testing and development.

Implements ScheduleStoreProtocol with plain dicts. The atomic primitives
run under a single asyncio.Lock, which is enough to make them atomic
with respect to each other within one event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from clinic_queue.application.ports.schedule_store import ScheduleStoreProtocol
from clinic_queue.domain.models.absence_record import AbsenceRecord
from clinic_queue.domain.models.queue_entry import (
    AppointmentStatus,
    QueueEntry,
    WaitEstimate,
)
from clinic_queue.domain.models.queue_override import QueueOverrideRecord
from clinic_queue.domain.models.service_day import ServiceDay
from clinic_queue.domain.services.position_allocator import PositionAllocator


class InMemoryScheduleStore(ScheduleStoreProtocol):
    """In-memory schedule store.

    Entries are kept as immutable QueueEntry values keyed by id; every
    write replaces the stored value.
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self._entries: dict[UUID, QueueEntry] = {}
        self._absences: dict[UUID, AbsenceRecord] = {}
        self._overrides: list[QueueOverrideRecord] = []
        self._lock = asyncio.Lock()

    # =========================================================================
    # Entries
    # =========================================================================

    async def create_entry(
        self,
        clinic_id: UUID,
        day: ServiceDay,
        build: Callable[[int], QueueEntry],
    ) -> QueueEntry:
        async with self._lock:
            entry = build(PositionAllocator.tail_after(self._max_position(clinic_id, day)))
            self._entries[entry.id] = entry
            return entry

    async def get_entry(self, entry_id: UUID) -> QueueEntry | None:
        return self._entries.get(entry_id)

    async def list_entries_for_clinic(
        self, clinic_id: UUID, day: ServiceDay
    ) -> list[QueueEntry]:
        # Yield to the loop like a real I/O round trip
        await asyncio.sleep(0)
        return [
            e
            for e in self._entries.values()
            if e.clinic_id == clinic_id and day.contains(e.start_time)
        ]

    async def list_entries_for_staff(
        self, staff_id: UUID, day: ServiceDay
    ) -> list[QueueEntry]:
        await asyncio.sleep(0)
        return [
            e
            for e in self._entries.values()
            if e.staff_id == staff_id and day.contains(e.start_time)
        ]

    def _max_position(self, clinic_id: UUID, day: ServiceDay) -> int:
        return max(
            (
                e.queue_position
                for e in self._entries.values()
                if e.clinic_id == clinic_id and day.contains(e.start_time)
            ),
            default=0,
        )

    async def max_position(self, clinic_id: UUID, day: ServiceDay) -> int | None:
        return self._max_position(clinic_id, day) or None

    async def transition_status(
        self,
        updated: QueueEntry,
        expected_statuses: frozenset[AppointmentStatus],
        day: ServiceDay,
    ) -> QueueEntry | None:
        async with self._lock:
            current = self._entries.get(updated.id)
            if current is None or current.status not in expected_statuses:
                return None
            if updated.status == AppointmentStatus.IN_PROGRESS:
                busy = any(
                    e.id != updated.id
                    and e.staff_id == updated.staff_id
                    and e.status == AppointmentStatus.IN_PROGRESS
                    and day.contains(e.start_time)
                    for e in self._entries.values()
                )
                if busy:
                    return None
            self._entries[updated.id] = updated
            return updated

    async def reinsert_at_tail(
        self,
        entry_id: UUID,
        day: ServiceDay,
        expected_statuses: frozenset[AppointmentStatus],
        build: Callable[[QueueEntry, int], QueueEntry],
    ) -> QueueEntry | None:
        async with self._lock:
            current = self._entries.get(entry_id)
            if (
                current is None
                or not current.is_absent
                or current.status not in expected_statuses
            ):
                return None
            position = PositionAllocator.tail_after(
                self._max_position(current.clinic_id, day)
            )
            updated = build(current, position)
            self._entries[updated.id] = updated
            return updated

    async def save_positions(
        self,
        entries: Sequence[QueueEntry],
        expected_positions: Mapping[UUID, int],
        day: ServiceDay,
    ) -> list[QueueEntry] | None:
        async with self._lock:
            missing = [e.id for e in entries if e.id not in self._entries]
            if missing:
                raise KeyError(f"Unknown queue entries: {missing}")
            for entry_id, position in expected_positions.items():
                current = self._entries[entry_id]
                if not current.is_active or current.queue_position != position:
                    return None
            changed = {e.id for e in entries}
            targets = {e.queue_position for e in entries}
            clinic_ids = {self._entries[e.id].clinic_id for e in entries}
            taken = any(
                e.id not in changed
                and e.clinic_id in clinic_ids
                and e.queue_position in targets
                and day.contains(e.start_time)
                for e in self._entries.values()
            )
            if taken:
                return None
            stored: list[QueueEntry] = []
            for entry in entries:
                merged = replace(
                    self._entries[entry.id],
                    queue_position=entry.queue_position,
                    original_queue_position=entry.original_queue_position,
                    override_by=entry.override_by,
                    updated_at=entry.updated_at,
                )
                self._entries[entry.id] = merged
                stored.append(merged)
            return stored

    async def increment_skip_counts(
        self, entry_ids: Sequence[UUID], at: datetime
    ) -> None:
        async with self._lock:
            for entry_id in entry_ids:
                entry = self._entries.get(entry_id)
                if entry is not None:
                    self._entries[entry_id] = entry.with_skipped(at)

    async def set_wait_estimate(
        self, entry_id: UUID, estimate: WaitEstimate, at: datetime
    ) -> QueueEntry | None:
        async with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                return None
            updated = entry.with_wait_estimate(estimate, at)
            self._entries[entry_id] = updated
            return updated

    # =========================================================================
    # Absence records
    # =========================================================================

    async def save_absence(self, record: AbsenceRecord) -> AbsenceRecord:
        self._absences[record.id] = record
        return record

    async def get_open_absence(self, entry_id: UUID) -> AbsenceRecord | None:
        return next(
            (a for a in self._absences.values() if a.entry_id == entry_id and a.is_open),
            None,
        )

    async def list_open_absences(
        self, clinic_id: UUID, day: ServiceDay
    ) -> list[AbsenceRecord]:
        result: list[AbsenceRecord] = []
        for absence in self._absences.values():
            entry = self._entries.get(absence.entry_id)
            if (
                absence.is_open
                and absence.clinic_id == clinic_id
                and entry is not None
                and day.contains(entry.start_time)
            ):
                result.append(absence)
        return sorted(result, key=lambda a: a.marked_absent_at)

    # =========================================================================
    # Audit records
    # =========================================================================

    async def append_override(self, record: QueueOverrideRecord) -> None:
        self._overrides.append(record)

    async def list_overrides(self, entry_id: UUID) -> list[QueueOverrideRecord]:
        return [r for r in self._overrides if r.entry_id == entry_id]

    # =========================================================================
    # Test helpers
    # =========================================================================

    def add_entry(self, entry: QueueEntry) -> None:
        """Insert an entry directly, bypassing position allocation."""
        self._entries[entry.id] = entry

    def list_absences(self, entry_id: UUID) -> list[AbsenceRecord]:
        """Return every absence record of an entry, open or closed."""
        return [a for a in self._absences.values() if a.entry_id == entry_id]

    @property
    def overrides(self) -> list[QueueOverrideRecord]:
        """All audit records in append order."""
        return list(self._overrides)

    def clear(self) -> None:
        """Clear all stored data."""
        self._entries.clear()
        self._absences.clear()
        self._overrides.clear()

    def count(self) -> int:
        """Return the number of stored entries."""
        return len(self._entries)
