"""Unit tests for PositionAllocator."""

from __future__ import annotations

from datetime import date
from uuid import UUID

import pytest

from clinic_queue.domain.models.queue_entry import AppointmentStatus
from clinic_queue.domain.models.service_day import ServiceDay
from clinic_queue.domain.services.position_allocator import PositionAllocator
from clinic_queue.infrastructure.stubs import InMemoryScheduleStore
from tests.helpers import SERVICE_DATE, at, make_entry

DAY = ServiceDay.for_date(SERVICE_DATE)


class TestPositionAllocator:
    @pytest.mark.asyncio
    async def test_empty_day_starts_at_one(
        self, store: InMemoryScheduleStore, clinic_id: UUID
    ) -> None:
        assert await PositionAllocator(store).next_position(clinic_id, DAY) == 1

    @pytest.mark.asyncio
    async def test_terminal_entries_still_hold_positions(
        self, store: InMemoryScheduleStore, clinic_id: UUID, staff_id: UUID
    ) -> None:
        store.add_entry(make_entry(clinic_id=clinic_id, staff_id=staff_id, position=1))
        store.add_entry(
            make_entry(
                clinic_id=clinic_id,
                staff_id=staff_id,
                position=4,
                status=AppointmentStatus.CANCELLED,
            )
        )
        assert await PositionAllocator(store).next_position(clinic_id, DAY) == 5

    @pytest.mark.asyncio
    async def test_scope_is_clinic_and_day(
        self, store: InMemoryScheduleStore, clinic_id: UUID, staff_id: UUID
    ) -> None:
        next_day = date(2026, 1, 16)
        store.add_entry(
            make_entry(
                clinic_id=clinic_id,
                staff_id=staff_id,
                position=9,
                start=at(9, day=next_day),
            )
        )
        allocator = PositionAllocator(store)
        assert await allocator.next_position(clinic_id, DAY) == 1
        assert await allocator.next_position(
            clinic_id, ServiceDay.for_date(next_day)
        ) == 10

    @pytest.mark.parametrize(("highest", "expected"), [(None, 1), (0, 1), (7, 8)])
    def test_tail_after(self, highest: int | None, expected: int) -> None:
        assert PositionAllocator.tail_after(highest) == expected
