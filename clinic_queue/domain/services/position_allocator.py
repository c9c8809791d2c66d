"""Queue position allocation for a clinic-day."""

from __future__ import annotations

from uuid import UUID

from clinic_queue.application.ports.schedule_store import ScheduleStoreProtocol
from clinic_queue.domain.models.service_day import ServiceDay


class PositionAllocator:
    """Hands out tail positions within a (clinic, day) scope.

    Positions only grow. Terminal entries keep their positions and still
    count towards the maximum, so a position is never reused. Stores
    apply tail_after() inside their atomic create and re-insert
    primitives; next_position() is a read-only preview.
    """

    def __init__(self, store: ScheduleStoreProtocol) -> None:
        self._store = store

    @staticmethod
    def tail_after(highest: int | None) -> int:
        """Position following the highest assigned one, or 1 for an empty day."""
        return (highest or 0) + 1

    async def next_position(self, clinic_id: UUID, day: ServiceDay) -> int:
        """Return the position after the highest one assigned in scope.

        Args:
            clinic_id: Clinic scope.
            day: Service day scope.

        Returns:
            Max assigned position + 1, or 1 for an empty day.
        """
        return self.tail_after(await self._store.max_position(clinic_id, day))
