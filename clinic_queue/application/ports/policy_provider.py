"""Scheduling policy provider port."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from clinic_queue.config.scheduling_policy import SchedulingPolicy


@runtime_checkable
class SchedulingPolicyProviderProtocol(Protocol):
    """Resolves the scheduling policy of a clinic.

    Implementations return a default policy for clinics without one; the
    queue engine never falls back on its own.
    """

    async def get_policy(self, clinic_id: UUID) -> SchedulingPolicy:
        """Return the clinic's scheduling policy."""
        ...
