"""Wait-time estimator port (optional collaborator).

The queue engine stores whatever the estimator returns and never
interprets it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from clinic_queue.domain.models.queue_entry import QueueEntry, WaitEstimate


@runtime_checkable
class WaitTimeEstimatorProtocol(Protocol):
    """Produces an opaque wait estimate for a queued entry."""

    async def estimate(
        self, entry: QueueEntry, schedule: Sequence[QueueEntry]
    ) -> WaitEstimate | None:
        """Estimate the wait of one entry.

        Args:
            entry: The entry to estimate.
            schedule: The entry's clinic-day entries, in position order.

        Returns:
            An estimate, or None if the estimator has nothing to offer.
        """
        ...
