"""Basic wait-time estimator.

Estimates wait as the number of patients ahead times a per-visit
duration. Good enough for development and tests; production estimators
plug in through WaitTimeEstimatorProtocol.
"""

from __future__ import annotations

from collections.abc import Sequence

from clinic_queue.application.ports.time_authority import TimeAuthorityProtocol
from clinic_queue.application.ports.wait_time_estimator import (
    WaitTimeEstimatorProtocol,
)
from clinic_queue.domain.models.queue_entry import QueueEntry, WaitEstimate

BASIC_ESTIMATE_SOURCE = "basic"


class BasicWaitTimeEstimator(WaitTimeEstimatorProtocol):
    """Patients-ahead times average visit length."""

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        minutes_per_patient: int = 15,
    ) -> None:
        self._time = time_authority
        self._minutes_per_patient = minutes_per_patient

    async def estimate(
        self, entry: QueueEntry, schedule: Sequence[QueueEntry]
    ) -> WaitEstimate | None:
        if not entry.is_waiting_in_queue:
            return None
        ahead = sum(
            1
            for e in schedule
            if e.id != entry.id
            and e.staff_id == entry.staff_id
            and e.is_waiting_in_queue
            and not e.is_excluded_as_absent
            and e.queue_position < entry.queue_position
        )
        minutes = ahead * self._minutes_per_patient
        return WaitEstimate(
            estimated_minutes=minutes,
            source=BASIC_ESTIMATE_SOURCE,
            produced_at=self._time.utcnow(),
            details={"patients_ahead": ahead},
        )
