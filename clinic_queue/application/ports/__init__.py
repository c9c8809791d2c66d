"""Application ports - Abstract interfaces for infrastructure adapters.

This module defines the contracts that infrastructure adapters must implement.

Available ports:
- ScheduleStoreProtocol: Durable entry, absence and audit storage
- QueueEventPublisherProtocol: Fire-and-forget event delivery
- SchedulingPolicyProviderProtocol: Per-clinic scheduling policy
- WaitTimeEstimatorProtocol: Optional opaque wait estimates
- QueueMetricsProtocol: Operation and failure counters
- TimeAuthorityProtocol: Single source of "now"
"""

from clinic_queue.application.ports.event_publisher import QueueEventPublisherProtocol
from clinic_queue.application.ports.policy_provider import (
    SchedulingPolicyProviderProtocol,
)
from clinic_queue.application.ports.queue_metrics import QueueMetricsProtocol
from clinic_queue.application.ports.schedule_store import ScheduleStoreProtocol
from clinic_queue.application.ports.time_authority import TimeAuthorityProtocol
from clinic_queue.application.ports.wait_time_estimator import (
    WaitTimeEstimatorProtocol,
)

__all__: list[str] = [
    "QueueEventPublisherProtocol",
    "QueueMetricsProtocol",
    "ScheduleStoreProtocol",
    "SchedulingPolicyProviderProtocol",
    "TimeAuthorityProtocol",
    "WaitTimeEstimatorProtocol",
]
