"""
Application layer - Queue use cases and orchestration.

This layer contains:
- The queue domain service (single entry point for queue operations)
- Audit and event side channels
- Port definitions (abstract interfaces for infrastructure)

IMPORT RULES:
- CAN import from: domain, config
- CANNOT import from: infrastructure (except stubs and observability), bootstrap
"""

from clinic_queue.application.ports import (
    QueueEventPublisherProtocol,
    QueueMetricsProtocol,
    ScheduleStoreProtocol,
    SchedulingPolicyProviderProtocol,
    TimeAuthorityProtocol,
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
