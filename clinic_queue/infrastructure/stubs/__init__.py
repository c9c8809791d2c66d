"""In-memory implementations of the application ports.

Used by tests and by the development wiring in clinic_queue.bootstrap.
"""

from clinic_queue.infrastructure.stubs.event_bus_stub import (
    ALL_EVENT_TYPES,
    InMemoryEventBus,
)
from clinic_queue.infrastructure.stubs.policy_provider_stub import (
    InMemorySchedulingPolicyProvider,
)
from clinic_queue.infrastructure.stubs.schedule_store_stub import InMemoryScheduleStore
from clinic_queue.infrastructure.stubs.wait_time_estimator_stub import (
    BasicWaitTimeEstimator,
)

__all__ = [
    "ALL_EVENT_TYPES",
    "BasicWaitTimeEstimator",
    "InMemoryEventBus",
    "InMemoryScheduleStore",
    "InMemorySchedulingPolicyProvider",
]
