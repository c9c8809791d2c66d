"""Bootstrap wiring for the queue domain service.

Composition root: the only place that picks concrete adapters. Anything
not supplied falls back to the in-memory stubs, the system clock and the
process-wide Prometheus collector.

Environment Variables:
- QUEUE_POLICY_FILE: Optional YAML file of per-clinic scheduling policies
"""

from __future__ import annotations

import os
from pathlib import Path

from structlog import get_logger

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
from clinic_queue.application.services.queue_service import QueueDomainService
from clinic_queue.config.scheduling_policy import SchedulingPolicy
from clinic_queue.infrastructure.adapters import SystemTimeAuthority
from clinic_queue.infrastructure.monitoring import get_queue_metrics_collector
from clinic_queue.infrastructure.stubs import (
    InMemoryEventBus,
    InMemoryScheduleStore,
    InMemorySchedulingPolicyProvider,
)

logger = get_logger(__name__)

POLICY_FILE_ENV = "QUEUE_POLICY_FILE"


def create_policy_provider(
    policy_file: Path | str | None = None,
) -> SchedulingPolicyProviderProtocol:
    """Build the policy provider from a YAML file or the environment.

    Args:
        policy_file: YAML policy file. Defaults to $QUEUE_POLICY_FILE.

    Returns:
        Provider loaded from the file, or one whose default policy comes
        from QUEUE_* environment variables.
    """
    path = policy_file or os.environ.get(POLICY_FILE_ENV)
    if path:
        return InMemorySchedulingPolicyProvider.from_yaml(path)
    return InMemorySchedulingPolicyProvider(default=SchedulingPolicy.from_environment())


def create_queue_service(
    store: ScheduleStoreProtocol | None = None,
    publisher: QueueEventPublisherProtocol | None = None,
    policy_provider: SchedulingPolicyProviderProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    estimator: WaitTimeEstimatorProtocol | None = None,
    metrics: QueueMetricsProtocol | None = None,
) -> QueueDomainService:
    """Wire a QueueDomainService from supplied or default adapters."""
    store = store or InMemoryScheduleStore()
    service = QueueDomainService(
        store=store,
        publisher=publisher or InMemoryEventBus(),
        policy_provider=policy_provider or create_policy_provider(),
        time_authority=time_authority or SystemTimeAuthority(),
        estimator=estimator,
        metrics=metrics or get_queue_metrics_collector(),
    )
    logger.debug(
        "queue_service_created",
        store=type(store).__name__,
        estimator=type(estimator).__name__ if estimator else None,
    )
    return service


_queue_service: QueueDomainService | None = None


def get_queue_service() -> QueueDomainService:
    """Get the process-wide queue service, creating it with defaults."""
    global _queue_service
    if _queue_service is None:
        _queue_service = create_queue_service()
    return _queue_service


def set_queue_service(service: QueueDomainService) -> None:
    """Set custom queue service (testing/override)."""
    global _queue_service
    _queue_service = service


def reset_queue_service() -> None:
    """Reset the queue service singleton (testing cleanup)."""
    global _queue_service
    _queue_service = None
