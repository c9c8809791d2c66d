"""
Pytest configuration and shared fixtures for clinic queue tests.

Testing Standards:
- Async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Time is always a FakeTimeAuthority; the default clock is 08:00 UTC on
  the test service day, before the first 09:00 slot
- Unit tests go in tests/unit/, scenario tests in tests/integration/
"""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from prometheus_client import CollectorRegistry

from clinic_queue.application.services.queue_service import QueueDomainService
from clinic_queue.infrastructure.monitoring.queue_metrics import QueueMetricsCollector
from clinic_queue.infrastructure.stubs import (
    InMemoryEventBus,
    InMemoryScheduleStore,
    InMemorySchedulingPolicyProvider,
)
from tests.helpers import FakeTimeAuthority, at


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from clinic_queue import __version__

    return __version__


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Clock frozen at 08:00 UTC on the test service day."""
    return FakeTimeAuthority(frozen_at=at(8))


@pytest.fixture
def clinic_id() -> UUID:
    return uuid4()


@pytest.fixture
def staff_id() -> UUID:
    return uuid4()


@pytest.fixture
def store() -> InMemoryScheduleStore:
    return InMemoryScheduleStore()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def policy_provider() -> InMemorySchedulingPolicyProvider:
    return InMemorySchedulingPolicyProvider()


@pytest.fixture
def metrics() -> QueueMetricsCollector:
    """Metrics collector with an isolated registry."""
    return QueueMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def queue_service(
    store: InMemoryScheduleStore,
    event_bus: InMemoryEventBus,
    policy_provider: InMemorySchedulingPolicyProvider,
    fake_time_authority: FakeTimeAuthority,
    metrics: QueueMetricsCollector,
) -> QueueDomainService:
    """Queue service wired to in-memory adapters."""
    return QueueDomainService(
        store=store,
        publisher=event_bus,
        policy_provider=policy_provider,
        time_authority=fake_time_authority,
        metrics=metrics,
    )
