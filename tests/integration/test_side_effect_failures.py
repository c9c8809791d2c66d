"""Queue operations keep working when audit and event side effects fail."""

from __future__ import annotations

from uuid import UUID

import pytest

from clinic_queue.application.services.queue_service import QueueDomainService
from clinic_queue.domain.events import QueueEvent
from clinic_queue.domain.models import AppointmentStatus
from clinic_queue.infrastructure.monitoring.queue_metrics import QueueMetricsCollector
from clinic_queue.infrastructure.stubs import (
    InMemoryScheduleStore,
    InMemorySchedulingPolicyProvider,
)
from tests.helpers import SERVICE_DATE, FakeTimeAuthority, at, make_draft, metric_total

pytestmark = pytest.mark.integration


class AuditlessStore(InMemoryScheduleStore):
    async def append_override(self, record):  # type: ignore[no-untyped-def]
        raise RuntimeError("audit table unavailable")


class DownBroker:
    async def publish(self, event: QueueEvent) -> None:
        raise ConnectionError("broker down")


@pytest.fixture
def degraded_store() -> AuditlessStore:
    return AuditlessStore()


@pytest.fixture
def degraded_service(
    degraded_store: AuditlessStore,
    fake_time_authority: FakeTimeAuthority,
    metrics: QueueMetricsCollector,
) -> QueueDomainService:
    return QueueDomainService(
        store=degraded_store,
        publisher=DownBroker(),
        policy_provider=InMemorySchedulingPolicyProvider(),
        time_authority=fake_time_authority,
        metrics=metrics,
    )


class TestDegradedSideEffects:
    @pytest.mark.asyncio
    async def test_lifecycle_completes_without_audit_or_events(
        self,
        degraded_service: QueueDomainService,
        degraded_store: AuditlessStore,
        fake_time_authority: FakeTimeAuthority,
        metrics: QueueMetricsCollector,
        clinic_id: UUID,
        staff_id: UUID,
    ) -> None:
        entry = await degraded_service.create_appointment(
            make_draft(clinic_id=clinic_id, staff_id=staff_id)
        )
        await degraded_service.check_in_patient(entry.id)
        called = await degraded_service.call_next_patient(
            clinic_id, staff_id, SERVICE_DATE
        )
        fake_time_authority.set_time(at(8, 20))
        done = await degraded_service.complete_appointment(called.id)

        assert done.status == AppointmentStatus.COMPLETED
        stored = await degraded_store.get_entry(entry.id)
        assert stored == done
        assert degraded_store.overrides == []

        registry = metrics.get_registry()
        # create, check-in, call, complete
        failures = "queue_side_effect_failures_total"
        assert metric_total(registry, failures, channel="audit") == 4
        assert metric_total(registry, failures, channel="event") == 4
        assert metric_total(registry, "queue_operations_total") == 4

    @pytest.mark.asyncio
    async def test_absence_round_trip_survives(
        self,
        degraded_service: QueueDomainService,
        degraded_store: AuditlessStore,
        clinic_id: UUID,
        staff_id: UUID,
    ) -> None:
        first = await degraded_service.create_appointment(
            make_draft(clinic_id=clinic_id, staff_id=staff_id, start=at(9))
        )
        await degraded_service.create_appointment(
            make_draft(clinic_id=clinic_id, staff_id=staff_id, start=at(9, 15))
        )
        await degraded_service.check_in_patient(first.id)

        absent = await degraded_service.mark_patient_absent(first.id, reason="stepped out")
        returned = await degraded_service.mark_patient_returned(first.id)

        assert absent.is_absent
        assert returned.queue_position == 3
        assert returned.is_present
        assert degraded_store.list_absences(first.id)[0].returned_at is not None
