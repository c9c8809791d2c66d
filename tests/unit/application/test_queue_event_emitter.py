"""Unit tests for QueueEventEmitter."""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from clinic_queue.application.services.queue_event_emitter import QueueEventEmitter
from clinic_queue.domain.events import (
    PATIENT_CALLED_EVENT_TYPE,
    PatientCalledEvent,
    PatientMarkedAbsentEvent,
    QueueEvent,
)
from clinic_queue.domain.models.queue_entry import AppointmentStatus, QueueEntry
from clinic_queue.infrastructure.monitoring.queue_metrics import QueueMetricsCollector
from clinic_queue.infrastructure.stubs import InMemoryEventBus
from tests.helpers import FakeTimeAuthority, at, make_entry, metric_total


class BrokenPublisher:
    async def publish(self, event: QueueEvent) -> None:
        raise ConnectionError("broker down")


@pytest.fixture
def entry(clinic_id: UUID, staff_id: UUID) -> QueueEntry:
    return make_entry(clinic_id=clinic_id, staff_id=staff_id, position=1)


class TestQueueEventEmitter:
    @pytest.mark.asyncio
    async def test_emit_called(
        self,
        event_bus: InMemoryEventBus,
        fake_time_authority: FakeTimeAuthority,
        entry: QueueEntry,
    ) -> None:
        emitter = QueueEventEmitter(event_bus, fake_time_authority)
        skipped = (uuid4(),)

        assert await emitter.emit_called(entry, "dr-1", skipped_entry_ids=skipped)

        (event,) = event_bus.published_of_type(PATIENT_CALLED_EVENT_TYPE)
        assert isinstance(event, PatientCalledEvent)
        assert event.skipped_entry_ids == skipped
        assert event.emitted_at == at(8)
        assert event.actor_id == "dr-1"

    @pytest.mark.asyncio
    async def test_each_emit_gets_fresh_event_id(
        self,
        event_bus: InMemoryEventBus,
        fake_time_authority: FakeTimeAuthority,
        entry: QueueEntry,
    ) -> None:
        emitter = QueueEventEmitter(event_bus, fake_time_authority)
        await emitter.emit_checked_in(entry, "kiosk")
        await emitter.emit_checked_in(entry, "kiosk")
        first, second = event_bus.published
        assert first.event_id != second.event_id

    @pytest.mark.asyncio
    async def test_emit_marked_absent(
        self,
        event_bus: InMemoryEventBus,
        fake_time_authority: FakeTimeAuthority,
        entry: QueueEntry,
    ) -> None:
        emitter = QueueEventEmitter(event_bus, fake_time_authority)
        await emitter.emit_marked_absent(
            entry, "r", grace_period_ends_at=at(8, 15), reason="late"
        )
        (event,) = event_bus.published
        assert isinstance(event, PatientMarkedAbsentEvent)
        assert event.grace_period_ends_at == at(8, 15)

    @pytest.mark.asyncio
    async def test_publish_failure_is_swallowed_and_counted(
        self,
        fake_time_authority: FakeTimeAuthority,
        metrics: QueueMetricsCollector,
        entry: QueueEntry,
    ) -> None:
        emitter = QueueEventEmitter(BrokenPublisher(), fake_time_authority, metrics)

        ok = await emitter.emit_status_changed(
            entry, "system", previous_status=AppointmentStatus.SCHEDULED
        )

        assert not ok
        assert (
            metric_total(
                metrics.get_registry(),
                "queue_side_effect_failures_total",
                channel="event",
            )
            == 1
        )
