"""Unit tests for InMemoryEventBus."""

from __future__ import annotations

from uuid import uuid4

import pytest

from clinic_queue.application.ports.event_publisher import QueueEventPublisherProtocol
from clinic_queue.domain.events import (
    PATIENT_CALLED_EVENT_TYPE,
    PATIENT_CHECKED_IN_EVENT_TYPE,
    PatientCalledEvent,
    PatientCheckedInEvent,
    QueueEvent,
)
from clinic_queue.infrastructure.stubs import ALL_EVENT_TYPES, InMemoryEventBus
from tests.helpers import at, make_entry


def _checked_in() -> PatientCheckedInEvent:
    entry = make_entry(clinic_id=uuid4(), staff_id=uuid4(), position=1)
    return PatientCheckedInEvent.from_entry(uuid4(), entry, "kiosk", at(8))


def _called() -> PatientCalledEvent:
    entry = make_entry(clinic_id=uuid4(), staff_id=uuid4(), position=1)
    return PatientCalledEvent.from_entry(uuid4(), entry, "dr-1", at(9))


class TestInMemoryEventBus:
    def test_implements_protocol(self, event_bus: InMemoryEventBus) -> None:
        assert isinstance(event_bus, QueueEventPublisherProtocol)

    @pytest.mark.asyncio
    async def test_dispatches_by_type(self, event_bus: InMemoryEventBus) -> None:
        called: list[QueueEvent] = []
        everything: list[QueueEvent] = []

        async def on_called(event: QueueEvent) -> None:
            called.append(event)

        async def on_any(event: QueueEvent) -> None:
            everything.append(event)

        event_bus.subscribe(PATIENT_CALLED_EVENT_TYPE, on_called)
        event_bus.subscribe(ALL_EVENT_TYPES, on_any)

        await event_bus.publish(_checked_in())
        await event_bus.publish(_called())

        assert [e.event_type for e in called] == [PATIENT_CALLED_EVENT_TYPE]
        assert len(everything) == 2
        assert event_bus.count() == 2
        assert len(event_bus.published_of_type(PATIENT_CHECKED_IN_EVENT_TYPE)) == 1

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self, event_bus: InMemoryEventBus) -> None:
        received: list[QueueEvent] = []

        async def broken(event: QueueEvent) -> None:
            raise RuntimeError("display offline")

        async def healthy(event: QueueEvent) -> None:
            received.append(event)

        event_bus.subscribe(ALL_EVENT_TYPES, broken)
        event_bus.subscribe(ALL_EVENT_TYPES, healthy)

        await event_bus.publish(_called())

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, event_bus: InMemoryEventBus) -> None:
        received: list[QueueEvent] = []

        async def handler(event: QueueEvent) -> None:
            received.append(event)

        event_bus.subscribe(PATIENT_CALLED_EVENT_TYPE, handler)
        event_bus.unsubscribe(PATIENT_CALLED_EVENT_TYPE, handler)
        event_bus.unsubscribe(PATIENT_CALLED_EVENT_TYPE, handler)
        await event_bus.publish(_called())

        assert received == []
        event_bus.clear()
        assert event_bus.published == []
