"""Unit tests for queue domain events."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from uuid import uuid4

import pytest

from clinic_queue.domain.events import (
    ENTRY_POSITION_CHANGED_EVENT_TYPE,
    ENTRY_STATUS_CHANGED_EVENT_TYPE,
    PATIENT_CALLED_EVENT_TYPE,
    QUEUE_ENTRY_ADDED_EVENT_TYPE,
    QUEUE_EVENT_SCHEMA_VERSION,
    EntryPositionChangedEvent,
    EntryStatusChangedEvent,
    PatientCalledEvent,
    PatientCheckedInEvent,
    PatientMarkedAbsentEvent,
    PatientReturnedEvent,
    QueueEntryAddedEvent,
)
from clinic_queue.domain.models.queue_entry import AppointmentStatus, QueueEntry
from tests.helpers import at, make_entry


@pytest.fixture
def entry() -> QueueEntry:
    return make_entry(clinic_id=uuid4(), staff_id=uuid4(), position=3)


class TestEventEnvelope:
    def test_envelope_is_copied_from_entry(self, entry: QueueEntry) -> None:
        event_id = uuid4()
        event = PatientCheckedInEvent.from_entry(event_id, entry, "reception", at(9))

        assert event.event_id == event_id
        assert event.entry_id == entry.id
        assert event.clinic_id == entry.clinic_id
        assert event.staff_id == entry.staff_id
        assert event.patient_id == entry.patient_id
        assert event.actor_id == "reception"
        assert event.emitted_at == at(9)
        assert event.schema_version == QUEUE_EVENT_SCHEMA_VERSION

    def test_guest_identity_in_envelope(self) -> None:
        guest_id = uuid4()
        guest = make_entry(
            clinic_id=uuid4(),
            staff_id=uuid4(),
            position=1,
            patient_id=None,
            guest_patient_id=guest_id,
        )
        event = PatientCheckedInEvent.from_entry(uuid4(), guest, "kiosk", at(9))
        assert event.patient_id == guest_id

    def test_events_are_immutable(self, entry: QueueEntry) -> None:
        event = PatientCheckedInEvent.from_entry(uuid4(), entry, "r", at(9))
        with pytest.raises(FrozenInstanceError):
            event.actor_id = "other"  # type: ignore[misc]


class TestEventSerialization:
    def test_added_event(self, entry: QueueEntry) -> None:
        data = QueueEntryAddedEvent.from_entry(uuid4(), entry, "r", at(8)).to_dict()

        assert data["event_type"] == QUEUE_ENTRY_ADDED_EVENT_TYPE
        assert data["entry_id"] == str(entry.id)
        assert data["emitted_at"] == at(8).isoformat()
        assert data["payload"] == {
            "queue_position": 3,
            "start_time": entry.start_time.isoformat(),
            "is_walk_in": False,
        }

    def test_called_event_lists_skipped_entries(self, entry: QueueEntry) -> None:
        skipped = (uuid4(), uuid4())
        completed = uuid4()
        data = PatientCalledEvent.from_entry(
            uuid4(),
            entry,
            "dr-1",
            at(9),
            skipped_entry_ids=skipped,
            completed_entry_id=completed,
        ).to_dict()

        assert data["event_type"] == PATIENT_CALLED_EVENT_TYPE
        assert data["payload"]["skipped_entry_ids"] == [str(i) for i in skipped]
        assert data["payload"]["completed_entry_id"] == str(completed)

    def test_called_event_without_completion(self, entry: QueueEntry) -> None:
        payload = PatientCalledEvent.from_entry(uuid4(), entry, "dr-1", at(9)).payload()
        assert payload["skipped_entry_ids"] == []
        assert payload["completed_entry_id"] is None

    def test_marked_absent_event(self, entry: QueueEntry) -> None:
        payload = PatientMarkedAbsentEvent.from_entry(
            uuid4(), entry, "r", at(9), grace_period_ends_at=at(9, 15), reason="late"
        ).payload()
        assert payload == {
            "queue_position": 3,
            "grace_period_ends_at": at(9, 15).isoformat(),
            "reason": "late",
        }

    def test_returned_event(self, entry: QueueEntry) -> None:
        returned = entry.with_absent(at(9), "r").with_returned(at(9, 5), "r", 8)
        event = PatientReturnedEvent.from_entry(
            uuid4(), returned, "r", at(9, 5), previous_position=3
        )
        assert event.payload() == {"previous_position": 3, "new_position": 8}

    def test_status_changed_event(self, entry: QueueEntry) -> None:
        cancelled = entry.with_cancelled(at(9), "r", reason="no show")
        data = EntryStatusChangedEvent.from_entry(
            uuid4(),
            cancelled,
            "system",
            at(9),
            previous_status=AppointmentStatus.WAITING,
            reason="no show",
        ).to_dict()
        assert data["event_type"] == ENTRY_STATUS_CHANGED_EVENT_TYPE
        assert data["payload"] == {
            "previous_status": "waiting",
            "new_status": "cancelled",
            "reason": "no show",
        }

    def test_position_changed_event(self, entry: QueueEntry) -> None:
        displaced = uuid4()
        moved = entry.with_position(1, at(9), "r")
        data = EntryPositionChangedEvent.from_entry(
            uuid4(),
            moved,
            "r",
            at(9),
            previous_position=3,
            displaced_entry_id=displaced,
            reason="urgent",
        ).to_dict()
        assert data["event_type"] == ENTRY_POSITION_CHANGED_EVENT_TYPE
        assert data["payload"] == {
            "previous_position": 3,
            "new_position": 1,
            "displaced_entry_id": str(displaced),
            "reason": "urgent",
        }
