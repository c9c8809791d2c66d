"""Factories for queue test data.

All times fall on SERVICE_DATE in UTC unless a test says otherwise.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

from clinic_queue.domain.models.queue_entry import (
    AppointmentDraft,
    AppointmentStatus,
    QueueEntry,
)

SERVICE_DATE = date(2026, 1, 15)


def at(hour: int, minute: int = 0, day: date = SERVICE_DATE) -> datetime:
    """UTC timestamp on the test service day."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def make_entry(
    *,
    clinic_id: UUID,
    staff_id: UUID,
    position: int,
    start: datetime | None = None,
    status: AppointmentStatus = AppointmentStatus.WAITING,
    is_present: bool = True,
    duration_minutes: int = 15,
    **overrides: Any,
) -> QueueEntry:
    """Build a queue entry for direct insertion into the store.

    Default start is 09:00 plus 15 minutes per position after the first.
    """
    start_time = start or at(9) + timedelta(minutes=15 * (position - 1))
    values: dict[str, Any] = {
        "id": uuid4(),
        "clinic_id": clinic_id,
        "staff_id": staff_id,
        "start_time": start_time,
        "end_time": start_time + timedelta(minutes=duration_minutes),
        "queue_position": position,
        "status": status,
        "patient_id": uuid4(),
        "is_present": is_present,
        "checked_in_at": at(8) if is_present else None,
        "created_at": at(7),
        "updated_at": at(7),
    }
    values.update(overrides)
    return QueueEntry(**values)


def make_draft(
    *,
    clinic_id: UUID,
    staff_id: UUID,
    start: datetime | None = None,
    duration_minutes: int = 15,
    **overrides: Any,
) -> AppointmentDraft:
    """Build an appointment draft for a registered patient."""
    start_time = start or at(9)
    values: dict[str, Any] = {
        "clinic_id": clinic_id,
        "staff_id": staff_id,
        "start_time": start_time,
        "end_time": start_time + timedelta(minutes=duration_minutes),
        "patient_id": uuid4(),
    }
    values.update(overrides)
    return AppointmentDraft(**values)
