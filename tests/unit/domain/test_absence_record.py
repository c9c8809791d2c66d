"""Unit tests for AbsenceRecord."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from clinic_queue.domain.models.absence_record import AbsenceRecord
from tests.helpers import at


def _declare(grace_minutes: int | None = 15) -> AbsenceRecord:
    return AbsenceRecord.declare(
        record_id=uuid4(),
        entry_id=uuid4(),
        clinic_id=uuid4(),
        at=at(9),
        grace_period=timedelta(minutes=grace_minutes) if grace_minutes is not None else None,
        reason="not in waiting room",
    )


class TestAbsenceRecord:
    def test_declare_computes_deadline(self) -> None:
        record = _declare()
        assert record.grace_period_ends_at == at(9, 15)
        assert record.is_open
        assert record.reason == "not in waiting room"

    def test_declare_without_grace_has_no_deadline(self) -> None:
        record = _declare(None)
        assert record.grace_period_ends_at is None
        assert not record.is_grace_expired(at(23))

    def test_grace_expiry_is_inclusive(self) -> None:
        record = _declare()
        assert not record.is_grace_expired(at(9, 14))
        assert record.is_grace_expired(at(9, 15))

    def test_return_closes_record(self) -> None:
        returned = _declare().with_returned(at(9, 10), new_position=6)
        assert not returned.is_open
        assert returned.new_position == 6
        assert not returned.is_grace_expired(at(10))

    def test_auto_cancel_closes_record(self) -> None:
        cancelled = _declare().with_auto_cancelled()
        assert cancelled.auto_cancelled
        assert not cancelled.is_open

    def test_closed_record_cannot_close_again(self) -> None:
        cancelled = _declare().with_auto_cancelled()
        with pytest.raises(ValueError, match="already closed"):
            cancelled.with_returned(at(10), new_position=3)
        with pytest.raises(ValueError, match="already closed"):
            cancelled.with_auto_cancelled()
