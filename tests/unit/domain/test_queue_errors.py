"""Unit tests for queue domain errors."""

from __future__ import annotations

from uuid import uuid4

import pytest

from clinic_queue.domain.errors import (
    BusinessRuleError,
    ConflictError,
    NoEligibleEntryError,
    NotFoundError,
    ValidationError,
)
from clinic_queue.domain.exceptions import QueueEngineError


class TestQueueErrors:
    @pytest.mark.parametrize(
        "error",
        [
            ValidationError("bad", field="start_time"),
            NotFoundError("QueueEntry", uuid4()),
            NoEligibleEntryError(uuid4(), uuid4(), queue_empty=True),
            BusinessRuleError("nope", rule="entry_terminal"),
            ConflictError("twice"),
        ],
    )
    def test_all_inherit_from_base(self, error: QueueEngineError) -> None:
        assert isinstance(error, QueueEngineError)

    def test_validation_error_field(self) -> None:
        error = ValidationError("start_time is required", field="start_time")
        assert error.field == "start_time"
        assert str(error) == "start_time is required"

    def test_not_found_message(self) -> None:
        entry_id = uuid4()
        error = NotFoundError("QueueEntry", entry_id)
        assert str(error) == f"QueueEntry with ID '{entry_id}' not found"
        assert error.resource_id == entry_id
        assert str(NotFoundError("QueueEntry")) == "QueueEntry not found"

    def test_no_eligible_is_not_found(self) -> None:
        error = NoEligibleEntryError(uuid4(), uuid4(), queue_empty=True)
        assert isinstance(error, NotFoundError)
        assert str(error) == "No patients waiting in queue"

    def test_no_eligible_reports_nominal_next(self) -> None:
        nominal = uuid4()
        error = NoEligibleEntryError(
            uuid4(), uuid4(), queue_empty=False, nominal_next_entry_id=nominal
        )
        assert not error.queue_empty
        assert error.nominal_next_entry_id == nominal
        assert str(nominal) in str(error)

    def test_business_rule_error(self) -> None:
        entry_id = uuid4()
        error = BusinessRuleError("busy", rule="staff_busy", entry_id=entry_id)
        assert error.rule == "staff_busy"
        assert error.entry_id == entry_id

    def test_conflict_error_details_default(self) -> None:
        assert ConflictError("twice").details == {}
