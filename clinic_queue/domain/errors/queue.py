"""Queue domain errors.

This module defines the typed failures raised by the queue domain service.
Each failure class is distinguishable so callers can map it to their own
user-facing messaging.

Constraints:
- Errors are raised synchronously and never swallowed by the service
- Only audit and event side effects may fail silently (logged instead)
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from clinic_queue.domain.exceptions import QueueEngineError


class ValidationError(QueueEngineError):
    """Raised when operation input is malformed.

    Examples: missing or inverted start/end times, a booked appointment
    in the past, a queue position below 1.

    Attributes:
        field: Name of the offending input field, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description.
            field: Name of the offending input field.
        """
        self.field = field
        super().__init__(message)


class NotFoundError(QueueEngineError):
    """Raised when a referenced resource does not exist.

    Attributes:
        resource: Kind of resource looked up (e.g. "QueueEntry").
        resource_id: Identifier that was looked up, if any.
    """

    def __init__(
        self,
        resource: str,
        resource_id: UUID | str | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            resource: Kind of resource looked up.
            resource_id: Identifier that was looked up.
            message: Optional override for the default message.
        """
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            if resource_id is not None:
                message = f"{resource} with ID '{resource_id}' not found"
            else:
                message = f"{resource} not found"
        super().__init__(message)


class NoEligibleEntryError(NotFoundError):
    """Raised when no queue entry qualifies to be called next.

    Distinguishes an empty queue from a queue whose remaining patients
    are all absent or not yet present. In the latter case the nominal
    next entry is reported so the caller can offer to mark that patient
    present or absent.

    Attributes:
        clinic_id: Clinic whose queue was examined.
        staff_id: Staff member calling the next patient.
        queue_empty: True if there are no active waiting entries at all.
        nominal_next_entry_id: First active entry in strategy order, if any.
    """

    def __init__(
        self,
        clinic_id: UUID,
        staff_id: UUID,
        queue_empty: bool,
        nominal_next_entry_id: UUID | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            clinic_id: Clinic whose queue was examined.
            staff_id: Staff member calling the next patient.
            queue_empty: Whether the active queue is empty.
            nominal_next_entry_id: First active entry in strategy order.
        """
        self.clinic_id = clinic_id
        self.staff_id = staff_id
        self.queue_empty = queue_empty
        self.nominal_next_entry_id = nominal_next_entry_id
        if queue_empty:
            message = "No patients waiting in queue"
        else:
            message = (
                "No present patient is eligible to be called "
                f"(nominal next: {nominal_next_entry_id})"
            )
        super().__init__(resource="EligibleQueueEntry", message=message)


class BusinessRuleError(QueueEngineError):
    """Raised when an operation is not permitted in the entry's current state.

    Attributes:
        rule: Stable machine-readable rule code.
        entry_id: Entry the operation targeted, if any.
    """

    def __init__(
        self,
        message: str,
        rule: str,
        entry_id: UUID | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description.
            rule: Machine-readable rule code.
            entry_id: Entry the operation targeted.
        """
        self.rule = rule
        self.entry_id = entry_id
        super().__init__(message)


class ConflictError(QueueEngineError):
    """Raised when an operation would duplicate an already-applied state.

    Also raised when a concurrent caller repeatedly wins the race for the
    same queue entries and the claim retry budget is exhausted.

    Attributes:
        entry_id: Entry the operation targeted, if any.
        details: Optional structured context for diagnostics.
    """

    def __init__(
        self,
        message: str,
        entry_id: UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description.
            entry_id: Entry the operation targeted.
            details: Optional structured context.
        """
        self.entry_id = entry_id
        self.details = details or {}
        super().__init__(message)
