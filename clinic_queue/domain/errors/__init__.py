"""Domain errors for the queue scheduling engine.

All exceptions inherit from QueueEngineError.
"""

from clinic_queue.domain.errors.queue import (
    BusinessRuleError,
    ConflictError,
    NoEligibleEntryError,
    NotFoundError,
    ValidationError,
)

__all__: list[str] = [
    "BusinessRuleError",
    "ConflictError",
    "NoEligibleEntryError",
    "NotFoundError",
    "ValidationError",
]
