"""
Domain layer - Pure queue scheduling logic.

This layer contains:
- Domain models (queue entries, absence records, audit records)
- Domain events (queue lifecycle events)
- Domain services (selection strategies, position allocation)
- Domain exceptions

This layer must NOT import from infrastructure or bootstrap.
Port interfaces from clinic_queue.application.ports may be referenced
for type checking only.
"""

from clinic_queue.domain.errors import (
    BusinessRuleError,
    ConflictError,
    NoEligibleEntryError,
    NotFoundError,
    ValidationError,
)
from clinic_queue.domain.exceptions import QueueEngineError

__all__: list[str] = [
    "QueueEngineError",
    "ValidationError",
    "NotFoundError",
    "NoEligibleEntryError",
    "BusinessRuleError",
    "ConflictError",
]
