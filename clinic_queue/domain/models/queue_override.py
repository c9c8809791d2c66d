"""Queue override audit record model.

One record per attributable queue action. Records are append-only and
purely diagnostic: no scheduling decision ever reads them back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

# Actor identity used when an operation has no human performer
SYSTEM_ACTOR_ID: str = "system"


class QueueActionType(str, Enum):
    """Kind of attributable queue action."""

    CREATE = "create"
    CHECK_IN = "check_in"
    CALL = "call"
    MARK_ABSENT = "mark_absent"
    RETURN = "return"
    COMPLETE = "complete"
    CANCEL = "cancel"
    REORDER = "reorder"
    AUTO_CANCEL = "auto_cancel"


@dataclass(frozen=True, eq=True)
class QueueOverrideRecord:
    """Audit record for one attributable queue action.

    Attributes:
        id: Unique record identifier.
        clinic_id: Owning clinic.
        entry_id: The entry acted upon.
        action_type: What was done.
        performed_by: Actor identity as supplied by the caller.
        created_at: When the action happened.
        reason: Free-text reason, if any.
        previous_position: Entry position before the action.
        new_position: Entry position after the action.
        skipped_entry_ids: Entries bypassed by a call, in strategy order.
    """

    id: UUID
    clinic_id: UUID
    entry_id: UUID
    action_type: QueueActionType
    performed_by: str
    created_at: datetime
    reason: str | None = None
    previous_position: int | None = None
    new_position: int | None = None
    skipped_entry_ids: tuple[UUID, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert record to dict for storage/transmission."""
        return {
            "id": str(self.id),
            "clinic_id": str(self.clinic_id),
            "entry_id": str(self.entry_id),
            "action_type": self.action_type.value,
            "performed_by": self.performed_by,
            "created_at": self.created_at.isoformat(),
            "reason": self.reason,
            "previous_position": self.previous_position,
            "new_position": self.new_position,
            "skipped_entry_ids": [str(i) for i in self.skipped_entry_ids],
        }
