"""Queue audit log service.

Appends one override record per attributable queue action. The audit
trail is diagnostic: nothing in the engine reads it back to make a
decision.

Developer Rules:
1. ONE RECORD PER ACTION - the domain service calls record() exactly once
2. FAIL GRACEFULLY - append errors are logged and counted, never raised
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID, uuid4

from structlog import get_logger

from clinic_queue.application.ports.queue_metrics import QueueMetricsProtocol
from clinic_queue.application.ports.schedule_store import ScheduleStoreProtocol
from clinic_queue.application.ports.time_authority import TimeAuthorityProtocol
from clinic_queue.domain.models.queue_entry import QueueEntry
from clinic_queue.domain.models.queue_override import (
    QueueActionType,
    QueueOverrideRecord,
)

logger = get_logger(__name__)

AUDIT_CHANNEL = "audit"


class QueueAuditLog:
    """Writes queue override records to the schedule store.

    Example:
        audit = QueueAuditLog(store, time_authority)
        ok = await audit.record(
            entry, QueueActionType.CHECK_IN, actor_id="reception-1"
        )
    """

    def __init__(
        self,
        store: ScheduleStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        metrics: QueueMetricsProtocol | None = None,
    ) -> None:
        """Initialize the audit log.

        Args:
            store: Schedule store receiving the records.
            time_authority: Time authority for record timestamps.
            metrics: Optional counters for append failures.
        """
        self._store = store
        self._time = time_authority
        self._metrics = metrics

    async def record(
        self,
        entry: QueueEntry,
        action_type: QueueActionType,
        actor_id: str,
        reason: str | None = None,
        previous_position: int | None = None,
        new_position: int | None = None,
        skipped_entry_ids: Iterable[UUID] = (),
    ) -> bool:
        """Append an audit record for an action on an entry.

        Args:
            entry: The entry acted upon (post-action state).
            action_type: What was done.
            actor_id: Who did it.
            reason: Optional free-text reason.
            previous_position: Position before the action.
            new_position: Position after the action.
            skipped_entry_ids: Entries bypassed by a call.

        Returns:
            True if the record was appended, False otherwise. False never
            indicates that the action itself failed.
        """
        log = logger.bind(
            entry_id=str(entry.id),
            clinic_id=str(entry.clinic_id),
            action_type=action_type.value,
            performed_by=actor_id,
        )
        try:
            override = QueueOverrideRecord(
                id=uuid4(),
                clinic_id=entry.clinic_id,
                entry_id=entry.id,
                action_type=action_type,
                performed_by=actor_id,
                created_at=self._time.utcnow(),
                reason=reason,
                previous_position=previous_position,
                new_position=new_position,
                skipped_entry_ids=tuple(skipped_entry_ids),
            )
            await self._store.append_override(override)
        except Exception as e:
            log.error(
                "queue_audit_append_failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            if self._metrics is not None:
                self._metrics.record_side_effect_failure(AUDIT_CHANNEL)
            return False

        log.debug("queue_audit_recorded", override_id=str(override.id))
        return True
