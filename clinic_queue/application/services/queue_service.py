"""Queue domain service - the single entry point for queue operations.

Orchestrates one clinic-day of queue activity: creating appointments,
check-in, calling the next patient, absence and return, completion,
cancellation, manual reordering, and the read models built on top.

The service is stateless. Every call re-reads the schedule store, lets
the clinic's selection strategy decide, applies the change through one
of the store's atomic primitives, then writes one audit record and
publishes one event as side effects.

Constraints:
- At most one in_progress entry per (staff, day)
- Positions are unique and only grow within (clinic, day)
- An absent, not-returned entry is never called
- "Now" comes only from the injected time authority
- Audit/event failures are logged and counted, never raised
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from uuid import UUID, uuid4

from structlog import get_logger

from clinic_queue.application.ports.event_publisher import QueueEventPublisherProtocol
from clinic_queue.application.ports.policy_provider import (
    SchedulingPolicyProviderProtocol,
)
from clinic_queue.application.ports.queue_metrics import QueueMetricsProtocol
from clinic_queue.application.ports.schedule_store import ScheduleStoreProtocol
from clinic_queue.application.ports.time_authority import TimeAuthorityProtocol
from clinic_queue.application.ports.wait_time_estimator import (
    WaitTimeEstimatorProtocol,
)
from clinic_queue.application.services.queue_audit_log import QueueAuditLog
from clinic_queue.application.services.queue_event_emitter import QueueEventEmitter
from clinic_queue.config.scheduling_policy import (
    DEFAULT_SCHEDULING_POLICY,
    SchedulingPolicy,
)
from clinic_queue.domain.errors import (
    BusinessRuleError,
    ConflictError,
    NoEligibleEntryError,
    NotFoundError,
    ValidationError,
)
from clinic_queue.domain.models.absence_record import AbsenceRecord
from clinic_queue.domain.models.daily_schedule import (
    DailySchedule,
    QueuePositionView,
    QueueSummary,
)
from clinic_queue.domain.models.queue_entry import (
    CALLABLE_STATUSES,
    AppointmentDraft,
    AppointmentStatus,
    QueueEntry,
    WaitEstimate,
)
from clinic_queue.domain.models.queue_override import SYSTEM_ACTOR_ID, QueueActionType
from clinic_queue.domain.models.service_day import ServiceDay
from clinic_queue.domain.services.selection_strategy import (
    SelectionStrategy,
    select_strategy,
)

logger = get_logger(__name__)

GRACE_EXPIRED_REASON = "grace_period_expired"

_IN_PROGRESS_ONLY = frozenset({AppointmentStatus.IN_PROGRESS})


class QueueDomainService:
    """Orchestrates queue operations for clinics.

    Example:
        service = QueueDomainService(store, publisher, policies, time_authority)
        entry = await service.create_appointment(draft, actor_id="reception-1")
        await service.check_in_patient(entry.id, actor_id="reception-1")
        called = await service.call_next_patient(
            clinic_id, staff_id, day, actor_id="dr-smith"
        )
    """

    def __init__(
        self,
        store: ScheduleStoreProtocol,
        publisher: QueueEventPublisherProtocol,
        policy_provider: SchedulingPolicyProviderProtocol,
        time_authority: TimeAuthorityProtocol,
        estimator: WaitTimeEstimatorProtocol | None = None,
        metrics: QueueMetricsProtocol | None = None,
    ) -> None:
        """Initialize the queue domain service.

        Args:
            store: Schedule store holding all queue state.
            publisher: Event publisher for queue events.
            policy_provider: Resolves each clinic's scheduling policy.
            time_authority: Single source of "now".
            estimator: Optional wait-time estimator.
            metrics: Optional operation counters.
        """
        self._store = store
        self._policies = policy_provider
        self._time = time_authority
        self._estimator = estimator
        self._metrics = metrics
        self._audit = QueueAuditLog(store, time_authority, metrics)
        self._events = QueueEventEmitter(publisher, time_authority, metrics)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _now(self) -> datetime:
        return self._time.utcnow()

    def _count(self, action: QueueActionType | str) -> None:
        if self._metrics is not None:
            name = action.value if isinstance(action, QueueActionType) else action
            self._metrics.record_operation(name)

    async def _load(self, entry_id: UUID) -> QueueEntry:
        entry = await self._store.get_entry(entry_id)
        if entry is None:
            raise NotFoundError("QueueEntry", entry_id)
        return entry

    @staticmethod
    def _resolve_day(day: date | ServiceDay, policy: SchedulingPolicy) -> ServiceDay:
        if isinstance(day, ServiceDay):
            return day
        if isinstance(day, datetime):
            return ServiceDay.of(day, policy.timezone)
        return ServiceDay.for_date(day, policy.timezone)

    @staticmethod
    def _strategy(policy: SchedulingPolicy) -> SelectionStrategy:
        return select_strategy(
            policy.mode,
            allow_early_call=policy.allow_early_call,
            early_call_window=policy.early_call_window,
        )

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_appointment(
        self,
        draft: AppointmentDraft,
        actor_id: str = SYSTEM_ACTOR_ID,
    ) -> QueueEntry:
        """Create a queue entry at the tail of its clinic-day.

        Booked appointments start scheduled and not present. Walk-ins start
        waiting, present and checked in.

        Args:
            draft: The appointment to create. A missing end time is not
                defaulted here; see AppointmentDraft.with_default_end.
            actor_id: Who created it.

        Returns:
            The stored entry with its assigned position.

        Raises:
            ValidationError: If timing or patient identity is malformed.
        """
        if draft.start_time is None:
            raise ValidationError("start_time is required", field="start_time")
        if draft.end_time is None:
            raise ValidationError("end_time is required", field="end_time")
        if draft.start_time.tzinfo is None or draft.end_time.tzinfo is None:
            raise ValidationError(
                "start_time and end_time must be timezone-aware", field="start_time"
            )
        if draft.start_time >= draft.end_time:
            raise ValidationError("start_time must be before end_time", field="end_time")
        if (draft.patient_id is None) == (draft.guest_patient_id is None):
            raise ValidationError(
                "Exactly one of patient_id or guest_patient_id is required",
                field="patient_id",
            )

        now = self._now()
        if not draft.is_walk_in and draft.start_time <= now:
            raise ValidationError(
                "start_time must be in the future for booked appointments",
                field="start_time",
            )

        policy = await self._policies.get_policy(draft.clinic_id)
        day = ServiceDay.of(draft.start_time, policy.timezone)
        start_time: datetime = draft.start_time
        end_time: datetime = draft.end_time

        def build(position: int) -> QueueEntry:
            return QueueEntry(
                id=uuid4(),
                clinic_id=draft.clinic_id,
                staff_id=draft.staff_id,
                start_time=start_time,
                end_time=end_time,
                queue_position=position,
                status=(
                    AppointmentStatus.WAITING
                    if draft.is_walk_in
                    else AppointmentStatus.SCHEDULED
                ),
                patient_id=draft.patient_id,
                guest_patient_id=draft.guest_patient_id,
                is_present=draft.is_walk_in,
                is_walk_in=draft.is_walk_in,
                appointment_type=draft.appointment_type,
                reason_for_visit=draft.reason_for_visit,
                checked_in_at=now if draft.is_walk_in else None,
                created_at=now,
                updated_at=now,
            )

        entry = await self._store.create_entry(draft.clinic_id, day, build)

        logger.info(
            "queue_entry_created",
            entry_id=str(entry.id),
            clinic_id=str(entry.clinic_id),
            staff_id=str(entry.staff_id),
            queue_position=entry.queue_position,
            is_walk_in=entry.is_walk_in,
            service_day=day.isoformat(),
        )

        await self._audit.record(
            entry,
            QueueActionType.CREATE,
            actor_id,
            new_position=entry.queue_position,
        )
        await self._events.emit_entry_added(entry, actor_id)
        self._count(QueueActionType.CREATE)
        return entry

    # =========================================================================
    # Check-in
    # =========================================================================

    async def check_in_patient(
        self, entry_id: UUID, actor_id: str = SYSTEM_ACTOR_ID
    ) -> QueueEntry:
        """Mark a patient as arrived and waiting.

        Checking in an already waiting patient refreshes checked_in_at.

        Raises:
            NotFoundError: If the entry does not exist.
            BusinessRuleError: If the entry is terminal, in progress, or
                currently absent (use mark_patient_returned instead).
            ConflictError: If the entry changed concurrently.
        """
        entry = await self._load(entry_id)
        if entry.status.is_terminal():
            raise BusinessRuleError(
                f"Cannot check in a {entry.status.value} appointment",
                rule="entry_terminal",
                entry_id=entry.id,
            )
        if entry.status == AppointmentStatus.IN_PROGRESS:
            raise BusinessRuleError(
                "Cannot check in an appointment that is already in progress",
                rule="already_in_progress",
                entry_id=entry.id,
            )
        if entry.is_absent:
            raise BusinessRuleError(
                "Patient is marked absent; record their return instead",
                rule="patient_absent",
                entry_id=entry.id,
            )

        policy = await self._policies.get_policy(entry.clinic_id)
        now = self._now()
        stored = await self._store.transition_status(
            entry.with_checked_in(now),
            CALLABLE_STATUSES,
            entry.service_day(policy.timezone),
        )
        if stored is None:
            raise ConflictError(
                "Appointment changed while checking in", entry_id=entry.id
            )

        logger.info(
            "patient_checked_in",
            entry_id=str(stored.id),
            clinic_id=str(stored.clinic_id),
            queue_position=stored.queue_position,
        )

        await self._audit.record(
            stored,
            QueueActionType.CHECK_IN,
            actor_id,
            previous_position=stored.queue_position,
            new_position=stored.queue_position,
        )
        await self._events.emit_checked_in(stored, actor_id)
        self._count(QueueActionType.CHECK_IN)
        return stored

    # =========================================================================
    # Calling the next patient
    # =========================================================================

    def _select(
        self,
        strategy: SelectionStrategy,
        entries: list[QueueEntry],
        now: datetime,
        skip_absent: bool,
        clinic_id: UUID,
        staff_id: UUID,
    ) -> QueueEntry:
        nominal = strategy.nominal_next(entries)
        if skip_absent:
            chosen = strategy.select_next(entries, now)
        elif nominal is not None and strategy.is_eligible(nominal, now):
            chosen = nominal
        else:
            chosen = None

        if chosen is None:
            raise NoEligibleEntryError(
                clinic_id=clinic_id,
                staff_id=staff_id,
                queue_empty=nominal is None,
                nominal_next_entry_id=nominal.id if nominal is not None else None,
            )
        return chosen

    async def call_next_patient(
        self,
        clinic_id: UUID,
        staff_id: UUID,
        day: date | ServiceDay,
        actor_id: str = SYSTEM_ACTOR_ID,
        skip_absent: bool = True,
    ) -> QueueEntry:
        """Call the next eligible patient of a staff member's day.

        The clinic's strategy orders the staff-day entries and picks the
        first present, non-absent, callable one. If the staff member still
        has a patient in progress, that visit is completed first when the
        policy allows it. The claim is a conditional store transition; a
        lost race triggers a fresh selection, up to the policy's
        max_claim_attempts.

        Args:
            clinic_id: Clinic whose queue is served.
            staff_id: Staff member calling.
            day: Service day (date in the clinic's timezone, or ServiceDay).
            actor_id: Who is calling.
            skip_absent: If False, only the head of the queue may be called.

        Returns:
            The entry now in progress.

        Raises:
            NoEligibleEntryError: If nobody qualifies.
            BusinessRuleError: If a visit is in progress and auto-completion
                is disabled.
            ConflictError: If concurrent calls keep winning the claim.
        """
        policy = await self._policies.get_policy(clinic_id)
        service_day = self._resolve_day(day, policy)
        strategy = self._strategy(policy)
        log = logger.bind(
            clinic_id=str(clinic_id),
            staff_id=str(staff_id),
            service_day=service_day.isoformat(),
            mode=strategy.mode.value,
        )

        completed_entry_id: UUID | None = None
        completable_id: UUID | None = None

        for attempt in range(1, policy.max_claim_attempts + 1):
            now = self._now()
            entries = [
                e
                for e in await self._store.list_entries_for_staff(staff_id, service_day)
                if e.clinic_id == clinic_id
            ]
            current = next(
                (e for e in entries if e.status == AppointmentStatus.IN_PROGRESS), None
            )
            if attempt == 1:
                completable_id = current.id if current is not None else None
            elif current is not None and current.id != completable_id:
                raise ConflictError(
                    "Another patient was called concurrently",
                    entry_id=current.id,
                    details={"staff_id": str(staff_id), "attempt": attempt},
                )

            candidate = self._select(
                strategy, entries, now, skip_absent, clinic_id, staff_id
            )

            if current is not None:
                if not policy.auto_complete_on_call:
                    raise BusinessRuleError(
                        "Staff member already has a patient in progress",
                        rule="staff_busy",
                        entry_id=current.id,
                    )
                completed = await self._store.transition_status(
                    current.with_completed(now, actor_id), _IN_PROGRESS_ONLY, service_day
                )
                if completed is None:
                    log.warning("auto_complete_lost_race", entry_id=str(current.id))
                    if self._metrics is not None:
                        self._metrics.record_claim_retry()
                    continue
                completed_entry_id = completed.id
                log.info("previous_visit_auto_completed", entry_id=str(completed.id))
                await self._audit.record(
                    completed,
                    QueueActionType.COMPLETE,
                    actor_id,
                    reason="auto_completed_on_call",
                )
                await self._events.emit_status_changed(
                    completed,
                    actor_id,
                    previous_status=AppointmentStatus.IN_PROGRESS,
                    reason="auto_completed_on_call",
                )
                self._count(QueueActionType.COMPLETE)

            claimed = await self._store.transition_status(
                candidate.with_called(now, actor_id), CALLABLE_STATUSES, service_day
            )
            if claimed is None:
                log.warning(
                    "claim_lost_race", entry_id=str(candidate.id), attempt=attempt
                )
                if self._metrics is not None:
                    self._metrics.record_claim_retry()
                continue

            bypassed = tuple(e.id for e in strategy.bypassed_by(entries, candidate))
            if bypassed:
                await self._store.increment_skip_counts(bypassed, now)

            log.info(
                "patient_called",
                entry_id=str(claimed.id),
                queue_position=claimed.queue_position,
                skipped_count=len(bypassed),
                attempt=attempt,
            )

            await self._audit.record(
                claimed,
                QueueActionType.CALL,
                actor_id,
                previous_position=claimed.queue_position,
                new_position=claimed.queue_position,
                skipped_entry_ids=bypassed,
            )
            await self._events.emit_called(
                claimed,
                actor_id,
                skipped_entry_ids=bypassed,
                completed_entry_id=completed_entry_id,
            )
            self._count(QueueActionType.CALL)
            return claimed

        log.error("claim_attempts_exhausted", attempts=policy.max_claim_attempts)
        raise ConflictError(
            "Could not claim a patient: concurrent calls kept winning",
            details={
                "staff_id": str(staff_id),
                "attempts": policy.max_claim_attempts,
            },
        )

    # =========================================================================
    # Absence and return
    # =========================================================================

    async def mark_patient_absent(
        self,
        entry_id: UUID,
        actor_id: str = SYSTEM_ACTOR_ID,
        reason: str | None = None,
        grace_period_minutes: int | None = None,
    ) -> QueueEntry:
        """Declare a queued patient absent.

        The entry keeps its status and position but is excluded from
        selection until the patient returns. An absence record stores the
        grace deadline; nothing acts on it until expire_absences runs.

        Args:
            entry_id: The absent patient's entry.
            actor_id: Who declared the absence.
            reason: Optional free-text reason.
            grace_period_minutes: Grace window; None uses the clinic policy.

        Raises:
            ValidationError: If grace_period_minutes is negative.
            NotFoundError: If the entry does not exist.
            BusinessRuleError: If the entry is completed, cancelled or in progress.
            ConflictError: If the patient is already absent.
        """
        if grace_period_minutes is not None and grace_period_minutes < 0:
            raise ValidationError(
                "grace_period_minutes must be non-negative",
                field="grace_period_minutes",
            )

        entry = await self._load(entry_id)
        if entry.status == AppointmentStatus.COMPLETED:
            raise BusinessRuleError(
                "Cannot mark a completed appointment absent",
                rule="entry_terminal",
                entry_id=entry.id,
            )
        if entry.is_absent:
            raise ConflictError("Patient is already marked absent", entry_id=entry.id)
        if entry.status == AppointmentStatus.CANCELLED:
            raise BusinessRuleError(
                "Cannot mark a cancelled appointment absent",
                rule="entry_terminal",
                entry_id=entry.id,
            )
        if entry.status == AppointmentStatus.IN_PROGRESS:
            raise BusinessRuleError(
                "Cannot mark a patient absent while they are being seen",
                rule="already_in_progress",
                entry_id=entry.id,
            )

        policy = await self._policies.get_policy(entry.clinic_id)
        grace = (
            timedelta(minutes=grace_period_minutes)
            if grace_period_minutes is not None
            else policy.grace_period
        )
        now = self._now()
        stored = await self._store.transition_status(
            entry.with_absent(now, actor_id),
            CALLABLE_STATUSES,
            entry.service_day(policy.timezone),
        )
        if stored is None:
            raise ConflictError(
                "Appointment changed while marking absent", entry_id=entry.id
            )

        absence = await self._store.save_absence(
            AbsenceRecord.declare(
                record_id=uuid4(),
                entry_id=stored.id,
                clinic_id=stored.clinic_id,
                at=now,
                grace_period=grace,
                reason=reason,
            )
        )

        logger.info(
            "patient_marked_absent",
            entry_id=str(stored.id),
            clinic_id=str(stored.clinic_id),
            queue_position=stored.queue_position,
            grace_period_ends_at=(
                absence.grace_period_ends_at.isoformat()
                if absence.grace_period_ends_at
                else None
            ),
        )

        await self._audit.record(
            stored,
            QueueActionType.MARK_ABSENT,
            actor_id,
            reason=reason,
            previous_position=stored.queue_position,
            new_position=stored.queue_position,
        )
        await self._events.emit_marked_absent(
            stored,
            actor_id,
            grace_period_ends_at=absence.grace_period_ends_at,
            reason=reason,
        )
        self._count(QueueActionType.MARK_ABSENT)
        return stored

    async def mark_patient_returned(
        self, entry_id: UUID, actor_id: str = SYSTEM_ACTOR_ID
    ) -> QueueEntry:
        """Re-insert an absent patient at the tail of the clinic-day queue.

        Raises:
            NotFoundError: If the entry does not exist.
            BusinessRuleError: If the patient was never absent, already
                returned, or the entry is terminal.
            ConflictError: If the entry changed concurrently.
        """
        entry = await self._load(entry_id)
        if entry.marked_absent_at is None:
            raise BusinessRuleError(
                "Patient was never marked absent",
                rule="never_absent",
                entry_id=entry.id,
            )
        if entry.returned_at is not None:
            raise BusinessRuleError(
                "Patient has already returned",
                rule="already_returned",
                entry_id=entry.id,
            )
        if entry.status.is_terminal():
            raise BusinessRuleError(
                f"Cannot return a {entry.status.value} appointment to the queue",
                rule="entry_terminal",
                entry_id=entry.id,
            )

        policy = await self._policies.get_policy(entry.clinic_id)
        day = entry.service_day(policy.timezone)
        now = self._now()
        stored = await self._store.reinsert_at_tail(
            entry.id,
            day,
            CALLABLE_STATUSES,
            lambda current, position: current.with_returned(now, actor_id, position),
        )
        if stored is None:
            raise ConflictError(
                "Appointment changed while recording return", entry_id=entry.id
            )
        new_position = stored.queue_position

        absence = await self._store.get_open_absence(entry.id)
        if absence is not None:
            await self._store.save_absence(absence.with_returned(now, new_position))

        logger.info(
            "patient_returned",
            entry_id=str(stored.id),
            clinic_id=str(stored.clinic_id),
            previous_position=entry.queue_position,
            new_position=new_position,
        )

        await self._audit.record(
            stored,
            QueueActionType.RETURN,
            actor_id,
            previous_position=entry.queue_position,
            new_position=new_position,
        )
        await self._events.emit_returned(
            stored, actor_id, previous_position=entry.queue_position
        )
        self._count(QueueActionType.RETURN)
        return stored

    async def expire_absences(
        self,
        clinic_id: UUID,
        day: date | ServiceDay,
        actor_id: str = SYSTEM_ACTOR_ID,
    ) -> list[QueueEntry]:
        """Cancel entries whose absence grace period has run out.

        Nothing calls this on a schedule; callers poll it.

        Args:
            clinic_id: Clinic to sweep.
            day: Service day to sweep.
            actor_id: Actor recorded on the cancellations.

        Returns:
            The entries cancelled by this sweep.
        """
        policy = await self._policies.get_policy(clinic_id)
        service_day = self._resolve_day(day, policy)
        now = self._now()
        log = logger.bind(clinic_id=str(clinic_id), service_day=service_day.isoformat())

        cancelled: list[QueueEntry] = []
        for absence in await self._store.list_open_absences(clinic_id, service_day):
            if not absence.is_grace_expired(now):
                continue
            entry = await self._store.get_entry(absence.entry_id)
            if entry is None or not entry.is_active or not entry.is_absent:
                continue

            stored = await self._store.transition_status(
                entry.with_cancelled(now, actor_id, reason=GRACE_EXPIRED_REASON),
                frozenset({entry.status}),
                service_day,
            )
            if stored is None:
                log.warning("absence_expiry_lost_race", entry_id=str(entry.id))
                continue
            await self._store.save_absence(absence.with_auto_cancelled())

            log.info(
                "absence_grace_expired",
                entry_id=str(stored.id),
                absence_id=str(absence.id),
            )
            await self._audit.record(
                stored,
                QueueActionType.AUTO_CANCEL,
                actor_id,
                reason=GRACE_EXPIRED_REASON,
                previous_position=stored.queue_position,
            )
            await self._events.emit_status_changed(
                stored,
                actor_id,
                previous_status=entry.status,
                reason=GRACE_EXPIRED_REASON,
            )
            self._count(QueueActionType.AUTO_CANCEL)
            cancelled.append(stored)

        return cancelled

    # =========================================================================
    # Completion and cancellation
    # =========================================================================

    async def complete_appointment(
        self, entry_id: UUID, actor_id: str = SYSTEM_ACTOR_ID
    ) -> QueueEntry:
        """Finish the visit of an in-progress entry.

        Raises:
            NotFoundError: If the entry does not exist.
            ConflictError: If the entry is already completed. The stored
                entry, including its first actual_end_time, is untouched.
            BusinessRuleError: If the entry is cancelled or not in progress.
        """
        entry = await self._load(entry_id)
        if entry.status == AppointmentStatus.COMPLETED:
            raise ConflictError("Appointment is already completed", entry_id=entry.id)
        if entry.status == AppointmentStatus.CANCELLED:
            raise BusinessRuleError(
                "Cannot complete a cancelled appointment",
                rule="entry_terminal",
                entry_id=entry.id,
            )
        if entry.status != AppointmentStatus.IN_PROGRESS:
            raise BusinessRuleError(
                "Only an appointment in progress can be completed",
                rule="not_in_progress",
                entry_id=entry.id,
            )

        policy = await self._policies.get_policy(entry.clinic_id)
        now = self._now()
        stored = await self._store.transition_status(
            entry.with_completed(now, actor_id),
            _IN_PROGRESS_ONLY,
            entry.service_day(policy.timezone),
        )
        if stored is None:
            raise ConflictError(
                "Appointment changed while completing", entry_id=entry.id
            )

        logger.info(
            "appointment_completed",
            entry_id=str(stored.id),
            clinic_id=str(stored.clinic_id),
        )
        await self._audit.record(
            stored,
            QueueActionType.COMPLETE,
            actor_id,
            previous_position=stored.queue_position,
            new_position=stored.queue_position,
        )
        await self._events.emit_status_changed(
            stored, actor_id, previous_status=entry.status
        )
        self._count(QueueActionType.COMPLETE)
        return stored

    async def cancel_appointment(
        self,
        entry_id: UUID,
        actor_id: str = SYSTEM_ACTOR_ID,
        reason: str | None = None,
    ) -> QueueEntry:
        """Cancel a non-terminal entry.

        Raises:
            NotFoundError: If the entry does not exist.
            ConflictError: If the entry is already cancelled.
            BusinessRuleError: If the entry is completed.
        """
        entry = await self._load(entry_id)
        if entry.status == AppointmentStatus.CANCELLED:
            raise ConflictError("Appointment is already cancelled", entry_id=entry.id)
        if entry.status == AppointmentStatus.COMPLETED:
            raise BusinessRuleError(
                "Cannot cancel a completed appointment",
                rule="entry_terminal",
                entry_id=entry.id,
            )

        policy = await self._policies.get_policy(entry.clinic_id)
        now = self._now()
        stored = await self._store.transition_status(
            entry.with_cancelled(now, actor_id, reason=reason),
            frozenset({entry.status}),
            entry.service_day(policy.timezone),
        )
        if stored is None:
            raise ConflictError(
                "Appointment changed while cancelling", entry_id=entry.id
            )

        logger.info(
            "appointment_cancelled",
            entry_id=str(stored.id),
            clinic_id=str(stored.clinic_id),
            previous_status=entry.status.value,
        )
        await self._audit.record(
            stored,
            QueueActionType.CANCEL,
            actor_id,
            reason=reason,
            previous_position=stored.queue_position,
        )
        await self._events.emit_status_changed(
            stored, actor_id, previous_status=entry.status, reason=reason
        )
        self._count(QueueActionType.CANCEL)
        return stored

    # =========================================================================
    # Manual reordering
    # =========================================================================

    async def reorder_queue(
        self,
        entry_id: UUID,
        new_position: int,
        actor_id: str = SYSTEM_ACTOR_ID,
        reason: str | None = None,
    ) -> QueueEntry:
        """Move an entry to another position in its clinic-day.

        Requesting the current position is a silent no-op: the entry is
        returned unchanged and no audit record or event is produced. If
        another active entry holds the target position, the two swap.

        Args:
            entry_id: Entry to move.
            new_position: Target position (>= 1).
            actor_id: Who moved it.
            reason: Optional free-text reason.

        Raises:
            ValidationError: If new_position is below 1.
            NotFoundError: If the entry does not exist.
            BusinessRuleError: If the entry is terminal, or the target
                position belongs to a completed or cancelled entry.
            ConflictError: If either position changed since it was read.
        """
        if new_position < 1:
            raise ValidationError(
                "Queue position must be greater than 0", field="new_position"
            )

        entry = await self._load(entry_id)
        if entry.status.is_terminal():
            raise BusinessRuleError(
                f"Cannot reorder a {entry.status.value} appointment",
                rule="entry_terminal",
                entry_id=entry.id,
            )
        if entry.queue_position == new_position:
            return entry

        policy = await self._policies.get_policy(entry.clinic_id)
        day = entry.service_day(policy.timezone)
        holder = next(
            (
                e
                for e in await self._store.list_entries_for_clinic(entry.clinic_id, day)
                if e.id != entry.id and e.queue_position == new_position
            ),
            None,
        )
        if holder is not None and not holder.is_active:
            raise BusinessRuleError(
                f"Position {new_position} belongs to a {holder.status.value} appointment",
                rule="position_closed",
                entry_id=entry.id,
            )

        now = self._now()
        changes = [entry.with_position(new_position, now, actor_id)]
        expected = {entry.id: entry.queue_position}
        if holder is not None:
            changes.append(holder.with_position(entry.queue_position, now, actor_id))
            expected[holder.id] = new_position
        saved = await self._store.save_positions(changes, expected, day)
        if saved is None:
            raise ConflictError(
                "Queue positions changed while reordering",
                entry_id=entry.id,
                details={"new_position": new_position},
            )
        stored = saved[0]

        logger.info(
            "queue_reordered",
            entry_id=str(stored.id),
            clinic_id=str(stored.clinic_id),
            previous_position=entry.queue_position,
            new_position=new_position,
            displaced_entry_id=str(holder.id) if holder is not None else None,
        )
        await self._audit.record(
            stored,
            QueueActionType.REORDER,
            actor_id,
            reason=reason,
            previous_position=entry.queue_position,
            new_position=new_position,
        )
        await self._events.emit_position_changed(
            stored,
            actor_id,
            previous_position=entry.queue_position,
            displaced_entry_id=holder.id if holder is not None else None,
            reason=reason,
        )
        self._count(QueueActionType.REORDER)
        return stored

    # =========================================================================
    # Wait estimates
    # =========================================================================

    async def record_wait_estimate(
        self, entry_id: UUID, estimate: WaitEstimate
    ) -> QueueEntry:
        """Store estimator output on an entry verbatim.

        Raises:
            NotFoundError: If the entry does not exist.
        """
        stored = await self._store.set_wait_estimate(entry_id, estimate, self._now())
        if stored is None:
            raise NotFoundError("QueueEntry", entry_id)
        logger.debug(
            "wait_estimate_recorded",
            entry_id=str(entry_id),
            estimated_minutes=estimate.estimated_minutes,
            source=estimate.source,
        )
        return stored

    async def refresh_wait_estimate(self, entry_id: UUID) -> QueueEntry:
        """Ask the estimator for a fresh estimate and store it.

        Without an estimator, or when it has nothing to offer, the entry
        is returned unchanged.

        Raises:
            NotFoundError: If the entry does not exist.
        """
        entry = await self._load(entry_id)
        if self._estimator is None or not entry.is_active:
            return entry

        policy = await self._policies.get_policy(entry.clinic_id)
        schedule = sorted(
            await self._store.list_entries_for_clinic(
                entry.clinic_id, entry.service_day(policy.timezone)
            ),
            key=lambda e: e.queue_position,
        )
        estimate = await self._estimator.estimate(entry, schedule)
        if estimate is None:
            return entry
        return await self.record_wait_estimate(entry.id, estimate)

    # =========================================================================
    # Read models
    # =========================================================================

    async def get_queue_entry(self, entry_id: UUID) -> QueueEntry:
        """Return one entry.

        Raises:
            NotFoundError: If the entry does not exist.
        """
        return await self._load(entry_id)

    async def get_queue_entries(
        self, clinic_id: UUID, day: date | ServiceDay
    ) -> list[QueueEntry]:
        """Return every entry of a clinic-day in position order."""
        policy = await self._policies.get_policy(clinic_id)
        entries = await self._store.list_entries_for_clinic(
            clinic_id, self._resolve_day(day, policy)
        )
        return sorted(entries, key=lambda e: e.queue_position)

    async def get_daily_schedule(
        self,
        staff_id: UUID,
        day: date | ServiceDay,
        clinic_id: UUID | None = None,
    ) -> DailySchedule:
        """Return a staff member's day in the clinic mode's order.

        When clinic_id is omitted it is taken from the staff member's
        entries; a staff member with no entries gets the default policy.
        """
        if clinic_id is not None:
            policy = await self._policies.get_policy(clinic_id)
            service_day = self._resolve_day(day, policy)
            entries = [
                e
                for e in await self._store.list_entries_for_staff(staff_id, service_day)
                if e.clinic_id == clinic_id
            ]
        else:
            policy = DEFAULT_SCHEDULING_POLICY
            service_day = self._resolve_day(day, policy)
            entries = await self._store.list_entries_for_staff(staff_id, service_day)
            if entries:
                policy = await self._policies.get_policy(entries[0].clinic_id)
                resolved = self._resolve_day(day, policy)
                if resolved != service_day:
                    service_day = resolved
                    entries = await self._store.list_entries_for_staff(
                        staff_id, service_day
                    )

        strategy = self._strategy(policy)
        return DailySchedule(
            mode=strategy.mode,
            service_day=service_day,
            entries=tuple(strategy.order(entries)),
        )

    async def get_queue_summary(
        self, clinic_id: UUID, day: date | ServiceDay
    ) -> QueueSummary:
        """Count a clinic-day's entries by status."""
        policy = await self._policies.get_policy(clinic_id)
        service_day = self._resolve_day(day, policy)
        entries = await self._store.list_entries_for_clinic(clinic_id, service_day)

        def count(status: AppointmentStatus) -> int:
            return sum(1 for e in entries if e.status == status)

        waits = [
            (e.actual_start_time - e.checked_in_at).total_seconds() / 60
            for e in entries
            if e.status == AppointmentStatus.COMPLETED
            and e.checked_in_at is not None
            and e.actual_start_time is not None
        ]
        scheduled = count(AppointmentStatus.SCHEDULED)
        waiting = count(AppointmentStatus.WAITING)
        return QueueSummary(
            clinic_id=clinic_id,
            service_day=service_day,
            total_appointments=len(entries),
            scheduled=scheduled,
            waiting=waiting,
            in_progress=count(AppointmentStatus.IN_PROGRESS),
            completed=count(AppointmentStatus.COMPLETED),
            cancelled=count(AppointmentStatus.CANCELLED),
            absent=sum(1 for e in entries if e.is_absent and e.is_active),
            current_queue_length=scheduled + waiting,
            average_wait_minutes=round(sum(waits) / len(waits)) if waits else 0,
        )

    async def get_queue_position(
        self,
        clinic_id: UUID,
        patient_id: UUID,
        day: date | ServiceDay,
    ) -> QueuePositionView | None:
        """Return a patient's rank among the clinic-day's waiting entries.

        Absent patients are not ranked until they return.

        Returns:
            The position view, or None if the patient is not waiting.
        """
        policy = await self._policies.get_policy(clinic_id)
        strategy = self._strategy(policy)
        entries = await self._store.list_entries_for_clinic(
            clinic_id, self._resolve_day(day, policy)
        )
        queue = [
            e
            for e in strategy.order(entries)
            if e.is_waiting_in_queue and not e.is_excluded_as_absent
        ]
        for index, entry in enumerate(queue):
            if entry.patient_key == patient_id:
                return QueuePositionView(
                    entry_id=entry.id,
                    position=index + 1,
                    total=len(queue),
                    patients_ahead=index,
                    wait_estimate=entry.wait_estimate,
                )
        return None
