"""Domain models for the queue scheduling engine.

Contains the queue entry aggregate, absence and audit records, and the
read models returned by schedule queries. Models are immutable and
contain no infrastructure dependencies.
"""

from clinic_queue.domain.models.absence_record import AbsenceRecord
from clinic_queue.domain.models.daily_schedule import (
    DailySchedule,
    QueueMode,
    QueuePositionView,
    QueueSummary,
)
from clinic_queue.domain.models.queue_entry import (
    CALLABLE_STATUSES,
    STATUS_TRANSITION_MATRIX,
    TERMINAL_STATUSES,
    AppointmentDraft,
    AppointmentStatus,
    AppointmentType,
    QueueEntry,
    SkipReason,
    WaitEstimate,
)
from clinic_queue.domain.models.queue_override import (
    SYSTEM_ACTOR_ID,
    QueueActionType,
    QueueOverrideRecord,
)
from clinic_queue.domain.models.service_day import ServiceDay

__all__: list[str] = [
    "AbsenceRecord",
    "AppointmentDraft",
    "AppointmentStatus",
    "AppointmentType",
    "CALLABLE_STATUSES",
    "DailySchedule",
    "QueueActionType",
    "QueueEntry",
    "QueueMode",
    "QueueOverrideRecord",
    "QueuePositionView",
    "QueueSummary",
    "STATUS_TRANSITION_MATRIX",
    "SYSTEM_ACTOR_ID",
    "ServiceDay",
    "SkipReason",
    "TERMINAL_STATUSES",
    "WaitEstimate",
]
