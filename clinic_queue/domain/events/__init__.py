"""Domain events emitted by the queue engine."""

from clinic_queue.domain.events.queue import (
    ENTRY_POSITION_CHANGED_EVENT_TYPE,
    ENTRY_STATUS_CHANGED_EVENT_TYPE,
    PATIENT_CALLED_EVENT_TYPE,
    PATIENT_CHECKED_IN_EVENT_TYPE,
    PATIENT_MARKED_ABSENT_EVENT_TYPE,
    PATIENT_RETURNED_EVENT_TYPE,
    QUEUE_ENTRY_ADDED_EVENT_TYPE,
    QUEUE_EVENT_SCHEMA_VERSION,
    EntryPositionChangedEvent,
    EntryStatusChangedEvent,
    PatientCalledEvent,
    PatientCheckedInEvent,
    PatientMarkedAbsentEvent,
    PatientReturnedEvent,
    QueueEntryAddedEvent,
    QueueEvent,
)

__all__ = [
    "ENTRY_POSITION_CHANGED_EVENT_TYPE",
    "ENTRY_STATUS_CHANGED_EVENT_TYPE",
    "EntryPositionChangedEvent",
    "EntryStatusChangedEvent",
    "PATIENT_CALLED_EVENT_TYPE",
    "PATIENT_CHECKED_IN_EVENT_TYPE",
    "PATIENT_MARKED_ABSENT_EVENT_TYPE",
    "PATIENT_RETURNED_EVENT_TYPE",
    "PatientCalledEvent",
    "PatientCheckedInEvent",
    "PatientMarkedAbsentEvent",
    "PatientReturnedEvent",
    "QUEUE_ENTRY_ADDED_EVENT_TYPE",
    "QUEUE_EVENT_SCHEMA_VERSION",
    "QueueEntryAddedEvent",
    "QueueEvent",
]
