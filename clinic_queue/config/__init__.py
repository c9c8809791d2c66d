"""Configuration for the queue scheduling engine."""

from clinic_queue.config.scheduling_policy import (
    DEFAULT_APPOINTMENT_TYPES,
    DEFAULT_SCHEDULING_POLICY,
    SLOTTED_SCHEDULING_POLICY,
    SchedulingPolicy,
)

__all__ = [
    "DEFAULT_APPOINTMENT_TYPES",
    "DEFAULT_SCHEDULING_POLICY",
    "SLOTTED_SCHEDULING_POLICY",
    "SchedulingPolicy",
]
