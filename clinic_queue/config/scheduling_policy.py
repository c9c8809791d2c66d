"""Per-clinic scheduling policy.

Every default the queue engine relies on (mode, grace period, visit
duration, early-call rules, claim retries) lives in this one value
object. Call sites never re-declare fallbacks.

Environment Variables:
- QUEUE_MODE: flow | slotted, legacy fluid/fixed/hybrid accepted (default: flow)
- QUEUE_GRACE_PERIOD_MINUTES: Default absence grace period (default: 15)
- QUEUE_APPOINTMENT_DURATION_MINUTES: Default visit length (default: 15)
- QUEUE_ALLOW_EARLY_CALL: Slotted mode early calls, true/false (default: true)
- QUEUE_EARLY_CALL_WINDOW_MINUTES: Early-call window, unset for unlimited
- QUEUE_AUTO_COMPLETE_ON_CALL: Complete the current visit on call (default: true)
- QUEUE_MAX_CLAIM_ATTEMPTS: Selection retries on a lost claim (default: 3)
- QUEUE_TIMEZONE: IANA timezone of the service day (default: UTC)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clinic_queue.domain.models.daily_schedule import QueueMode
from clinic_queue.domain.models.queue_entry import AppointmentType

DEFAULT_APPOINTMENT_TYPES: tuple[str, ...] = tuple(t.value for t in AppointmentType)


def _get_int_env(key: str, default: int | None) -> int | None:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_required_int_env(key: str, default: int) -> int:
    """Like _get_int_env, for settings that always have a value.

    An explicit 0 is returned as 0 so that validation can reject it.
    """
    value = _get_int_env(key, default)
    return default if value is None else value


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    return default


@dataclass(frozen=True)
class SchedulingPolicy:
    """Scheduling rules for one clinic.

    Attributes:
        mode: Queue discipline. Legacy names are normalized on construction.
        default_grace_period_minutes: Absence grace window when the caller
            supplies none. Default: 15.
        default_appointment_duration_minutes: Visit length used to fill a
            missing end time. Default: 15.
        allow_early_call: Slotted mode may call present patients before
            their slot. Default: True.
        early_call_window_minutes: How far ahead of the slot an early call
            may happen. None means unlimited.
        auto_complete_on_call: Calling the next patient completes the staff
            member's current visit. Default: True.
        max_claim_attempts: Selection retries when a concurrent call wins
            the claim. Default: 3.
        timezone: IANA timezone in which service days are interpreted.
        appointment_types: Visit kinds offered by the clinic.
    """

    mode: QueueMode = QueueMode.FLOW
    default_grace_period_minutes: int = 15
    default_appointment_duration_minutes: int = 15
    allow_early_call: bool = True
    early_call_window_minutes: int | None = None
    auto_complete_on_call: bool = True
    max_claim_attempts: int = 3
    timezone: str = "UTC"
    appointment_types: tuple[str, ...] = field(default=DEFAULT_APPOINTMENT_TYPES)

    def __post_init__(self) -> None:
        """Validate and normalize configuration values."""
        object.__setattr__(self, "mode", QueueMode.parse(self.mode))
        object.__setattr__(self, "appointment_types", tuple(self.appointment_types))

        if self.default_grace_period_minutes < 0:
            raise ValueError(
                f"default_grace_period_minutes must be non-negative, "
                f"got {self.default_grace_period_minutes}"
            )
        if self.default_appointment_duration_minutes < 1:
            raise ValueError(
                f"default_appointment_duration_minutes must be positive, "
                f"got {self.default_appointment_duration_minutes}"
            )
        if self.early_call_window_minutes is not None and self.early_call_window_minutes < 0:
            raise ValueError(
                f"early_call_window_minutes must be non-negative, "
                f"got {self.early_call_window_minutes}"
            )
        if self.max_claim_attempts < 1:
            raise ValueError(
                f"max_claim_attempts must be at least 1, got {self.max_claim_attempts}"
            )
        if not self.appointment_types:
            raise ValueError("appointment_types must not be empty")
        if self.timezone.upper() != "UTC":
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown timezone '{self.timezone}'") from None

    @property
    def grace_period(self) -> timedelta:
        """Default absence grace window."""
        return timedelta(minutes=self.default_grace_period_minutes)

    @property
    def default_duration(self) -> timedelta:
        """Default visit length."""
        return timedelta(minutes=self.default_appointment_duration_minutes)

    @property
    def early_call_window(self) -> timedelta | None:
        """Early-call window, or None for unlimited."""
        if self.early_call_window_minutes is None:
            return None
        return timedelta(minutes=self.early_call_window_minutes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchedulingPolicy:
        """Create a policy from a mapping, ignoring unknown keys.

        Args:
            data: Mapping of field name to value, as read from YAML.

        Returns:
            SchedulingPolicy with the given values over the defaults.
        """
        known = {name for name in cls.__dataclass_fields__}
        values = {k: v for k, v in data.items() if k in known}
        if "appointment_types" in values:
            values["appointment_types"] = tuple(values["appointment_types"])
        return cls(**values)

    @classmethod
    def from_environment(cls) -> SchedulingPolicy:
        """Create policy from environment variables with defaults.

        Returns:
            SchedulingPolicy with values from environment or defaults.
        """
        return cls(
            mode=QueueMode.parse(os.environ.get("QUEUE_MODE", QueueMode.FLOW.value)),
            default_grace_period_minutes=_get_required_int_env(
                "QUEUE_GRACE_PERIOD_MINUTES", 15
            ),
            default_appointment_duration_minutes=_get_required_int_env(
                "QUEUE_APPOINTMENT_DURATION_MINUTES", 15
            ),
            allow_early_call=_get_bool_env("QUEUE_ALLOW_EARLY_CALL", True),
            early_call_window_minutes=_get_int_env("QUEUE_EARLY_CALL_WINDOW_MINUTES", None),
            auto_complete_on_call=_get_bool_env("QUEUE_AUTO_COMPLETE_ON_CALL", True),
            max_claim_attempts=_get_required_int_env("QUEUE_MAX_CLAIM_ATTEMPTS", 3),
            timezone=os.environ.get("QUEUE_TIMEZONE", "UTC"),
        )


# Default policy used when a clinic has none configured
DEFAULT_SCHEDULING_POLICY = SchedulingPolicy()

# Fixed-slot clinic with early calls limited to half an hour
SLOTTED_SCHEDULING_POLICY = SchedulingPolicy(
    mode=QueueMode.SLOTTED,
    early_call_window_minutes=30,
)
