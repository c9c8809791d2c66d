"""Service day value object.

A service day is the (date, timezone) pair that scopes one clinic-day of
queue activity. Entries never store a date; their day is always a
projection of their start timestamp into the clinic's timezone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo


@dataclass(frozen=True, eq=True)
class ServiceDay:
    """One calendar day of queue activity in a clinic's local timezone.

    Attributes:
        day: The calendar date.
        tz: Timezone in which the date is interpreted (default UTC).
    """

    day: date
    tz: tzinfo = field(default=timezone.utc)

    @classmethod
    def of(cls, moment: datetime, tz: tzinfo | str | None = None) -> ServiceDay:
        """Project a timestamp onto its service day.

        Args:
            moment: A timezone-aware timestamp. Naive values are taken as UTC.
            tz: Target timezone (tzinfo or IANA name). Defaults to UTC.

        Returns:
            The ServiceDay that contains the timestamp.
        """
        zone = _resolve_tz(tz)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return cls(day=moment.astimezone(zone).date(), tz=zone)

    @classmethod
    def for_date(cls, day: date, tz: tzinfo | str | None = None) -> ServiceDay:
        """Build a service day from a date and an optional timezone."""
        return cls(day=day, tz=_resolve_tz(tz))

    @property
    def start(self) -> datetime:
        """First instant of the day (inclusive)."""
        return datetime.combine(self.day, time.min, tzinfo=self.tz)

    @property
    def end(self) -> datetime:
        """First instant of the following day (exclusive)."""
        return datetime.combine(self.day + timedelta(days=1), time.min, tzinfo=self.tz)

    def contains(self, moment: datetime) -> bool:
        """Check whether a timestamp falls within this day.

        Args:
            moment: Timestamp to test. Naive values are taken as UTC.

        Returns:
            True if start <= moment < end.
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return self.start <= moment < self.end

    def isoformat(self) -> str:
        """Return the date part in ISO 8601 format."""
        return self.day.isoformat()


def _resolve_tz(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return timezone.utc
    if isinstance(tz, str):
        return timezone.utc if tz.upper() == "UTC" else ZoneInfo(tz)
    return tz
