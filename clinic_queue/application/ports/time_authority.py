"""Clock port for queue operations.

Booking ("start_time must be in the future"), slotted eligibility and
absence grace deadlines all compare against this clock, never against
datetime.now(). Bootstrap wires SystemTimeAuthority.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Source of the current instant for the queue engine.

    All returned datetimes are timezone-aware. Services stamp entries
    with utcnow(); now() may carry a local zone for display.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, in whatever zone the clock reports."""

    @abstractmethod
    def utcnow(self) -> datetime:
        """Current instant in UTC. Stored timestamps use this."""

    @abstractmethod
    def monotonic(self) -> float:
        """Seconds on a clock that never goes backwards, for durations."""
