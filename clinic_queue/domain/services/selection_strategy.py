"""Next-patient selection strategies.

Each queue mode maps to exactly one strategy. A strategy orders a
staff-day's entries and picks the first eligible one; it never mutates
anything and never reads the clock itself.

Constraints:
- An absent entry that has not returned is never eligible, in any mode
- Only present entries in a callable status (scheduled or waiting) qualify
- Selection returns None when nothing qualifies
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from clinic_queue.domain.models.daily_schedule import QueueMode
from clinic_queue.domain.models.queue_entry import QueueEntry


class SelectionStrategy(ABC):
    """Base contract for choosing the next patient to call.

    Subclasses supply the ordering rule and may narrow eligibility.
    """

    mode: QueueMode

    @abstractmethod
    def order(self, entries: Iterable[QueueEntry]) -> list[QueueEntry]:
        """Return the entries in this mode's queue order."""
        ...

    def is_eligible(self, entry: QueueEntry, now: datetime) -> bool:
        """Check whether an entry may be called right now.

        Args:
            entry: Candidate entry.
            now: Current time.

        Returns:
            True if callable, not excluded as absent, and physically present.
        """
        return (
            entry.status.is_callable()
            and not entry.is_excluded_as_absent
            and entry.is_present
        )

    def nominal_next(self, entries: Iterable[QueueEntry]) -> QueueEntry | None:
        """Return the head of the waiting queue, ignoring presence and time.

        This is the patient staff would expect to call next; callers use
        it to offer marking that patient present or absent.
        """
        return next(
            (e for e in self.order(entries) if e.status.is_callable()), None
        )

    def select_next(
        self, entries: Iterable[QueueEntry], now: datetime
    ) -> QueueEntry | None:
        """Pick the first eligible entry in queue order.

        Args:
            entries: The staff-day's entries, in any order.
            now: Current time.

        Returns:
            The entry to call, or None if nothing qualifies.
        """
        return next((e for e in self.order(entries) if self.is_eligible(e, now)), None)

    def bypassed_by(
        self, entries: Sequence[QueueEntry], chosen: QueueEntry
    ) -> list[QueueEntry]:
        """Return waiting entries ordered ahead of the chosen one.

        Args:
            entries: The staff-day's entries.
            chosen: The entry being called.

        Returns:
            Callable entries preceding the chosen entry in queue order.
        """
        bypassed: list[QueueEntry] = []
        for entry in self.order(entries):
            if entry.id == chosen.id:
                break
            if entry.status.is_callable():
                bypassed.append(entry)
        return bypassed


class FlowSelectionStrategy(SelectionStrategy):
    """Continuous first-come-first-served queue ordered by position."""

    mode = QueueMode.FLOW

    def order(self, entries: Iterable[QueueEntry]) -> list[QueueEntry]:
        return sorted(entries, key=lambda e: e.queue_position)


class SlottedSelectionStrategy(SelectionStrategy):
    """Fixed time grid ordered by scheduled start, then position.

    A present later slot overtakes an absent earlier slot. Entries whose
    slot has not arrived are eligible only when early calls are allowed,
    optionally limited to a window before the slot.
    """

    mode = QueueMode.SLOTTED

    def __init__(
        self,
        allow_early_call: bool = True,
        early_call_window: timedelta | None = None,
    ) -> None:
        self._allow_early_call = allow_early_call
        self._early_call_window = early_call_window

    def order(self, entries: Iterable[QueueEntry]) -> list[QueueEntry]:
        return sorted(entries, key=lambda e: (e.start_time, e.queue_position))

    def is_eligible(self, entry: QueueEntry, now: datetime) -> bool:
        if not super().is_eligible(entry, now):
            return False
        if entry.start_time <= now:
            return True
        if not self._allow_early_call:
            return False
        if self._early_call_window is None:
            return True
        return entry.start_time - now <= self._early_call_window


def select_strategy(
    mode: QueueMode | str,
    *,
    allow_early_call: bool = True,
    early_call_window: timedelta | None = None,
) -> SelectionStrategy:
    """Build the strategy for a queue mode.

    Args:
        mode: Queue mode or mode name (legacy names accepted).
        allow_early_call: Slotted mode: call present patients before their slot.
        early_call_window: Slotted mode: how early, None for unlimited.

    Returns:
        The matching SelectionStrategy.

    Raises:
        ValueError: If the mode is not recognized.
    """
    resolved = QueueMode.parse(mode)
    if resolved is QueueMode.SLOTTED:
        return SlottedSelectionStrategy(
            allow_early_call=allow_early_call,
            early_call_window=early_call_window,
        )
    return FlowSelectionStrategy()
