"""Test helpers for clinic queue tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    make_entry / make_draft / at: Queue test data factories
    metric_total: Read counters back from an isolated Prometheus registry

Usage:
    from tests.helpers import FakeTimeAuthority, make_entry
"""

from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.metrics import metric_total
from tests.helpers.queue_factories import SERVICE_DATE, at, make_draft, make_entry

__all__ = [
    "FakeTimeAuthority",
    "SERVICE_DATE",
    "at",
    "make_draft",
    "make_entry",
    "metric_total",
]
