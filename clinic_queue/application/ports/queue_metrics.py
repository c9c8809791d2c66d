"""Queue metrics port.

Lets application services count operations and side-effect failures
without depending on a metrics backend.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class QueueMetricsProtocol(Protocol):
    """Counters recorded by the queue engine."""

    def record_operation(self, action: str, outcome: str = "success") -> None:
        """Count one queue operation by action and outcome."""
        ...

    def record_side_effect_failure(self, channel: str) -> None:
        """Count one failed audit append or event publish."""
        ...

    def record_claim_retry(self) -> None:
        """Count one lost claim that caused a selection retry."""
        ...
