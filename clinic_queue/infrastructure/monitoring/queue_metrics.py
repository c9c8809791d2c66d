"""Queue metrics for Prometheus exposition.

Counts queue operations by action, side-effect failures by channel
(audit or event), and claim retries caused by concurrent calls. Rates
are derived in Prometheus with rate() and increase().
"""

from __future__ import annotations

import os
import threading

from prometheus_client import CollectorRegistry, Counter, generate_latest

from clinic_queue.application.ports.queue_metrics import QueueMetricsProtocol

# Thread lock for singleton initialization
_metrics_lock = threading.Lock()


class QueueMetricsCollector(QueueMetricsProtocol):
    """Collects queue engine counters for Prometheus.

    Attributes:
        queue_operations_total: Operations by action and outcome.
        queue_side_effect_failures_total: Failed audit appends and event
            publishes by channel.
        queue_claim_retries_total: Selections retried after a lost claim.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize queue metrics collector.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")
        self._service_name = os.environ.get("SERVICE_NAME", "clinic-queue")

        self.queue_operations_total = Counter(
            name="queue_operations_total",
            documentation="Total queue operations by action and outcome",
            labelnames=["action", "outcome", "service", "environment"],
            registry=self._registry,
        )

        self.queue_side_effect_failures_total = Counter(
            name="queue_side_effect_failures_total",
            documentation="Total failed audit appends and event publishes",
            labelnames=["channel", "service", "environment"],
            registry=self._registry,
        )

        self.queue_claim_retries_total = Counter(
            name="queue_claim_retries_total",
            documentation="Total next-patient selections retried after a lost claim",
            labelnames=["service", "environment"],
            registry=self._registry,
        )

    def record_operation(self, action: str, outcome: str = "success") -> None:
        """Count one queue operation.

        Args:
            action: Queue action type value (e.g. "call", "reorder").
            outcome: Operation outcome label.
        """
        self.queue_operations_total.labels(
            action=action,
            outcome=outcome,
            service=self._service_name,
            environment=self._environment,
        ).inc()

    def record_side_effect_failure(self, channel: str) -> None:
        """Count one failed side effect.

        Args:
            channel: "audit" or "event".
        """
        self.queue_side_effect_failures_total.labels(
            channel=channel,
            service=self._service_name,
            environment=self._environment,
        ).inc()

    def record_claim_retry(self) -> None:
        """Count one lost claim."""
        self.queue_claim_retries_total.labels(
            service=self._service_name,
            environment=self._environment,
        ).inc()

    def get_registry(self) -> CollectorRegistry:
        """Get the collector registry."""
        return self._registry

    def generate_metrics(self) -> bytes:
        """Render the registry in Prometheus text exposition format."""
        return generate_latest(self._registry)


# Singleton instance
_queue_metrics_collector: QueueMetricsCollector | None = None


def get_queue_metrics_collector() -> QueueMetricsCollector:
    """Get the singleton QueueMetricsCollector instance (thread-safe).

    Uses double-checked locking pattern for thread-safe lazy initialization.
    """
    global _queue_metrics_collector
    if _queue_metrics_collector is None:
        with _metrics_lock:
            # Double-check inside lock
            if _queue_metrics_collector is None:
                _queue_metrics_collector = QueueMetricsCollector()
    return _queue_metrics_collector


def reset_queue_metrics_collector() -> None:
    """Reset the singleton collector (for testing only)."""
    global _queue_metrics_collector
    with _metrics_lock:
        _queue_metrics_collector = None
