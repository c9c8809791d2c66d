"""Prometheus metrics for the queue engine."""

from clinic_queue.infrastructure.monitoring.queue_metrics import (
    QueueMetricsCollector,
    get_queue_metrics_collector,
    reset_queue_metrics_collector,
)

__all__ = [
    "QueueMetricsCollector",
    "get_queue_metrics_collector",
    "reset_queue_metrics_collector",
]
