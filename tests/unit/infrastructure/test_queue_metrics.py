"""Unit tests for QueueMetricsCollector."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry

from clinic_queue.application.ports.queue_metrics import QueueMetricsProtocol
from clinic_queue.infrastructure.monitoring import (
    QueueMetricsCollector,
    get_queue_metrics_collector,
    reset_queue_metrics_collector,
)
from tests.helpers import metric_total


@pytest.fixture
def collector() -> QueueMetricsCollector:
    return QueueMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def fresh_singleton() -> Iterator[None]:
    reset_queue_metrics_collector()
    yield
    reset_queue_metrics_collector()


class TestQueueMetricsCollector:
    def test_implements_protocol(self, collector: QueueMetricsCollector) -> None:
        assert isinstance(collector, QueueMetricsProtocol)

    def test_record_operation(self, collector: QueueMetricsCollector) -> None:
        collector.record_operation("call")
        collector.record_operation("call")
        collector.record_operation("call", outcome="conflict")

        registry = collector.get_registry()
        assert metric_total(registry, "queue_operations_total", action="call") == 3
        assert (
            metric_total(
                registry, "queue_operations_total", action="call", outcome="success"
            )
            == 2
        )

    def test_side_effects_and_retries(self, collector: QueueMetricsCollector) -> None:
        collector.record_side_effect_failure("audit")
        collector.record_side_effect_failure("event")
        collector.record_claim_retry()

        registry = collector.get_registry()
        assert (
            metric_total(registry, "queue_side_effect_failures_total", channel="audit")
            == 1
        )
        assert metric_total(registry, "queue_side_effect_failures_total") == 2
        assert metric_total(registry, "queue_claim_retries_total") == 1

    def test_service_label_from_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SERVICE_NAME", "front-desk")
        collector = QueueMetricsCollector(registry=CollectorRegistry())
        collector.record_claim_retry()
        assert (
            metric_total(
                collector.get_registry(),
                "queue_claim_retries_total",
                service="front-desk",
            )
            == 1
        )

    def test_generate_metrics(self, collector: QueueMetricsCollector) -> None:
        collector.record_operation("reorder")
        output = collector.generate_metrics().decode()
        assert "queue_operations_total" in output
        assert 'action="reorder"' in output


class TestQueueMetricsSingleton:
    def test_singleton(self, fresh_singleton: None) -> None:
        assert get_queue_metrics_collector() is get_queue_metrics_collector()

    def test_reset(self, fresh_singleton: None) -> None:
        first = get_queue_metrics_collector()
        reset_queue_metrics_collector()
        assert get_queue_metrics_collector() is not first
