"""
Unit Tests for the Prometheus Metrics Collector

Counters live in the global registry, so assertions compare values before
and after each action.
"""

import pytest
from prometheus_client import REGISTRY

from specular_api.core.config.constants import CircuitState
from specular_api.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)


def sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.mark.unit
class TestMetricsCollector:

    def test_singleton(self):
        assert get_metrics_collector() is get_metrics_collector()

    def test_cache_counters(self, metrics):
        hits = sample("specular_cache_hits_total")
        misses = sample("specular_cache_misses_total")

        metrics.record_cache_hit()
        metrics.record_cache_hit()
        metrics.record_cache_miss()

        assert sample("specular_cache_hits_total") == hits + 2
        assert sample("specular_cache_misses_total") == misses + 1

    def test_eviction_counter_by_reason(self, metrics):
        before = sample("specular_cache_evictions_total", {"reason": "expired"})

        metrics.record_cache_eviction("expired", 3)

        assert sample("specular_cache_evictions_total", {"reason": "expired"}) == before + 3

    def test_circuit_state_gauge(self, metrics):
        metrics.set_circuit_state(CircuitState.OPEN)
        assert sample("specular_memory_circuit_state") == 1

        metrics.set_circuit_state(CircuitState.CLOSED)
        assert sample("specular_memory_circuit_state") == 0

    def test_limiter_gauges(self, metrics):
        metrics.set_active_requests(4)
        metrics.set_queued_requests(2)

        assert sample("specular_active_requests") == 4
        assert sample("specular_queued_requests") == 2

    def test_rejections_by_reason(self, metrics):
        before = sample("specular_rejected_requests_total", {"reason": "queue_full"})

        metrics.record_rejection("queue_full")

        assert sample("specular_rejected_requests_total", {"reason": "queue_full"}) == before + 1

    def test_exposition_output(self, metrics):
        output = metrics.get_prometheus_metrics()

        assert isinstance(output, bytes)
        assert b"specular_queue_timeouts_total" in output
        assert metrics.get_content_type().startswith("text/plain")
