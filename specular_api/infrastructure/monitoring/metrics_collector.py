#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

This module provides Prometheus metrics for the protection layer:
- Cache hit/miss/eviction counters and size gauge
- Memory circuit breaker state and trip counter
- Request limiter active/queued gauges, rejections and timeouts
- Error counts by type

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Pull-based scraping from /admin/metrics
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Info,
    generate_latest,
)

from specular_api.core.config.constants import CircuitState
from specular_api.core.config.settings import get_settings
from specular_api.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

# Cache metrics
CACHE_HITS = Counter(
    'specular_cache_hits_total',
    'Total cache hits'
)

CACHE_MISSES = Counter(
    'specular_cache_misses_total',
    'Total cache misses'
)

CACHE_EVICTIONS = Counter(
    'specular_cache_evictions_total',
    'Cache entries removed before being read again',
    ['reason']  # overflow, expired
)

CACHE_SIZE = Gauge(
    'specular_cache_size',
    'Current number of cache entries'
)

# Circuit breaker metrics
CIRCUIT_BREAKER_STATE = Gauge(
    'specular_memory_circuit_state',
    'Memory circuit breaker state (0=closed, 1=open)'
)

CIRCUIT_BREAKER_TRIPS = Counter(
    'specular_memory_circuit_trips_total',
    'Total times the memory circuit breaker opened'
)

HEAP_USAGE_RATIO = Gauge(
    'specular_memory_usage_ratio',
    'Last sampled memory usage ratio'
)

# Request limiter metrics
ACTIVE_REQUESTS = Gauge(
    'specular_active_requests',
    'Requests currently being processed'
)

QUEUED_REQUESTS = Gauge(
    'specular_queued_requests',
    'Requests currently waiting for a slot'
)

REJECTED_REQUESTS = Counter(
    'specular_rejected_requests_total',
    'Requests rejected with 503',
    ['reason']  # queue_full, memory_pressure
)

QUEUE_TIMEOUTS = Counter(
    'specular_queue_timeouts_total',
    'Queued requests that timed out with 504'
)

# Error metrics
ERRORS = Counter(
    'specular_errors_total',
    'Total errors by type',
    ['error_type', 'stage']
)

# App info
APP_INFO = Info(
    'specular_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Components receive an optional collector; without one they record nothing.

    Usage:
        metrics = get_metrics_collector()
        metrics.record_cache_hit()
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME
        })

        logger.info("Metrics collector initialized", stage="M.0")

    # =========================================================================
    # Cache Metrics
    # =========================================================================

    def record_cache_hit(self) -> None:
        CACHE_HITS.inc()

    def record_cache_miss(self) -> None:
        CACHE_MISSES.inc()

    def record_cache_eviction(self, reason: str, count: int = 1) -> None:
        CACHE_EVICTIONS.labels(reason=reason).inc(count)

    def set_cache_size(self, size: int) -> None:
        CACHE_SIZE.set(size)

    # =========================================================================
    # Circuit Breaker Metrics
    # =========================================================================

    def set_circuit_state(self, state: CircuitState) -> None:
        """Set circuit breaker state."""
        CIRCUIT_BREAKER_STATE.set(1 if state == CircuitState.OPEN else 0)

    def record_circuit_trip(self) -> None:
        CIRCUIT_BREAKER_TRIPS.inc()

    def set_memory_usage_ratio(self, ratio: float) -> None:
        HEAP_USAGE_RATIO.set(ratio)

    # =========================================================================
    # Request Limiter Metrics
    # =========================================================================

    def set_active_requests(self, count: int) -> None:
        ACTIVE_REQUESTS.set(count)

    def set_queued_requests(self, count: int) -> None:
        QUEUED_REQUESTS.set(count)

    def record_rejection(self, reason: str) -> None:
        """Record a 503 rejection (queue_full or memory_pressure)."""
        REJECTED_REQUESTS.labels(reason=reason).inc()

    def record_queue_timeout(self) -> None:
        QUEUE_TIMEOUTS.inc()

    # =========================================================================
    # Error Metrics
    # =========================================================================

    def record_error(self, error_type: str, stage: str) -> None:
        """Record error."""
        ERRORS.labels(error_type=error_type, stage=stage).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
