"""
Pytest Configuration and Shared Test Fixtures

This module provides reusable fixtures for all tests. All fixtures defined
here are automatically available to all test files.

The protection components take an injectable clock and memory probe, so TTL
expiry and circuit cooldown are tested by moving a fake clock instead of
sleeping.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from specular_api.core.config.constants import BYTES_PER_MB  # noqa: E402
from specular_api.core.resilience.memory_probe import MemorySnapshot  # noqa: E402


# ============================================================================
# Test Doubles
# ============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMemoryProbe:
    """Memory probe whose usage ratio is set by the test."""

    def __init__(self, total_mb: int = 512, ratio: float = 0.5):
        self.total = total_mb * BYTES_PER_MB
        self.ratio = ratio
        self.calls = 0

    def set_ratio(self, ratio: float) -> None:
        self.ratio = ratio

    def __call__(self) -> MemorySnapshot:
        self.calls += 1
        used = int(self.total * self.ratio)
        return MemorySnapshot(
            heap_used=used,
            heap_total=self.total,
            rss=used,
            external=64 * BYTES_PER_MB,
        )


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    """A clock frozen at t=1000s until advanced."""
    return FakeClock()


@pytest.fixture
def memory_probe():
    """A 512 MB memory budget at 50% usage."""
    return FakeMemoryProbe()


@pytest.fixture
def mock_metrics():
    """MagicMock standing in for the Prometheus metrics collector."""
    from specular_api.infrastructure.monitoring.metrics_collector import MetricsCollector

    return MagicMock(spec=MetricsCollector)


@pytest.fixture
def cache(fake_clock):
    """Cache from the FIFO/TTL scenario: two entries, one second TTL."""
    from specular_api.infrastructure.cache.cache_manager import CacheManager

    return CacheManager(max_size=2, ttl=1.0, cleanup_interval=60.0, clock=fake_clock)


@pytest.fixture
def breaker(fake_clock, memory_probe):
    """Breaker with default threshold and cooldown and no-op garbage collection."""
    from specular_api.core.resilience.circuit_breaker import MemoryCircuitBreaker

    return MemoryCircuitBreaker(
        memory_threshold=0.85,
        check_interval=5.0,
        cooldown_period=30.0,
        memory_probe=memory_probe,
        clock=fake_clock,
        collect_garbage=MagicMock(return_value=0),
    )
