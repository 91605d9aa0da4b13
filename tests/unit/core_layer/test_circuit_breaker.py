"""
Unit Tests for MemoryCircuitBreaker

Trip decisions, the exact cooldown window and the retry hint are all driven
by a fake clock and a fake memory probe.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from specular_api.core.config.constants import BYTES_PER_MB, CircuitState
from specular_api.core.exceptions import CircuitBreakerOpenError
from specular_api.core.resilience.circuit_breaker import MemoryCircuitBreaker
from specular_api.core.resilience.memory_probe import MemorySnapshot, ProcessMemoryProbe


@pytest.mark.unit
class TestCircuitBreakerTrip:
    """CLOSED -> OPEN on a sample above the threshold."""

    def test_starts_closed(self, breaker):
        assert breaker.state == CircuitState.CLOSED
        assert breaker.is_open is False
        assert breaker.trip_count == 0
        assert breaker.retry_after() == 0

    def test_sample_below_threshold_stays_closed(self, breaker, memory_probe):
        memory_probe.set_ratio(0.5)

        snapshot = breaker.sample()

        assert snapshot.usage_percent == 50.0
        assert breaker.is_open is False

    def test_sample_at_threshold_stays_closed(self, breaker, memory_probe):
        """Only usage strictly above the threshold trips the circuit."""
        memory_probe.set_ratio(0.85)

        breaker.sample()

        assert breaker.is_open is False

    def test_sample_above_threshold_trips(self, breaker, memory_probe):
        memory_probe.set_ratio(0.9)

        breaker.sample()

        assert breaker.state == CircuitState.OPEN
        assert breaker.trip_count == 1

    def test_trip_runs_garbage_collection(self, breaker, memory_probe):
        memory_probe.set_ratio(0.9)

        breaker.sample()

        breaker._collect_garbage.assert_called_once()

    def test_samples_while_open_do_not_retrip(self, breaker, memory_probe, fake_clock):
        memory_probe.set_ratio(0.95)
        breaker.sample()
        fake_clock.advance(10)

        breaker.sample()
        breaker.sample()

        assert breaker.trip_count == 1
        assert breaker._collect_garbage.call_count == 1
        assert breaker.retry_after() == 20

    def test_trip_reaches_metrics(self, fake_clock, memory_probe, mock_metrics):
        breaker = MemoryCircuitBreaker(
            memory_probe=memory_probe,
            clock=fake_clock,
            collect_garbage=None,
            metrics=mock_metrics,
        )
        memory_probe.set_ratio(0.99)

        breaker.sample()

        mock_metrics.set_circuit_state.assert_called_with(CircuitState.OPEN)
        mock_metrics.record_circuit_trip.assert_called_once()
        mock_metrics.set_memory_usage_ratio.assert_called_with(pytest.approx(0.99, abs=1e-6))

    @pytest.mark.parametrize("threshold", [0, -0.1, 1.5])
    def test_invalid_threshold_rejected(self, threshold, memory_probe):
        with pytest.raises(ValueError):
            MemoryCircuitBreaker(memory_threshold=threshold, memory_probe=memory_probe)


@pytest.mark.unit
class TestCircuitBreakerCooldown:
    """OPEN -> CLOSED exactly cooldown_period seconds after the trip."""

    def test_open_just_before_cooldown(self, breaker, memory_probe, fake_clock):
        memory_probe.set_ratio(0.9)
        breaker.sample()

        fake_clock.advance(29.999)

        assert breaker.is_open is True

    def test_closed_at_cooldown(self, breaker, memory_probe, fake_clock):
        memory_probe.set_ratio(0.9)
        breaker.sample()

        fake_clock.advance(30)

        assert breaker.is_open is False
        assert breaker.state == CircuitState.CLOSED

    def test_closes_even_if_memory_still_high(self, breaker, memory_probe, fake_clock):
        """Recovery is time-based; the next sample re-trips if pressure persists."""
        memory_probe.set_ratio(0.9)
        breaker.sample()
        fake_clock.advance(30)

        assert breaker.is_open is False

        breaker.sample()

        assert breaker.is_open is True
        assert breaker.trip_count == 2

    def test_retry_after_counts_down(self, breaker, memory_probe, fake_clock):
        memory_probe.set_ratio(0.9)
        breaker.sample()

        hints = []
        for _ in range(29):
            hints.append(breaker.retry_after())
            fake_clock.advance(1)

        assert hints[0] == 30
        assert hints[-1] == 2
        assert all(later <= earlier for earlier, later in zip(hints, hints[1:]))

    def test_retry_after_rounds_up_and_never_below_one(self, breaker, memory_probe, fake_clock):
        memory_probe.set_ratio(0.9)
        breaker.sample()

        fake_clock.advance(10.2)
        assert breaker.retry_after() == 20

        fake_clock.advance(19.7)
        assert breaker.retry_after() == 1


@pytest.mark.unit
class TestCircuitBreakerCheck:
    """Request gate and status."""

    def test_check_passes_when_closed(self, breaker):
        breaker.check()

    def test_check_raises_with_memory_details(self, breaker, memory_probe, fake_clock):
        memory_probe.set_ratio(0.9)
        breaker.sample()
        fake_clock.advance(12.5)

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            breaker.check()

        exc = exc_info.value
        assert "high memory pressure" in exc.message
        assert exc.details["retry_after"] == 18
        assert exc.details["memory_usage"] == {
            "used": "460.80 MB",
            "total": "512.00 MB",
            "percent": "90.0%",
        }

    def test_status_shape(self, breaker, memory_probe):
        memory_probe.set_ratio(0.25)

        status = breaker.status()

        assert status == {
            "is_open": False,
            "state": "closed",
            "trip_count": 0,
            "memory": {
                "heap_used": 128,
                "heap_total": 512,
                "rss": 128,
                "external": 64,
                "usage_percent": 25.0,
            },
        }

    def test_status_reports_open(self, breaker, memory_probe):
        memory_probe.set_ratio(0.9)
        breaker.sample()

        status = breaker.status()

        assert status["is_open"] is True
        assert status["state"] == "open"
        assert status["trip_count"] == 1


@pytest.mark.unit
class TestCircuitBreakerMonitor:
    """Background sampling task."""

    @pytest.mark.asyncio
    async def test_monitor_trips_on_high_memory(self, memory_probe):
        breaker = MemoryCircuitBreaker(
            check_interval=0.01,
            cooldown_period=30,
            memory_probe=memory_probe,
            collect_garbage=None,
        )
        memory_probe.set_ratio(0.95)

        breaker.start()
        try:
            await asyncio.sleep(0.05)
            assert breaker.is_open is True
            assert breaker.trip_count == 1
        finally:
            await breaker.stop()

        assert breaker.is_monitoring is False

    @pytest.mark.asyncio
    async def test_probe_failure_does_not_stop_monitor(self):
        probe = MagicMock(side_effect=[RuntimeError("boom")] + [
            MemorySnapshot(heap_used=95, heap_total=100, rss=95, external=0)
        ] * 10)
        breaker = MemoryCircuitBreaker(check_interval=0.01, memory_probe=probe, collect_garbage=None)

        breaker.start()
        try:
            await asyncio.sleep(0.05)
            assert breaker.is_monitoring is True
            assert breaker.is_open is True
        finally:
            await breaker.stop()


@pytest.mark.unit
class TestProcessMemoryProbe:

    def test_uses_configured_limit(self):
        process = MagicMock()
        process.memory_info.return_value = MagicMock(rss=256 * BYTES_PER_MB, vms=1024 * BYTES_PER_MB)

        snapshot = ProcessMemoryProbe(limit_mb=512, process=process)()

        assert snapshot.heap_used == 256 * BYTES_PER_MB
        assert snapshot.heap_total == 512 * BYTES_PER_MB
        assert snapshot.external == 1024 * BYTES_PER_MB
        assert snapshot.usage_ratio == 0.5

    def test_real_process_reading(self):
        snapshot = ProcessMemoryProbe()()

        assert snapshot.heap_used > 0
        assert snapshot.heap_total > 0
        assert 0 < snapshot.usage_ratio < 1

    def test_zero_total_reports_zero_ratio(self):
        snapshot = MemorySnapshot(heap_used=10, heap_total=0, rss=10, external=0)

        assert snapshot.usage_ratio == 0.0
