"""
Memory-Pressure Circuit Breaker.

Protects the API process from running out of memory by shedding load while
memory usage is above a threshold.

MECHANISM OF ACTION:
-------------------
1.  **Sampling**:
    Every ``check_interval`` seconds a background task reads a
    ``MemorySnapshot`` from the memory probe.

2.  **State Transitions**:
    - **CLOSED**: Requests are allowed.
      - Sample shows ``usage_ratio > memory_threshold``: trip to OPEN. The trip
        counter increments, the trip time is recorded and a garbage
        collection pass runs.

    - **OPEN**: Requests are rejected with 503.
      - Recovery: exactly ``cooldown_period`` seconds after the trip the circuit
        closes, unconditionally. Memory is not re-checked at that moment; if
        pressure persists, the next sample trips it again.

3.  **Time Source**:
    The cooldown is measured against an injectable monotonic clock, so the
    open window is exact and testable without sleeping.
"""

import asyncio
import gc
import math
import time
from collections.abc import Callable
from typing import Any

from specular_api.core.config.constants import (
    BYTES_PER_MB,
    DEFAULT_CB_CHECK_INTERVAL,
    DEFAULT_CB_COOLDOWN_PERIOD,
    DEFAULT_CB_MEMORY_THRESHOLD,
    CircuitState,
    Stage,
)
from specular_api.core.config.settings import get_settings
from specular_api.core.exceptions import CircuitBreakerOpenError
from specular_api.core.logging.logger import get_logger
from specular_api.core.resilience.memory_probe import (
    MemoryProbe,
    MemorySnapshot,
    ProcessMemoryProbe,
)
from specular_api.infrastructure.monitoring.metrics_collector import MetricsCollector

logger = get_logger(__name__)


class MemoryCircuitBreaker:
    """
    Two-state (CLOSED/OPEN) breaker driven by process memory usage.

    Usage:
        breaker = MemoryCircuitBreaker(memory_threshold=0.85, cooldown_period=30)
        breaker.start()           # inside the running event loop
        breaker.check()           # raises CircuitBreakerOpenError while OPEN
        await breaker.stop()
    """

    def __init__(
        self,
        memory_threshold: float = DEFAULT_CB_MEMORY_THRESHOLD,
        check_interval: float = DEFAULT_CB_CHECK_INTERVAL,
        cooldown_period: float = DEFAULT_CB_COOLDOWN_PERIOD,
        memory_probe: MemoryProbe | None = None,
        clock: Callable[[], float] = time.monotonic,
        collect_garbage: Callable[[], Any] | None = gc.collect,
        metrics: MetricsCollector | None = None,
    ):
        if not 0 < memory_threshold <= 1:
            raise ValueError("memory_threshold must be in (0, 1]")

        self.memory_threshold = memory_threshold
        self.check_interval = check_interval
        self.cooldown_period = cooldown_period
        self._probe = memory_probe or ProcessMemoryProbe()
        self._clock = clock
        self._collect_garbage = collect_garbage
        self._metrics = metrics

        self._state = CircuitState.CLOSED
        self.trip_count = 0
        self.last_trip_at: float | None = None

        self._monitor_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, metrics: MetricsCollector | None = None) -> "MemoryCircuitBreaker":
        """Build a breaker from the process-wide settings."""
        settings = get_settings().circuit_breaker
        return cls(
            memory_threshold=settings.CB_MEMORY_THRESHOLD,
            check_interval=settings.CB_CHECK_INTERVAL,
            cooldown_period=settings.CB_COOLDOWN_PERIOD,
            memory_probe=ProcessMemoryProbe(limit_mb=settings.MEMORY_LIMIT_MB),
            metrics=metrics,
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> CircuitState:
        self._close_if_cooled_down()
        return self._state

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def _elapsed_since_trip(self) -> float:
        if self.last_trip_at is None:
            return math.inf
        return self._clock() - self.last_trip_at

    def _close_if_cooled_down(self) -> None:
        if self._state == CircuitState.OPEN and self._elapsed_since_trip() >= self.cooldown_period:
            self._state = CircuitState.CLOSED
            if self._metrics:
                self._metrics.set_circuit_state(CircuitState.CLOSED)
            logger.info(
                "Circuit breaker CLOSED - cooldown elapsed",
                stage=Stage.CIRCUIT_TRANSITION,
                cooldown_seconds=self.cooldown_period,
                trip_count=self.trip_count,
            )

    def _trip(self, snapshot: MemorySnapshot) -> None:
        self._state = CircuitState.OPEN
        self.trip_count += 1
        self.last_trip_at = self._clock()

        logger.warning(
            f"Circuit breaker OPEN - Memory usage: {snapshot.usage_percent}%",
            stage=Stage.CIRCUIT_TRANSITION,
            usage_percent=snapshot.usage_percent,
            threshold=self.memory_threshold,
            cooldown_seconds=self.cooldown_period,
            trip_count=self.trip_count,
        )
        if self._metrics:
            self._metrics.set_circuit_state(CircuitState.OPEN)
            self._metrics.record_circuit_trip()

        if self._collect_garbage is not None:
            collected = self._collect_garbage()
            logger.info("Ran garbage collection", stage=Stage.CIRCUIT_TRANSITION, collected=collected)

    # =========================================================================
    # Sampling
    # =========================================================================

    def sample(self) -> MemorySnapshot:
        """
        Take one memory reading and trip the circuit if over threshold.

        STAGE-CB.1: Memory sample
        """
        self._close_if_cooled_down()
        snapshot = self._probe()

        if self._metrics:
            self._metrics.set_memory_usage_ratio(snapshot.usage_ratio)

        if snapshot.usage_ratio > self.memory_threshold and self._state == CircuitState.CLOSED:
            self._trip(snapshot)
        else:
            logger.debug(
                "Memory sampled",
                stage=Stage.MEMORY_SAMPLE,
                usage_percent=snapshot.usage_percent,
                state=self._state.value,
            )

        return snapshot

    def retry_after(self) -> int:
        """Whole seconds until the circuit closes; 0 when already closed."""
        if not self.is_open:
            return 0
        remaining = self.cooldown_period - self._elapsed_since_trip()
        return max(1, math.ceil(remaining))

    # =========================================================================
    # Request gate
    # =========================================================================

    def check(self) -> None:
        """
        Gate a request.

        STAGE-CB.3: Circuit reject

        Raises:
            CircuitBreakerOpenError: While OPEN; details hold the 503 body fields
        """
        if not self.is_open:
            return

        snapshot = self._probe()
        retry_after = self.retry_after()
        raise CircuitBreakerOpenError(
            "Server is under high memory pressure. Please try again in a moment.",
            details={
                "memory_usage": {
                    "used": f"{snapshot.heap_used / BYTES_PER_MB:.2f} MB",
                    "total": f"{snapshot.heap_total / BYTES_PER_MB:.2f} MB",
                    "percent": f"{snapshot.usage_ratio * 100:.1f}%",
                },
                "retry_after": retry_after,
            },
        )

    def status(self) -> dict[str, Any]:
        """Observability snapshot: state, trip count and memory in MB."""
        snapshot = self._probe()
        state = self.state
        return {
            "is_open": state == CircuitState.OPEN,
            "state": state.value,
            "trip_count": self.trip_count,
            "memory": {
                **snapshot.to_mb(),
                "usage_percent": snapshot.usage_percent,
            },
        }

    # =========================================================================
    # Background monitor
    # =========================================================================

    @property
    def is_monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    def start(self) -> None:
        """Start periodic sampling on the running event loop."""
        if self.is_monitoring:
            return
        self._monitor_task = asyncio.get_running_loop().create_task(self._monitor_loop())
        logger.info(
            "Memory circuit breaker monitoring started",
            stage=Stage.MEMORY_SAMPLE,
            threshold=self.memory_threshold,
            interval_seconds=self.check_interval,
            cooldown_seconds=self.cooldown_period,
        )

    async def stop(self) -> None:
        """Cancel periodic sampling and wait for it to finish."""
        task, self._monitor_task = self._monitor_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Memory circuit breaker monitoring stopped", stage=Stage.MEMORY_SAMPLE)

    async def _monitor_loop(self) -> None:
        while True:
            await asyncio.sleep(self.check_interval)
            try:
                self.sample()
            except Exception as e:
                # A failed reading must not kill the monitor
                logger.error("Memory sample failed", stage=Stage.MEMORY_SAMPLE, error=str(e))
