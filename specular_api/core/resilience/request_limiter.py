"""
Request Limiter - Concurrency-Limiting Admission Control.

Caps how many requests the API processes at once and parks the excess in a
bounded FIFO queue.

STAGE-RL: Request admission
----------------------------
RL.1: Admission (immediate slot or queue)
RL.2: Queue resolution (promotion or timeout)
RL.3: Release (slot freed, next queued request promoted)

Every queued request is resolved exactly once: either it is promoted when a
slot frees up, or its timer fires and it is dropped with a timeout. Both
paths run on the event loop thread and check the waiter's future, so they
can never both apply to the same request.
"""

import asyncio
import time
from collections import deque
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from specular_api.core.config.constants import (
    DEFAULT_LIMITER_MAX_CONCURRENT,
    DEFAULT_LIMITER_QUEUE_SIZE,
    DEFAULT_LIMITER_TIMEOUT,
    LIMITER_RETRY_AFTER,
    Stage,
)
from specular_api.core.config.settings import get_settings
from specular_api.core.exceptions import QueueFullError, QueueTimeoutError
from specular_api.core.logging.logger import get_logger
from specular_api.infrastructure.monitoring.metrics_collector import MetricsCollector

logger = get_logger(__name__)


@dataclass(eq=False)
class QueuedRequest:
    """A request parked until a slot frees up or its deadline passes."""

    enqueued_at: float
    future: asyncio.Future
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)


class RequestLimiter:
    """
    Admission controller with a concurrency cap and a bounded wait queue.

    Usage:
        limiter = RequestLimiter(max_concurrent=20, queue_size=100, timeout=30)

        async with limiter.slot():
            ...  # handle the request

    Raises from ``acquire()``:
        QueueFullError: every slot busy and the queue is full
        QueueTimeoutError: the request waited longer than ``timeout``
    """

    def __init__(
        self,
        max_concurrent: int = DEFAULT_LIMITER_MAX_CONCURRENT,
        queue_size: int = DEFAULT_LIMITER_QUEUE_SIZE,
        timeout: float = DEFAULT_LIMITER_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the limiter.

        Args:
            max_concurrent: Maximum requests processed at once
            queue_size: Maximum requests waiting for a slot
            timeout: Seconds a queued request may wait
            clock: Monotonic time source used for wait durations
            metrics: Optional Prometheus collector
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if queue_size < 0:
            raise ValueError("queue_size must not be negative")

        self.max_concurrent = max_concurrent
        self.queue_size = queue_size
        self.timeout = timeout
        self._clock = clock
        self._metrics = metrics

        self.active_requests = 0
        self._queue: deque[QueuedRequest] = deque()

        # Cumulative counters
        self.total_requests = 0
        self.queued_requests = 0
        self.rejected_requests = 0
        self.timeouts = 0

    @classmethod
    def from_settings(cls, metrics: MetricsCollector | None = None) -> "RequestLimiter":
        """Build a limiter from the process-wide settings."""
        settings = get_settings().request_limiter
        return cls(
            max_concurrent=settings.LIMITER_MAX_CONCURRENT,
            queue_size=settings.LIMITER_QUEUE_SIZE,
            timeout=settings.LIMITER_TIMEOUT,
            metrics=metrics,
        )

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    # =========================================================================
    # Admission
    # =========================================================================

    async def acquire(self) -> None:
        """
        Take a processing slot, waiting in the queue if necessary.

        STAGE-RL.1: Admission
        """
        self.total_requests += 1

        if self.active_requests < self.max_concurrent:
            self.active_requests += 1
            self._record_gauges()
            return

        if len(self._queue) >= self.queue_size:
            self.rejected_requests += 1
            if self._metrics:
                self._metrics.record_rejection("queue_full")
            logger.warning(
                "Request rejected, admission queue full",
                stage=Stage.ADMISSION,
                active=self.active_requests,
                queued=len(self._queue),
                queue_size=self.queue_size,
            )
            raise QueueFullError(
                f"Too many concurrent requests. Active: {self.active_requests}, "
                f"Queued: {len(self._queue)}",
                details={"retry_after": LIMITER_RETRY_AFTER},
            )

        loop = asyncio.get_running_loop()
        item = QueuedRequest(enqueued_at=self._clock(), future=loop.create_future())
        item.timer = loop.call_later(self.timeout, self._expire, item)
        self._queue.append(item)
        self.queued_requests += 1
        self._record_gauges()

        logger.debug(
            "Request queued",
            stage=Stage.ADMISSION_QUEUE,
            active=self.active_requests,
            position=len(self._queue),
        )

        try:
            await item.future
        except asyncio.CancelledError:
            self._abandon(item)
            raise

    def _expire(self, item: QueuedRequest) -> None:
        """
        Timer callback for a queued request.

        STAGE-RL.2: Queue resolution (timeout)
        """
        if item.future.done():
            return

        self._queue.remove(item)
        self.timeouts += 1
        queued_for_ms = round((self._clock() - item.enqueued_at) * 1000)
        self._record_gauges()
        if self._metrics:
            self._metrics.record_queue_timeout()

        logger.warning(
            "Queued request timed out",
            stage=Stage.ADMISSION_QUEUE,
            queued_for_ms=queued_for_ms,
            timeout_seconds=self.timeout,
        )
        item.future.set_exception(
            QueueTimeoutError(
                "Request was queued for too long and timed out",
                details={"queued_for_ms": queued_for_ms},
            )
        )

    def _abandon(self, item: QueuedRequest) -> None:
        """The waiting task was cancelled; give back whatever it held."""
        if item.timer is not None:
            item.timer.cancel()

        if item in self._queue:
            self._queue.remove(item)
            self._record_gauges()
        elif item.future.done() and not item.future.cancelled() and item.future.exception() is None:
            # Promoted just before the cancellation landed
            self.release()

    # =========================================================================
    # Release
    # =========================================================================

    def release(self) -> None:
        """
        Free one slot and promote the longest-waiting request.

        STAGE-RL.3: Release
        """
        if self.active_requests <= 0:
            logger.error("Release without matching acquire", stage=Stage.ADMISSION_RELEASE)
            return

        self.active_requests -= 1
        self._promote_next()
        self._record_gauges()

    def _promote_next(self) -> None:
        while self._queue and self.active_requests < self.max_concurrent:
            item = self._queue.popleft()
            if item.timer is not None:
                item.timer.cancel()
            if item.future.done():
                continue

            self.active_requests += 1
            item.future.set_result(None)
            logger.debug(
                "Queued request admitted",
                stage=Stage.ADMISSION_QUEUE,
                waited_ms=round((self._clock() - item.enqueued_at) * 1000),
                remaining=len(self._queue),
            )

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold a slot for the duration of the block; released on every exit path."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    # =========================================================================
    # Observability
    # =========================================================================

    def stats(self) -> dict[str, Any]:
        """Cumulative counters plus current occupancy and configured capacities."""
        return {
            "total_requests": self.total_requests,
            "queued_requests": self.queued_requests,
            "rejected_requests": self.rejected_requests,
            "timeouts": self.timeouts,
            "active_requests": self.active_requests,
            "queue_length": len(self._queue),
            "queue_capacity": self.queue_size,
            "max_concurrent": self.max_concurrent,
        }

    def _record_gauges(self) -> None:
        if self._metrics:
            self._metrics.set_active_requests(self.active_requests)
            self._metrics.set_queued_requests(len(self._queue))
