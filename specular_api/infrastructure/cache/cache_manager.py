#!/usr/bin/env python3
"""
Bounded TTL Cache Manager

In-memory cache for application handlers (network registry listings,
discovery documents) that must never grow without bound.

Behavior:
    - At most ``max_size`` entries; inserting past the bound evicts the
      single oldest-inserted entry (FIFO, reads do not promote)
    - Entries older than ``ttl`` seconds are never returned; they are
      dropped lazily on lookup and by a periodic background sweep
    - A miss returns the caller's ``default`` and is never raised

STAGE-C: Cache
C.1: Lookup
C.2: Overflow eviction
C.3: Background sweep

All operations are synchronous and run inside one event-loop turn, so the
cache needs no lock. The sweep task is owned by the instance and is started
and stopped from the application lifespan.
"""

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from specular_api.core.config.constants import (
    DEFAULT_CACHE_CLEANUP_INTERVAL,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_CACHE_TTL,
    Stage,
)
from specular_api.core.config.settings import get_settings
from specular_api.core.logging.logger import get_logger
from specular_api.infrastructure.monitoring.metrics_collector import MetricsCollector

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float


class CacheManager:
    """
    Size-bounded cache with time-based expiry.

    Implementation Details:
    - OrderedDict keeps insertion order, so the oldest entry is always first
    - Overwriting a key re-inserts it at the newest position
    - Hit/miss counters feed ``stats()`` and the Prometheus collector

    Usage:
        cache = CacheManager(max_size=100, ttl=300)
        cache.set("networks", payload)
        payload = cache.get("networks")
    """

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        ttl: float = DEFAULT_CACHE_TTL,
        cleanup_interval: float = DEFAULT_CACHE_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the cache.

        Args:
            max_size: Maximum number of entries
            ttl: Entry time-to-live in seconds
            cleanup_interval: Seconds between background sweeps
            clock: Monotonic time source (injectable for tests)
            metrics: Optional Prometheus collector
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self.ttl = ttl
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._metrics = metrics

        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0

        self._sweep_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, metrics: MetricsCollector | None = None) -> "CacheManager":
        """Build a cache from the process-wide settings."""
        settings = get_settings().cache
        return cls(
            max_size=settings.CACHE_MAX_SIZE,
            ttl=settings.CACHE_TTL,
            cleanup_interval=settings.CACHE_CLEANUP_INTERVAL,
            metrics=metrics,
        )

    # =========================================================================
    # Core operations
    # =========================================================================

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at > self.ttl

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the cached value, or ``default`` on a miss.

        STAGE-C.1: Lookup

        An expired entry counts as a miss and is removed on the spot.
        """
        entry = self._entries.get(key)

        if entry is not None and self._is_expired(entry, self._clock()):
            del self._entries[key]
            self._record_eviction("expired")
            entry = None

        if entry is None:
            self.misses += 1
            if self._metrics:
                self._metrics.record_cache_miss()
            return default

        self.hits += 1
        if self._metrics:
            self._metrics.record_cache_hit()
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """
        Insert or overwrite an entry, timestamped now.

        STAGE-C.2: Overflow eviction

        Inserting a new key into a full cache first evicts the single
        oldest-inserted entry.
        """
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            oldest_key, _ = self._entries.popitem(last=False)
            self._record_eviction("overflow")
            logger.debug(
                "Cache full, evicted oldest entry",
                stage=Stage.CACHE_EVICTION,
                evicted_key=oldest_key,
                max_size=self.max_size,
            )

        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())
        self._record_size()

    def delete(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""
        existed = self._entries.pop(key, None) is not None
        if existed:
            self._record_size()
        return existed

    def clear(self) -> None:
        """Empty the cache and reset hit/miss counters."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        self._record_size()

    def cleanup(self) -> int:
        """
        Remove every expired entry.

        STAGE-C.3: Background sweep

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]

        for key in expired:
            del self._entries[key]

        if expired:
            self._record_eviction("expired", len(expired))
            self._record_size()
            logger.info(
                f"Cache cleanup: removed {len(expired)} expired entries",
                stage=Stage.CACHE_SWEEP,
                removed=len(expired),
                remaining=len(self._entries),
            )

        return len(expired)

    def stats(self) -> dict[str, Any]:
        """
        Cache statistics.

        Returns:
            Dict with size, max_size, hits, misses, hit_rate (percent, one
            decimal) and ttl (seconds)
        """
        total = self.hits + self.misses
        hit_rate = round(self.hits / total * 100, 1) if total > 0 else 0.0

        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": hit_rate,
            "ttl": self.ttl,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._is_expired(entry, self._clock())

    # =========================================================================
    # Background sweep
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.is_running:
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())
        logger.info(
            "Cache sweep started",
            stage=Stage.CACHE_SWEEP,
            interval_seconds=self.cleanup_interval,
            max_size=self.max_size,
            ttl_seconds=self.ttl,
        )

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Cache sweep stopped", stage=Stage.CACHE_SWEEP)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.cleanup()

    # =========================================================================
    # Metrics helpers
    # =========================================================================

    def _record_eviction(self, reason: str, count: int = 1) -> None:
        if self._metrics:
            self._metrics.record_cache_eviction(reason, count)
            self._metrics.set_cache_size(len(self._entries))

    def _record_size(self) -> None:
        if self._metrics:
            self._metrics.set_cache_size(len(self._entries))
