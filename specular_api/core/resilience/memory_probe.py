"""
Process Memory Probe

Reads process memory through psutil and reports it in the shape the
circuit breaker samples: used vs. total budget, plus RSS and virtual size.

``heap_used`` is the resident set size; ``heap_total`` is the configured
memory budget (``MEMORY_LIMIT_MB``) or, when unset, total system memory.
"""

from collections.abc import Callable
from dataclasses import dataclass

import psutil

from specular_api.core.config.constants import BYTES_PER_MB


@dataclass(frozen=True)
class MemorySnapshot:
    """One memory reading, all values in bytes."""

    heap_used: int
    heap_total: int
    rss: int
    external: int

    @property
    def usage_ratio(self) -> float:
        if self.heap_total <= 0:
            return 0.0
        return self.heap_used / self.heap_total

    @property
    def usage_percent(self) -> float:
        return round(self.usage_ratio * 100, 1)

    def to_mb(self) -> dict[str, int]:
        return {
            "heap_used": round(self.heap_used / BYTES_PER_MB),
            "heap_total": round(self.heap_total / BYTES_PER_MB),
            "rss": round(self.rss / BYTES_PER_MB),
            "external": round(self.external / BYTES_PER_MB),
        }


MemoryProbe = Callable[[], MemorySnapshot]


class ProcessMemoryProbe:
    """
    psutil-backed probe for the current process.

    Usage:
        probe = ProcessMemoryProbe(limit_mb=512)
        snapshot = probe()
    """

    def __init__(self, limit_mb: int | None = None, process: psutil.Process | None = None):
        self._process = process or psutil.Process()
        self._limit_bytes = limit_mb * BYTES_PER_MB if limit_mb else None

    @property
    def limit_bytes(self) -> int:
        if self._limit_bytes is not None:
            return self._limit_bytes
        return psutil.virtual_memory().total

    def __call__(self) -> MemorySnapshot:
        info = self._process.memory_info()
        return MemorySnapshot(
            heap_used=info.rss,
            heap_total=self.limit_bytes,
            rss=info.rss,
            external=info.vms,
        )
