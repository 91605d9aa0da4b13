"""
Resilience Module - Request Protection Components

LAYERS:
=======
Layer 1: Request Limiter
    - Caps concurrently processed requests
    - Parks the excess in a bounded FIFO queue (503 when full, 504 on timeout)

Layer 2: Memory Circuit Breaker
    - Samples process memory on a fixed interval
    - Rejects requests with 503 for a fixed cooldown after memory pressure

Neither layer reads the other's state; each fails independently.

COMPONENTS:
===========
- RequestLimiter: admission control
- MemoryCircuitBreaker: memory-pressure shedding
- ProcessMemoryProbe / MemorySnapshot: psutil-backed memory readings
"""

from .circuit_breaker import MemoryCircuitBreaker
from .memory_probe import MemoryProbe, MemorySnapshot, ProcessMemoryProbe
from .request_limiter import QueuedRequest, RequestLimiter

__all__ = [
    "MemoryCircuitBreaker",
    "MemoryProbe",
    "MemorySnapshot",
    "ProcessMemoryProbe",
    "QueuedRequest",
    "RequestLimiter",
]
