"""
Admin API Models
================

Pydantic models for the admin and detailed-health endpoints. They mirror
the ``stats()`` / ``status()`` dictionaries of the three protection
components, so a field added there must be added here too.
"""

from pydantic import BaseModel, Field

from specular_api.core.config.constants import CircuitState


class CacheStats(BaseModel):
    """
    Response cache statistics.

    hit_rate = hits / (hits + misses) * 100, rounded to one decimal,
    0.0 before the first lookup.
    """

    size: int = Field(ge=0, description="Entries currently held")
    max_size: int = Field(ge=1, description="Entry cap; oldest insertions are evicted first")
    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    hit_rate: float = Field(default=0.0, ge=0, le=100, description="Hit rate percentage")
    ttl: float = Field(gt=0, description="Entry time-to-live in seconds")


class MemoryUsage(BaseModel):
    """Process memory in whole megabytes."""

    heap_used: int = Field(ge=0)
    heap_total: int = Field(ge=0)
    rss: int = Field(ge=0)
    external: int = Field(ge=0)
    usage_percent: float = Field(ge=0, description="heap_used / heap_total * 100")


class CircuitBreakerStatus(BaseModel):
    """
    Memory circuit breaker status.

    OPEN means requests are being rejected with 503 until the cooldown ends.
    """

    is_open: bool
    state: CircuitState
    trip_count: int = Field(default=0, ge=0)
    memory: MemoryUsage


class RequestLimiterStats(BaseModel):
    """
    Admission controller statistics.

    ``queued_requests`` counts every request that ever waited;
    ``queue_length`` is how many are waiting right now.
    """

    total_requests: int = Field(ge=0)
    queued_requests: int = Field(ge=0)
    rejected_requests: int = Field(ge=0)
    timeouts: int = Field(ge=0)
    active_requests: int = Field(ge=0)
    queue_length: int = Field(ge=0)
    queue_capacity: int = Field(ge=0)
    max_concurrent: int = Field(ge=1)


class ProtectionStatsResponse(BaseModel):
    """Response model for GET /admin/stats."""

    cache: CacheStats
    circuit_breaker: CircuitBreakerStatus
    request_limiter: RequestLimiterStats


class CacheClearResponse(BaseModel):
    """Response model for POST /admin/cache/clear."""

    cleared: int = Field(ge=0, description="Entries removed")
    message: str
