from .admin import (
    CacheClearResponse,
    CacheStats,
    CircuitBreakerStatus,
    MemoryUsage,
    ProtectionStatsResponse,
    RequestLimiterStats,
)

__all__ = [
    "CacheClearResponse",
    "CacheStats",
    "CircuitBreakerStatus",
    "MemoryUsage",
    "ProtectionStatsResponse",
    "RequestLimiterStats",
]
