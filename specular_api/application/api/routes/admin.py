"""
Admin Routes
============

Operational endpoints for the protection layer.

GET  /admin/stats        Cache, circuit breaker and request limiter statistics
POST /admin/cache/clear  Drop every cached response
GET  /admin/metrics      Prometheus exposition format

Authentication is not implemented; deploy these behind a private ingress.
"""

from fastapi import APIRouter, Response

from specular_api.application.api.dependencies import (
    CacheDep,
    CircuitBreakerDep,
    RequestLimiterDep,
)
from specular_api.application.api.models.admin import CacheClearResponse, ProtectionStatsResponse
from specular_api.core.logging.logger import get_logger
from specular_api.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/stats",
    response_model=ProtectionStatsResponse,
    summary="Protection layer statistics",
)
async def get_protection_stats(
    cache: CacheDep, breaker: CircuitBreakerDep, limiter: RequestLimiterDep
):
    return ProtectionStatsResponse(
        cache=cache.stats(),
        circuit_breaker=breaker.status(),
        request_limiter=limiter.stats(),
    )


@router.post("/cache/clear", response_model=CacheClearResponse, summary="Clear the response cache")
async def clear_cache(cache: CacheDep):
    cleared = len(cache)
    cache.clear()
    logger.info("Cache cleared via admin endpoint", cleared=cleared)
    return CacheClearResponse(cleared=cleared, message="Cache cleared")


@router.get("/metrics")
async def get_prometheus_metrics():
    """
    Prometheus metrics endpoint.

    Returned as raw text with Prometheus' own content type rather than JSON.
    """
    metrics = get_metrics_collector()
    return Response(content=metrics.get_prometheus_metrics(), media_type=metrics.get_content_type())
