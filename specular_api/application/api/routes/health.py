"""
Health Check Routes
===================

GET /health           Liveness: always 200 while the process serves requests
GET /health/detailed  Protection layer status: 503 while the memory circuit is open

The detailed check reports the same three components as /admin/stats but
answers with the HTTP status a load balancer needs: an instance whose
breaker is open should be taken out of rotation until it recovers.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from specular_api.application.api.dependencies import (
    CacheDep,
    CircuitBreakerDep,
    RequestLimiterDep,
    SettingsDep,
)

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("", response_model=HealthResponse)
async def health_check(settings: SettingsDep):
    """Quick liveness check for load balancers."""
    return HealthResponse(status="healthy", timestamp=_now_iso(), version=settings.app.APP_VERSION)


@router.get("/detailed")
async def detailed_health(
    cache: CacheDep, breaker: CircuitBreakerDep, limiter: RequestLimiterDep
):
    """
    Status of every protection component.

    Returns:
        200 with status "healthy" when the circuit is closed,
        503 with status "degraded" while it is open
    """
    breaker_status = breaker.status()
    is_open = breaker_status["is_open"]

    body = {
        "status": "degraded" if is_open else "healthy",
        "timestamp": _now_iso(),
        "components": {
            "cache": cache.stats(),
            "circuit_breaker": breaker_status,
            "request_limiter": limiter.stats(),
        },
    }
    if is_open:
        body["retry_after"] = breaker.retry_after()

    return JSONResponse(status_code=503 if is_open else 200, content=body)
