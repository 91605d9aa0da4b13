"""
Memory Circuit Breaker Middleware
=================================

Rejects requests with HTTP 503 while the memory circuit breaker is open and
passes everything through unmodified otherwise.

RESPONSE BODY (503):
--------------------
    {
        "error": "Service temporarily unavailable",
        "message": "Server is under high memory pressure. ...",
        "memoryUsage": {"used": "412.31 MB", "total": "512.00 MB", "percent": "80.5%"},
        "retryAfter": 17
    }

``retryAfter`` is the remaining cooldown in whole seconds and is mirrored in
the ``Retry-After`` header.
"""

from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from specular_api.core.config.constants import HEADER_RETRY_AFTER, Stage
from specular_api.core.exceptions import CircuitBreakerOpenError
from specular_api.core.logging.logger import get_logger
from specular_api.core.resilience.circuit_breaker import MemoryCircuitBreaker
from specular_api.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)


def circuit_open_response(exc: CircuitBreakerOpenError) -> JSONResponse:
    """Render an open-circuit rejection as the 503 JSON body."""
    retry_after = exc.details.get("retry_after", 1)
    return JSONResponse(
        status_code=503,
        content={
            "error": "Service temporarily unavailable",
            "message": exc.message,
            "memoryUsage": exc.details.get("memory_usage", {}),
            "retryAfter": retry_after,
        },
        headers={HEADER_RETRY_AFTER: str(retry_after)},
    )


class CircuitBreakerMiddleware(BaseHTTPMiddleware):
    """
    Gate every request on the memory circuit breaker.

    The breaker is owned by the application (``app.state.circuit_breaker``)
    and handed in at registration; the middleware holds no state of its own.
    """

    def __init__(self, app, breaker: MemoryCircuitBreaker):
        super().__init__(app)
        self.breaker = breaker

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            self.breaker.check()
        except CircuitBreakerOpenError as exc:
            get_metrics_collector().record_rejection("memory_pressure")
            logger.warning(
                f"Request rejected, circuit open: {request.method} {request.url.path}",
                stage=Stage.CIRCUIT_REJECT,
                path=request.url.path,
                retry_after=exc.details.get("retry_after"),
            )
            return circuit_open_response(exc)

        return await call_next(request)


def add_circuit_breaker_middleware(app, breaker: MemoryCircuitBreaker):
    """
    Add the memory circuit breaker middleware to the FastAPI application.

    Args:
        app: FastAPI application instance
        breaker: The process-wide breaker instance
    """
    app.add_middleware(CircuitBreakerMiddleware, breaker=breaker)
    logger.info(
        "Circuit breaker middleware registered",
        memory_threshold=breaker.memory_threshold,
        cooldown_seconds=breaker.cooldown_period,
    )
