"""
Middleware Package
==================

AVAILABLE MIDDLEWARE:
---------------------
1. request_limiter: Concurrency cap with a bounded wait queue (503 / 504)
2. circuit_breaker: Memory-pressure circuit breaker (503)
3. request_logging: Request/response logging with request ID correlation
4. error_handler: Generic 500 for anything left unhandled
5. CORSMiddleware (Starlette): CORS headers, including on rejections

MIDDLEWARE ORDERING:
--------------------
Starlette wraps each newly added middleware around the existing stack, so
the LAST one added sees the request FIRST:

Request flow:  Client → CORS → Limiter → Breaker → Logging → Errors → Handler
Response flow: Handler → Errors → Logging → Breaker → Limiter → CORS → Client

Admission control runs before any application work. A request rejected by the
limiter never reaches the breaker, and a request admitted by the limiter
but rejected by the breaker still holds its slot until the 503 is sent.

USAGE EXAMPLE:
--------------
    app = FastAPI()
    setup_middleware(app, breaker=breaker, limiter=limiter)
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from specular_api.core.config.constants import HEADER_REQUEST_ID, HEADER_RETRY_AFTER
from specular_api.core.config.settings import get_settings
from specular_api.core.logging.logger import get_logger
from specular_api.core.resilience.circuit_breaker import MemoryCircuitBreaker
from specular_api.core.resilience.request_limiter import RequestLimiter

from .circuit_breaker import CircuitBreakerMiddleware, add_circuit_breaker_middleware
from .error_handler import ErrorHandlingMiddleware, add_error_handling_middleware
from .request_limiter import RequestLimiterMiddleware, add_request_limiter_middleware
from .request_logging import RequestLoggingMiddleware, add_request_logging_middleware

logger = get_logger(__name__)


def setup_middleware(app: FastAPI, breaker: MemoryCircuitBreaker, limiter: RequestLimiter):
    """
    Register all middleware components, innermost first.

    Args:
        app: FastAPI application instance
        breaker: Shared memory circuit breaker
        limiter: Shared request limiter
    """
    settings = get_settings()

    logger.info("Registering middleware components...")

    # Innermost: turns stray exceptions into a JSON 500
    add_error_handling_middleware(
        app, include_traceback=(settings.app.ENVIRONMENT == "development")
    )

    add_request_logging_middleware(app, log_level="INFO")

    add_circuit_breaker_middleware(app, breaker)

    add_request_limiter_middleware(app, limiter)

    # Outermost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID, HEADER_RETRY_AFTER],
    )

    logger.info("All middleware components registered successfully")


__all__ = [
    "setup_middleware",
    "CircuitBreakerMiddleware",
    "ErrorHandlingMiddleware",
    "RequestLimiterMiddleware",
    "RequestLoggingMiddleware",
    "add_circuit_breaker_middleware",
    "add_error_handling_middleware",
    "add_request_limiter_middleware",
    "add_request_logging_middleware",
]
