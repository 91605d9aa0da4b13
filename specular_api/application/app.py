"""
FastAPI Application
===================

Application factory for the Specular multi-network agent API.

The protection layer is three process-wide components built once per app
and stored on ``app.state``:

- ``cache``: bounded TTL response cache
- ``circuit_breaker``: memory-pressure circuit breaker
- ``request_limiter``: concurrency cap with a bounded wait queue

The lifespan starts their background tasks (cache sweep, memory sampler)
and stops them on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from specular_api.application.api.middleware import setup_middleware
from specular_api.application.api.routes.admin import router as admin_router
from specular_api.application.api.routes.health import router as health_router
from specular_api.application.api.routes.networks import router as networks_router
from specular_api.core.config.networks import NetworkRegistry
from specular_api.core.config.settings import get_settings
from specular_api.core.exceptions import SpecularBaseError, UnknownNetworkError
from specular_api.core.logging.logger import get_logger, get_request_id, setup_logging
from specular_api.core.resilience.circuit_breaker import MemoryCircuitBreaker
from specular_api.core.resilience.request_limiter import RequestLimiter
from specular_api.infrastructure.cache.cache_manager import CacheManager
from specular_api.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting Specular API",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
        default_network=app.state.networks.default,
    )

    app.state.cache.start()
    app.state.circuit_breaker.start()
    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Shutting down application")

        await app.state.circuit_breaker.stop()
        await app.state.cache.stop()

        logger.info("Application shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions raised inside route handlers to HTTP responses."""

    @app.exception_handler(UnknownNetworkError)
    async def unknown_network_handler(request: Request, exc: UnknownNetworkError):
        return JSONResponse(
            status_code=400,
            content={"error": exc.message, "available": exc.details.get("available", [])},
        )

    @app.exception_handler(SpecularBaseError)
    async def specular_exception_handler(request: Request, exc: SpecularBaseError):
        """Any other domain error is a server-side failure."""
        request_id = exc.request_id or get_request_id()
        logger.error(
            f"Specular exception: {exc.message}",
            error_type=type(exc).__name__,
            request_id=request_id,
        )
        get_metrics_collector().record_error(type(exc).__name__, "route_handler")

        content = exc.to_dict()
        content["request_id"] = request_id
        return JSONResponse(status_code=500, content=content)


def create_app(
    cache: CacheManager | None = None,
    circuit_breaker: MemoryCircuitBreaker | None = None,
    request_limiter: RequestLimiter | None = None,
    networks: NetworkRegistry | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Any component not passed in is built from settings.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()
    metrics = get_metrics_collector()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Multi-network agent API with memory and concurrency protection",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if cache is None:
        cache = CacheManager.from_settings(metrics=metrics)
    if circuit_breaker is None:
        circuit_breaker = MemoryCircuitBreaker.from_settings(metrics=metrics)
    if request_limiter is None:
        request_limiter = RequestLimiter.from_settings(metrics=metrics)
    if networks is None:
        networks = NetworkRegistry()

    app.state.cache = cache
    app.state.circuit_breaker = circuit_breaker
    app.state.request_limiter = request_limiter
    app.state.networks = networks

    setup_middleware(
        app, breaker=app.state.circuit_breaker, limiter=app.state.request_limiter
    )
    register_exception_handlers(app)

    app.include_router(networks_router)
    app.include_router(health_router)
    app.include_router(admin_router)

    return app


app = create_app()
