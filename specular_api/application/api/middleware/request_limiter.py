"""
Request Limiter Middleware
==========================

Concurrency-limiting admission control implemented as **pure ASGI
middleware**. BaseHTTPMiddleware returns as soon as the response starts, so
it cannot tell when the body has finished; wrapping ``send`` here lets the
slot be released exactly when the final body chunk goes out.

RESPONSES:
----------
503 (queue full):
    {"error": "Server overloaded",
     "message": "Too many concurrent requests. Active: 20, Queued: 100",
     "retryAfter": 5}

504 (queued too long):
    {"error": "Request timeout",
     "message": "Request was queued for too long and timed out",
     "queuedFor": 30004}
"""

from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from specular_api.core.config.constants import HEADER_RETRY_AFTER
from specular_api.core.exceptions import QueueFullError, QueueTimeoutError
from specular_api.core.logging.logger import get_logger
from specular_api.core.resilience.request_limiter import RequestLimiter

logger = get_logger(__name__)


def queue_full_response(exc: QueueFullError) -> JSONResponse:
    retry_after = exc.details.get("retry_after", 5)
    return JSONResponse(
        status_code=503,
        content={
            "error": "Server overloaded",
            "message": exc.message,
            "retryAfter": retry_after,
        },
        headers={HEADER_RETRY_AFTER: str(retry_after)},
    )


def queue_timeout_response(exc: QueueTimeoutError) -> JSONResponse:
    return JSONResponse(
        status_code=504,
        content={
            "error": "Request timeout",
            "message": exc.message,
            "queuedFor": exc.details.get("queued_for_ms", 0),
        },
    )


class RequestLimiterMiddleware:
    """
    Admit, queue or reject each HTTP request through a ``RequestLimiter``.

    Non-HTTP scopes (lifespan, websocket) pass straight through.
    """

    def __init__(self, app: ASGIApp, limiter: RequestLimiter) -> None:
        self.app = app
        self.limiter = limiter

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.limiter.acquire()
        except QueueFullError as exc:
            await queue_full_response(exc)(scope, receive, send)
            return
        except QueueTimeoutError as exc:
            await queue_timeout_response(exc)(scope, receive, send)
            return

        released = False

        def release_once() -> None:
            nonlocal released
            if not released:
                released = True
                self.limiter.release()

        async def send_wrapper(message: Message) -> None:
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                release_once()

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            release_once()


def add_request_limiter_middleware(app, limiter: RequestLimiter):
    """
    Add the request limiter middleware to the FastAPI application.

    Register it LAST so it is the outermost layer and admission happens
    before any other work.
    """
    app.add_middleware(RequestLimiterMiddleware, limiter=limiter)
    logger.info(
        "Request limiter middleware registered",
        max_concurrent=limiter.max_concurrent,
        queue_size=limiter.queue_size,
        timeout_seconds=limiter.timeout,
    )
