"""
Error Handling Middleware
=========================

Innermost middleware. Exceptions that escape both the route handlers and the
app-level ``SpecularBaseError`` handlers land here and become a JSON 500.

The body carries the request ID assigned by ``RequestLoggingMiddleware`` (which
wraps this layer), so a client report can be matched to the logged failure.
The selected network is logged alongside it when the request named one.
"""

import traceback

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from specular_api.core.config.constants import HEADER_NETWORK, Stage
from specular_api.core.logging.logger import get_logger, get_request_id, log_stage
from specular_api.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred while processing your request"


def internal_error_response(
    exc: Exception, request_id: str | None, include_traceback: bool = False
) -> JSONResponse:
    """Build the 500 body for an unhandled exception."""
    content = {
        "error": "internal_server_error",
        "message": INTERNAL_ERROR_MESSAGE,
        "error_type": type(exc).__name__,
        "request_id": request_id,
    }
    if include_traceback:
        content["detail"] = str(exc)
        content["traceback"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(status_code=500, content=content)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns anything left unhandled into a request-tagged JSON 500."""

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        # Development only: exposes exception text and stack to clients
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            request_id = getattr(request.state, "request_id", None) or get_request_id()
            error_type = type(exc).__name__

            log_stage(
                logger,
                Stage.UNHANDLED_ERROR,
                f"Unhandled {error_type} on {request.method} {request.url.path}",
                level="error",
                request_id=request_id,
                network=request.query_params.get("network") or request.headers.get(HEADER_NETWORK),
                error_type=error_type,
                error_message=str(exc),
                exc_info=True,
            )
            get_metrics_collector().record_error(error_type, "unhandled_exception")

            return internal_error_response(exc, request_id, self.include_traceback)


def add_error_handling_middleware(app, include_traceback: bool = False):
    app.add_middleware(ErrorHandlingMiddleware, include_traceback=include_traceback)
    logger.info("Error handling middleware registered", include_traceback=include_traceback)
