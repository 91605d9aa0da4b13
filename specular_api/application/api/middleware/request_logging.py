"""
Request Logging Middleware
==========================

Logs every request and response with a correlation ID.

The ID is taken from the incoming ``X-Request-ID`` header when the client
supplies one, generated otherwise, bound into the logging context for the
lifetime of the request and echoed back on the response.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from specular_api.core.config.constants import HEADER_REQUEST_ID
from specular_api.core.logging.logger import clear_request_id, get_logger, set_request_id

logger = get_logger(__name__)

# Never written to logs
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-api-key",
    "x-auth-token",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    Logs method, path, query string, sanitized headers, status code and
    duration. Bodies are never logged.
    """

    def __init__(self, app, log_level: str = "INFO"):
        super().__init__(app)
        self.log_level = log_level.upper()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        request_id = request.headers.get(HEADER_REQUEST_ID) or f"req_{uuid.uuid4().hex[:16]}"
        set_request_id(request_id)
        request.state.request_id = request_id

        method = request.method
        path = request.url.path
        query_params = str(request.query_params) if request.query_params else None

        logger.info(
            f"Incoming request: {method} {path}",
            method=method,
            path=path,
            query_params=query_params,
            headers=self._sanitize_headers(dict(request.headers)),
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path}",
                method=method,
                path=path,
                duration_seconds=round(time.perf_counter() - start_time, 4),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise
        finally:
            clear_request_id()

        response.headers[HEADER_REQUEST_ID] = request_id
        logger.info(
            f"Request completed: {method} {path}",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_seconds=round(time.perf_counter() - start_time, 4),
            request_id=request_id,
        )
        return response

    @staticmethod
    def _sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
        return {
            name: ("***REDACTED***" if name.lower() in SENSITIVE_HEADERS else value)
            for name, value in headers.items()
        }


def add_request_logging_middleware(app, log_level: str = "INFO"):
    """
    Add request logging middleware to the FastAPI application.

    Args:
        app: FastAPI application instance
        log_level: Minimum log level for request logs
    """
    app.add_middleware(RequestLoggingMiddleware, log_level=log_level)
    logger.info("Request logging middleware registered", log_level=log_level)
