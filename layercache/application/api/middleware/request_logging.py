"""
Request Logging Middleware

Binds a correlation ID to every admin request and logs the request and its
outcome. The ID comes from the X-Request-ID header when the caller sends
one, is generated otherwise, and is echoed back on the response so cache
log lines can be matched to the admin call that caused them.

Request Flow:
    Client → RequestLoggingMiddleware (bind ID, log) → Route Handler
    Route Handler → RequestLoggingMiddleware (log status, set header) → Client
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from layercache.core.logging.logger import (
    clear_correlation_id,
    get_logger,
    set_correlation_id,
)

logger = get_logger(__name__)

HEADER_REQUEST_ID = "X-Request-ID"

# Headers whose values never reach the logs
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-api-key",
    "x-auth-token",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Correlation ID binding plus request/response logging.

    Logs method, path, query and sanitized headers on the way in; status and
    duration on the way out. Bodies are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_correlation_id(request_id)

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        logger.debug(
            f"Incoming request: {method} {path}",
            method=method,
            path=path,
            query_params=str(request.query_params) if request.query_params else None,
            headers=self._sanitize_headers(dict(request.headers)),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path}",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(time.perf_counter() - start_time, 4),
                exc_info=True,
            )
            raise
        else:
            response.headers[HEADER_REQUEST_ID] = request_id
            logger.info(
                f"Request completed: {method} {path}",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_seconds=round(time.perf_counter() - start_time, 4),
            )
            return response
        finally:
            clear_correlation_id()

    @staticmethod
    def _sanitize_headers(headers: dict) -> dict:
        """Replace sensitive header values with [REDACTED]."""
        return {
            key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }


def add_request_logging_middleware(app) -> None:
    """Register RequestLoggingMiddleware on the application."""
    app.add_middleware(RequestLoggingMiddleware)
