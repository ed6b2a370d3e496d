"""
Middleware Package

HTTP middleware for the admin API.

Available middleware:
- request_logging: correlation ID binding and request/response logging
"""

from .request_logging import (
    HEADER_REQUEST_ID,
    RequestLoggingMiddleware,
    add_request_logging_middleware,
)

__all__ = ["HEADER_REQUEST_ID", "RequestLoggingMiddleware", "add_request_logging_middleware"]
