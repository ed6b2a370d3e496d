"""
API Models Package

Pydantic models for API request/response validation.
"""

from layercache.application.api.models.cache import (
    CacheStatsResponse,
    DeleteResponse,
    FlushResponse,
    HealthResponse,
    InvalidateTagsRequest,
    InvalidateTagsResponse,
)

__all__ = [
    "CacheStatsResponse",
    "DeleteResponse",
    "FlushResponse",
    "HealthResponse",
    "InvalidateTagsRequest",
    "InvalidateTagsResponse",
]
