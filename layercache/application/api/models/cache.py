"""
Cache Admin API Models

Pydantic request/response models for the health and cache administration
endpoints.
"""

from pydantic import BaseModel, Field, field_validator


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(..., description="healthy, degraded or unhealthy")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    components: dict | None = None


class CacheStatsResponse(BaseModel):
    """Snapshot of the cache counters."""

    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    evictions: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0.0, le=1.0, description="hits / (hits + misses)")
    l1_hits: int = Field(0, ge=0)
    l2_hits: int = Field(0, ge=0)
    total_requests: int = Field(0, ge=0)
    local_size: int = Field(0, ge=0)
    circuit_state: str = Field("closed", description="Remote circuit breaker state")


class InvalidateTagsRequest(BaseModel):
    """Tags whose member keys should be invalidated."""

    tags: list[str] = Field(..., min_length=1)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        """Reject blank tag names."""
        cleaned = [tag.strip() for tag in v]
        if any(not tag for tag in cleaned):
            raise ValueError("tags must be non-empty strings")
        return cleaned


class InvalidateTagsResponse(BaseModel):
    tags: list[str]
    invalidated: list[str]
    count: int


class DeleteResponse(BaseModel):
    pattern: str
    deleted: int


class FlushResponse(BaseModel):
    flushed: bool
    environment: str
