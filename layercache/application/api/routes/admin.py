"""
Cache Administration Routes

Operational endpoints for inspecting and invalidating the cache:

- GET    /admin/cache/stats       counters snapshot
- POST   /admin/cache/invalidate  invalidate by tags
- DELETE /admin/cache?pattern=    delete by glob pattern
- POST   /admin/cache/flush       clear everything (403 in production)
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from layercache.application.api.dependencies import CacheManagerDep, SettingsDep
from layercache.application.api.models import (
    CacheStatsResponse,
    DeleteResponse,
    FlushResponse,
    InvalidateTagsRequest,
    InvalidateTagsResponse,
)
from layercache.core.exceptions import CacheFlushForbiddenError
from layercache.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/cache", tags=["Admin"])


# TODO: replace with token verification once the admin API is exposed outside the cluster
async def verify_admin_access() -> None:
    """Admin authentication hook (no-op)."""
    pass


@router.get(
    "/stats",
    response_model=CacheStatsResponse,
    dependencies=[Depends(verify_admin_access)],
)
async def get_cache_stats(cache: CacheManagerDep):
    """Snapshot of hit/miss/error/eviction counters."""
    stats = cache.get_stats()
    return CacheStatsResponse(
        **stats,
        local_size=cache.local.size,
        circuit_state=cache.breaker.state.value,
    )


@router.post(
    "/invalidate",
    response_model=InvalidateTagsResponse,
    dependencies=[Depends(verify_admin_access)],
)
async def invalidate_tags(request: InvalidateTagsRequest, cache: CacheManagerDep):
    """Invalidate every key registered under the given tags."""
    keys = await cache.invalidate_by_tags(request.tags)
    logger.info("Admin tag invalidation", tags=request.tags, invalidated=len(keys))
    return InvalidateTagsResponse(tags=request.tags, invalidated=keys, count=len(keys))


@router.delete(
    "",
    response_model=DeleteResponse,
    dependencies=[Depends(verify_admin_access)],
)
async def delete_pattern(
    cache: CacheManagerDep,
    pattern: str = Query(..., min_length=1, description="Glob pattern, e.g. user:*"),
):
    """Delete keys matching a glob pattern from both layers."""
    deleted = await cache.delete(pattern)
    logger.info("Admin pattern delete", pattern=pattern, deleted=deleted)
    return DeleteResponse(pattern=pattern, deleted=deleted)


@router.post(
    "/flush",
    response_model=FlushResponse,
    dependencies=[Depends(verify_admin_access)],
)
async def flush_cache(cache: CacheManagerDep, settings: SettingsDep):
    """
    Flush both layers and reset statistics.

    Raises:
        HTTPException: 403 in production
    """
    try:
        flushed = await cache.flush()
    except CacheFlushForbiddenError as e:
        logger.warning("Admin flush refused", **e.to_dict())
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e

    return FlushResponse(flushed=flushed, environment=settings.ENVIRONMENT)
