"""
FastAPI Dependency Injection Module

Route handlers receive the CacheManager and Settings through FastAPI's
dependency system. The manager is created once (in the lifespan, or passed
to create_app) and stored on app.state, so every request shares it and
tests can inject their own.

Example:
    @router.get("/stats")
    async def stats(cache: CacheManagerDep):
        return cache.get_stats()
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from layercache.core.config.settings import Settings, get_settings
from layercache.infrastructure.cache.cache_manager import CacheManager


def get_cache_manager(request: Request) -> CacheManager:
    """
    Retrieve the CacheManager from application state.

    Raises:
        HTTPException: 503 if the lifespan has not created a manager yet
    """
    manager = getattr(request.app.state, "cache_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cache manager not initialized",
        )
    return manager


def get_app_settings(request: Request) -> Settings:
    """Settings stored on app.state, falling back to the global instance."""
    return getattr(request.app.state, "settings", None) or get_settings()


CacheManagerDep = Annotated[CacheManager, Depends(get_cache_manager)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
