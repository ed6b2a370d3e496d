#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Admin/health HTTP surface for the multi-layer cache. The lifespan builds the
Redis client, circuit breaker and cache manager, stores the manager on
app.state and runs its background jobs for the lifetime of the app.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from layercache.application.api.middleware import add_request_logging_middleware
from layercache.application.api.routes.admin import router as admin_router
from layercache.application.api.routes.health import router as health_router
from layercache.core.config.settings import Settings, get_settings
from layercache.core.exceptions import CacheFlushForbiddenError, LayerCacheError
from layercache.core.logging.logger import get_logger, setup_logging
from layercache.infrastructure.cache.cache_manager import CacheManager
from layercache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).

    A manager injected through create_app() is started and stopped but not
    connected or disconnected; its owner manages the connection.
    """
    settings: Settings = app.state.settings
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting layercache admin API",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    owns_manager = app.state.cache_manager is None
    if owns_manager:
        manager = CacheManager(RedisClient(settings), settings=settings)
        await manager.connect()
        app.state.cache_manager = manager
    manager: CacheManager = app.state.cache_manager

    manager.start()
    logger.info("Application startup complete", owns_manager=owns_manager)

    try:
        yield
    finally:
        logger.info("Shutting down application")
        if owns_manager:
            await manager.disconnect()
            app.state.cache_manager = None
        else:
            await manager.stop()
        logger.info("Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================


def create_app(cache_manager: CacheManager | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        cache_manager: Pre-built manager (tests, embedding); built from settings if None
        settings: Settings to use; defaults to get_settings()

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Multi-layer cache administration API",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache_manager = cache_manager

    add_request_logging_middleware(app)

    @app.exception_handler(CacheFlushForbiddenError)
    async def flush_forbidden_handler(request: Request, exc: CacheFlushForbiddenError):
        return JSONResponse(status_code=403, content=exc.to_dict())

    @app.exception_handler(LayerCacheError)
    async def layercache_exception_handler(request: Request, exc: LayerCacheError):
        logger.error(f"Cache exception: {exc.message}", error_type=type(exc).__name__, key=exc.key)
        return JSONResponse(status_code=500, content=exc.to_dict())

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(health_router)
    app.include_router(admin_router)

    return app


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "layercache.application.app:create_app",
        factory=True,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
