"""
Caching Decorators

Wrap async functions with cache-aside reads and post-call invalidation.

Usage:
    @cached(lambda: app.state.cache_manager, namespace="user",
            options=CacheOptions(ttl_seconds=600, tags=["users"]))
    async def load_user(user_id: int) -> dict:
        ...

    @invalidates(lambda: app.state.cache_manager,
                 pattern=lambda user_id, **_: f"user:{user_id}*", tags=["users"])
    async def update_user(user_id: int, data: dict) -> None:
        ...

The manager is looked up on every call so decorated functions can be
defined before the manager exists.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any

from layercache.core.config.constants import Stage
from layercache.core.logging.logger import get_logger, log_stage
from layercache.infrastructure.cache.cache_manager import (
    CacheManager,
    CacheOptions,
    generate_cache_key,
)

logger = get_logger(__name__)

ManagerGetter = Callable[[], CacheManager]


def _call_key(namespace: str, args: tuple, kwargs: dict) -> str:
    if kwargs:
        return generate_cache_key(namespace, *args, dict(sorted(kwargs.items())))
    return generate_cache_key(namespace, *args)


def cached(
    manager_getter: ManagerGetter,
    namespace: str | None = None,
    options: CacheOptions | None = None,
):
    """
    Cache an async function's result.

    The key is generate_cache_key(namespace, *args, kwargs). The namespace
    defaults to the function's qualified name. None results are not cached.
    """

    def decorator(func):
        key_namespace = namespace or f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        async def wrapper(*args, **kwargs):
            manager = manager_getter()
            key = _call_key(key_namespace, args, kwargs)

            value = await manager.get(key, options)
            if value is not None:
                return value

            value = await func(*args, **kwargs)
            if value is not None:
                await manager.set(key, value, options)
            return value

        wrapper.cache_namespace = key_namespace
        return wrapper

    return decorator


def invalidates(
    manager_getter: ManagerGetter,
    pattern: str | Callable[..., str] | None = None,
    tags: list[str] | Callable[..., list[str]] | None = None,
):
    """
    Invalidate cache entries after the wrapped coroutine completes.

    Args:
        manager_getter: Returns the CacheManager to use
        pattern: Glob pattern, or a callable receiving the call's arguments
        tags: Tags, or a callable receiving the call's arguments

    Nothing is invalidated when the wrapped coroutine raises.
    """
    if pattern is None and tags is None:
        raise ValueError("invalidates() needs a pattern or tags")

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            result = await func(*args, **kwargs)
            manager = manager_getter()

            if pattern is not None:
                resolved = pattern(*args, **kwargs) if callable(pattern) else pattern
                await manager.delete(resolved)

            if tags is not None:
                resolved_tags = tags(*args, **kwargs) if callable(tags) else list(tags)
                if resolved_tags:
                    await manager.invalidate_by_tags(resolved_tags)

            log_stage(
                logger,
                Stage.INVALIDATE,
                "Cache invalidated after call",
                level="debug",
                function=func.__qualname__,
            )
            return result

        return wrapper

    return decorator
