"""
Cache Module

Provides multi-layer caching (L1 in-process + L2 Redis behind a circuit breaker).
"""

from .cache_manager import CacheManager, CacheOptions, PersistenceHook, generate_cache_key
from .decorators import cached, invalidates
from .local_cache import CacheEntry, LocalCache
from .redis_client import RedisClient
from .remote_cache import RemoteCache
from .stats import CacheStats

__all__ = [
    "CacheManager",
    "CacheOptions",
    "PersistenceHook",
    "generate_cache_key",
    "cached",
    "invalidates",
    "CacheEntry",
    "LocalCache",
    "RedisClient",
    "RemoteCache",
    "CacheStats",
]
