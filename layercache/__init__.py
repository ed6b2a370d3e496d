"""
layercache

Multi-layer cache: a bounded in-process local layer in front of Redis, with
a circuit breaker, tag invalidation, batch operations, statistics and
refresh-ahead warmup.

Usage:
------
```python
from layercache import CacheManager, CacheOptions, RedisClient

manager = CacheManager(RedisClient())
await manager.connect()
manager.start()

await manager.set("user:42", {"name": "Ada"}, CacheOptions(ttl_seconds=600, tags=["users"]))
user = await manager.get("user:42")
```
"""

from layercache.core.config.constants import CacheStrategy, CircuitState
from layercache.core.interfaces.cache import CacheBackend, InMemoryCache
from layercache.core.resilience.circuit_breaker import CIRCUIT_OPEN, CircuitBreaker
from layercache.core.scheduling.clock import ManualClock, SystemClock
from layercache.infrastructure.cache.cache_manager import (
    CacheManager,
    CacheOptions,
    PersistenceHook,
    generate_cache_key,
)
from layercache.infrastructure.cache.decorators import cached, invalidates
from layercache.infrastructure.cache.redis_client import RedisClient

__version__ = "0.1.0"

__all__ = [
    "CacheManager",
    "CacheOptions",
    "CacheStrategy",
    "PersistenceHook",
    "generate_cache_key",
    "cached",
    "invalidates",
    "CircuitBreaker",
    "CircuitState",
    "CIRCUIT_OPEN",
    "CacheBackend",
    "InMemoryCache",
    "RedisClient",
    "ManualClock",
    "SystemClock",
]
