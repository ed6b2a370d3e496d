"""
Cache Backend Protocol

This module defines the protocol the remote cache layer talks to, enabling
dependency injection and testability.

Architectural Decision: Protocol-based abstraction
- RedisClient is the production implementation
- InMemoryCache runs the same primitives over dicts for tests and development
- Type-safe interface with runtime checking
"""

from __future__ import annotations

import fnmatch
from typing import Any, Protocol, runtime_checkable

from layercache.core.scheduling.clock import Clock, SystemClock


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol defining the primitives the remote cache layer needs.

    Values are opaque strings (already serialized). Implementations raise
    CacheKeyError / CacheConnectionError on failure; they never swallow errors,
    so the circuit breaker sees every transport failure.

    Implementations:
    - RedisClient: Production Redis-backed store
    - InMemoryCache: Testing/development in-memory store
    """

    async def connect(self) -> None:
        """
        Establish connection to the cache backend.

        Raises:
            CacheConnectionError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        ...

    async def ping(self) -> bool:
        ...

    async def get(self, key: str) -> str | None:
        """
        Get value from cache.

        Returns:
            Value or None if not found
        """
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        Set value in cache (SET key value EX ttl).

        Args:
            key: Cache key
            value: Serialized value
            ttl: Time-to-live in seconds (optional)
        """
        ...

    async def delete(self, *keys: str) -> int:
        """Delete keys. Returns number of keys deleted."""
        ...

    async def keys(self, pattern: str) -> list[str]:
        """Glob-style key scan (KEYS). Not for hot paths."""
        ...

    async def mget(self, keys: list[str]) -> list[str | None]:
        """Fetch several keys; result is positional, None for missing keys."""
        ...

    async def expire(self, key: str, ttl: int) -> bool:
        ...

    async def ttl(self, key: str) -> int:
        """
        Get TTL of a key.

        Returns:
            TTL in seconds, -1 if no TTL, -2 if key doesn't exist
        """
        ...

    async def sadd(self, name: str, *members: str) -> int:
        ...

    async def smembers(self, name: str) -> set[str]:
        ...

    async def flushdb(self) -> bool:
        ...

    async def set_many(self, mapping: dict[str, str], ttl: int) -> bool:
        """Pipelined SET EX for every entry."""
        ...

    async def tag_key(self, key: str, tag_names: list[str], tag_ttl: int) -> None:
        """Pipelined SADD name key + EXPIRE name tag_ttl for every tag set name."""
        ...

    async def health_check(self) -> dict[str, Any]:
        ...


class InMemoryCache:
    """
    In-memory implementation of CacheBackend.

    Expiry is evaluated lazily against the injected clock, the same way Redis
    reports a key as gone once its TTL passes.

    Note: This is NOT distributed. Use only for tests and local development.
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._store: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}
        self._expiry: dict[str, float] = {}
        self._connected = False

    def _purge_if_expired(self, key: str) -> None:
        deadline = self._expiry.get(key)
        if deadline is not None and self._clock.now() >= deadline:
            self._store.pop(key, None)
            self._sets.pop(key, None)
            self._expiry.pop(key, None)

    def _exists(self, key: str) -> bool:
        self._purge_if_expired(key)
        return key in self._store or key in self._sets

    def _all_keys(self) -> list[str]:
        for key in list(self._expiry):
            self._purge_if_expired(key)
        return list(self._store) + list(self._sets)

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def ping(self) -> bool:
        return self._connected

    async def get(self, key: str) -> str | None:
        self._purge_if_expired(key)
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        self._store[key] = value
        if ttl:
            self._expiry[key] = self._clock.now() + ttl
        else:
            self._expiry.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        count = 0
        for key in keys:
            if self._exists(key):
                count += 1
            self._store.pop(key, None)
            self._sets.pop(key, None)
            self._expiry.pop(key, None)
        return count

    async def keys(self, pattern: str) -> list[str]:
        return [key for key in self._all_keys() if fnmatch.fnmatchcase(key, pattern)]

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [await self.get(key) for key in keys]

    async def expire(self, key: str, ttl: int) -> bool:
        if not self._exists(key):
            return False
        self._expiry[key] = self._clock.now() + ttl
        return True

    async def ttl(self, key: str) -> int:
        if not self._exists(key):
            return -2
        deadline = self._expiry.get(key)
        if deadline is None:
            return -1
        return max(0, int(deadline - self._clock.now()))

    async def sadd(self, name: str, *members: str) -> int:
        self._purge_if_expired(name)
        bucket = self._sets.setdefault(name, set())
        before = len(bucket)
        bucket.update(members)
        return len(bucket) - before

    async def smembers(self, name: str) -> set[str]:
        self._purge_if_expired(name)
        return set(self._sets.get(name, set()))

    async def flushdb(self) -> bool:
        self._store.clear()
        self._sets.clear()
        self._expiry.clear()
        return True

    async def set_many(self, mapping: dict[str, str], ttl: int) -> bool:
        for key, value in mapping.items():
            await self.set(key, value, ttl=ttl)
        return True

    async def tag_key(self, key: str, tag_names: list[str], tag_ttl: int) -> None:
        for name in tag_names:
            await self.sadd(name, key)
            await self.expire(name, tag_ttl)

    async def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy" if self._connected else "unhealthy",
            "connected": self._connected,
            "keys_count": len(self._all_keys()),
        }
