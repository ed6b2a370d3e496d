"""
Unit Tests for InMemoryCache

The in-memory backend stands in for Redis in tests, so it must follow the
same TTL and set semantics.
"""

from typing import get_type_hints

import pytest

from layercache.core.interfaces.cache import CacheBackend, InMemoryCache
from layercache.infrastructure.cache.redis_client import OperationExecutor, RedisClient


@pytest.mark.unit
class TestBackendProtocol:
    def test_implementations_satisfy_protocol(self):
        assert isinstance(InMemoryCache(), CacheBackend)
        assert isinstance(RedisClient(), CacheBackend)

    @pytest.mark.parametrize(
        "owner", [CacheBackend, InMemoryCache, RedisClient, OperationExecutor]
    )
    def test_smembers_annotation_is_builtin_set(self, owner):
        assert get_type_hints(owner.smembers)["return"] == set[str]


@pytest.mark.unit
class TestInMemoryCache:
    async def test_get_set(self, in_memory_backend):
        assert await in_memory_backend.get("a") is None
        assert await in_memory_backend.set("a", '"1"') is True
        assert await in_memory_backend.get("a") == '"1"'

    async def test_ttl_expiry(self, in_memory_backend, manual_clock):
        await in_memory_backend.set("a", "1", ttl=5)
        assert await in_memory_backend.ttl("a") == 5

        manual_clock.advance(5)
        assert await in_memory_backend.get("a") is None
        assert await in_memory_backend.ttl("a") == -2

    async def test_ttl_without_expiry(self, in_memory_backend):
        await in_memory_backend.set("a", "1")
        assert await in_memory_backend.ttl("a") == -1

    async def test_delete_counts_existing(self, in_memory_backend):
        await in_memory_backend.set("a", "1")
        await in_memory_backend.set("b", "2")
        assert await in_memory_backend.delete("a", "b", "missing") == 2

    async def test_keys_glob(self, in_memory_backend):
        for key in ("user:1", "user:2", "order:1"):
            await in_memory_backend.set(key, "x")
        assert sorted(await in_memory_backend.keys("user:*")) == ["user:1", "user:2"]

    async def test_mget_positional(self, in_memory_backend):
        await in_memory_backend.set("a", "1")
        assert await in_memory_backend.mget(["a", "b"]) == ["1", None]

    async def test_sets_and_tagging(self, in_memory_backend, manual_clock):
        await in_memory_backend.tag_key("user:1", ["tag:users"], 10)
        await in_memory_backend.tag_key("user:2", ["tag:users"], 10)
        assert await in_memory_backend.smembers("tag:users") == {"user:1", "user:2"}

        manual_clock.advance(11)
        assert await in_memory_backend.smembers("tag:users") == set()

    async def test_set_many_and_flush(self, in_memory_backend):
        await in_memory_backend.set_many({"a": "1", "b": "2"}, ttl=30)
        assert await in_memory_backend.ttl("b") == 30

        await in_memory_backend.flushdb()
        assert await in_memory_backend.keys("*") == []

    async def test_health_check(self, in_memory_backend):
        await in_memory_backend.set("a", "1")
        health = await in_memory_backend.health_check()
        assert health == {"status": "healthy", "connected": True, "keys_count": 1}

        await in_memory_backend.disconnect()
        assert await in_memory_backend.ping() is False
