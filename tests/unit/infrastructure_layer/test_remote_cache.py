"""
Unit Tests for RemoteCache

Tests JSON encoding, tag registration, batch reads and degradation when the
store fails or the circuit is open.
"""

from datetime import datetime

import pytest

from layercache.core.config.constants import CircuitState
from layercache.core.exceptions import CacheSerializationError
from layercache.infrastructure.cache.remote_cache import (
    RemoteCache,
    deserialize,
    serialize,
    tag_key_name,
)
from layercache.infrastructure.cache.stats import CacheStats
from tests.test_fixtures import CacheTestFactory


@pytest.fixture
def remote(in_memory_backend, breaker) -> RemoteCache:
    return RemoteCache(in_memory_backend, breaker, stats=CacheStats(), tag_ttl=3600)


@pytest.mark.unit
class TestSerialization:
    def test_serialize_round_trip_types(self):
        value = {"id": 1, "tags": ["a"], "nested": {"ok": True}, "none": None}
        assert deserialize(serialize(value)) == value

    def test_serialize_non_string_keys(self):
        assert deserialize(serialize({1: "a"})) == {"1": "a"}

    def test_serialize_rejects_unsupported(self):
        with pytest.raises(CacheSerializationError) as exc_info:
            serialize(object())
        assert exc_info.value.details["value_type"] == "object"

    def test_deserialize_rejects_invalid_json(self):
        with pytest.raises(CacheSerializationError):
            deserialize("{not json")

    def test_tag_key_name(self):
        assert tag_key_name("users") == "tag:users"


@pytest.mark.unit
class TestRemoteReads:
    async def test_get_decodes_json(self, remote, in_memory_backend):
        await in_memory_backend.set("user:42", '{"name":"Ada"}')
        assert await remote.get("user:42") == {"name": "Ada"}

    async def test_get_with_ttl(self, remote, in_memory_backend):
        await in_memory_backend.set("k", '"v"', ttl=120)
        assert await remote.get_with_ttl("k") == ("v", 120)
        assert await remote.get_with_ttl("missing") == (None, -2)

    async def test_undecodable_payload_counts_error(self, remote, in_memory_backend):
        await in_memory_backend.set("bad", "{not json")

        assert await remote.get("bad") is None
        assert remote.stats.errors == 1

    async def test_mget_partial(self, remote, in_memory_backend):
        await in_memory_backend.set("a", "1")
        await in_memory_backend.set("c", "[3]")

        assert await remote.mget(["a", "b", "c"]) == {"a": 1, "b": None, "c": [3]}

    async def test_mget_empty(self, remote):
        assert await remote.mget([]) == {}


@pytest.mark.unit
class TestRemoteWrites:
    async def test_set_stores_json_with_ttl(self, remote, in_memory_backend):
        assert await remote.set("user:1", {"id": 1}, ttl_seconds=300) is True
        assert await in_memory_backend.get("user:1") == '{"id":1}'
        assert await in_memory_backend.ttl("user:1") == 300

    async def test_set_registers_tags(self, remote, in_memory_backend):
        await remote.set("user:1", {"id": 1}, ttl_seconds=300, tags=["users", "team:7"])

        assert await in_memory_backend.smembers("tag:users") == {"user:1"}
        assert await in_memory_backend.smembers("tag:team:7") == {"user:1"}
        assert await in_memory_backend.ttl("tag:users") == 3600

    async def test_unserializable_value_counts_error(self, remote, in_memory_backend):
        assert await remote.set("when", datetime, ttl_seconds=60) is False
        assert remote.stats.errors == 1
        assert await in_memory_backend.get("when") is None

    async def test_mset(self, remote, in_memory_backend):
        assert await remote.mset({"a": 1, "b": 2}, ttl_seconds=30) is True
        assert await in_memory_backend.mget(["a", "b"]) == ["1", "2"]
        assert await in_memory_backend.ttl("a") == 30

    async def test_mset_rejects_batch_with_bad_value(self, remote, in_memory_backend):
        assert await remote.mset({"a": 1, "b": object()}, ttl_seconds=30) is False
        assert await in_memory_backend.get("a") is None


@pytest.mark.unit
class TestRemoteInvalidation:
    async def test_delete_by_pattern(self, remote, in_memory_backend):
        for key in ("user:1", "user:2", "order:1"):
            await in_memory_backend.set(key, "1")

        assert await remote.delete("user:*") == 2
        assert await in_memory_backend.keys("*") == ["order:1"]

    async def test_delete_no_match(self, remote):
        assert await remote.delete("nothing:*") == 0

    async def test_invalidate_by_tags_removes_members_and_sets(self, remote, in_memory_backend):
        await remote.set("user:1", 1, ttl_seconds=300, tags=["users"])
        await remote.set("user:2", 2, ttl_seconds=300, tags=["users", "admins"])
        await remote.set("order:1", 3, ttl_seconds=300, tags=["orders"])

        keys = await remote.invalidate_by_tags(["users", "admins"])

        assert keys == ["user:1", "user:2"]
        assert await in_memory_backend.get("user:1") is None
        assert await in_memory_backend.smembers("tag:users") == set()
        assert await in_memory_backend.get("order:1") == "3"

    async def test_invalidate_unknown_tag(self, remote):
        assert await remote.invalidate_by_tags(["ghost"]) == []
        assert await remote.invalidate_by_tags([]) == []


@pytest.mark.unit
class TestRemoteDegradation:
    async def test_failures_degrade_to_defaults(self, breaker):
        remote = RemoteCache(CacheTestFactory.failing_backend(), breaker, stats=CacheStats())

        assert await remote.get("k") is None
        assert await remote.get_with_ttl("k") == (None, -2)
        assert await remote.mget(["a", "b"]) == {"a": None, "b": None}
        assert await remote.set("k", 1, ttl_seconds=10) is False
        assert await remote.delete("k*") == 0

        assert remote.stats.errors == 5
        assert breaker.state == CircuitState.OPEN

    async def test_open_circuit_is_not_an_error(self, breaker):
        backend = CacheTestFactory.failing_backend()
        remote = RemoteCache(backend, breaker, stats=CacheStats())
        for _ in range(5):
            await remote.get("k")
        backend.get.reset_mock()

        assert await remote.get("k") is None
        assert await remote.invalidate_by_tags(["users"]) == []
        assert await remote.flush() is False

        backend.get.assert_not_awaited()
        assert remote.stats.errors == 5

    async def test_ping_never_raises(self, breaker):
        backend = CacheTestFactory.failing_backend()
        backend.ping.side_effect = ConnectionError("down")
        remote = RemoteCache(backend, breaker)

        assert await remote.ping() is False

    async def test_health_check_includes_breaker(self, breaker):
        remote = RemoteCache(CacheTestFactory.failing_backend(), breaker)
        health = await remote.health_check()

        assert health["status"] == "unhealthy"
        assert health["circuit_breaker"]["state"] == "closed"
