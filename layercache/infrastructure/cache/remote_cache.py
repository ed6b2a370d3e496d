"""
Remote (L2) Cache Wrapper

STAGE-CACHE.L2: typed access to the remote store through the circuit breaker.

Architecture:
    RemoteCache
        ├── CircuitBreaker (every store call goes through execute())
        ├── CacheBackend   (RedisClient in production, InMemoryCache in tests)
        └── CacheStats     (errors counter)

Degradation Policy:
    - Breaker OPEN           → None / {} / False / 0 / [] (not an error)
    - Transport failure      → breaker failure, errors += 1, same defaults
    - Undecodable payload    → errors += 1, treated as a miss
    Nothing here raises to the caller.

Values are JSON-encoded with orjson before they reach the store.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import orjson

from layercache.core.config.constants import REDIS_KEY_TAG, TAG_TTL, Stage
from layercache.core.exceptions import CacheSerializationError
from layercache.core.interfaces.cache import CacheBackend
from layercache.core.logging.logger import get_logger, log_stage, truncate_key
from layercache.core.resilience.circuit_breaker import CIRCUIT_OPEN, CircuitBreaker
from layercache.infrastructure.cache.stats import CacheStats

logger = get_logger(__name__)

T = TypeVar("T")

# TTL reported for a key that does not exist
TTL_MISSING = -2


def serialize(value: Any) -> str:
    """
    Encode a value for the store.

    Raises:
        CacheSerializationError: For types orjson cannot encode
    """
    try:
        return orjson.dumps(value, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")
    except TypeError as e:
        raise CacheSerializationError.from_exception(
            e, message=f"Cannot serialize {type(value).__name__}", value_type=type(value).__name__
        ) from e


def deserialize(payload: str | bytes) -> Any:
    """
    Decode a stored payload.

    Raises:
        CacheSerializationError: If the payload is not valid JSON
    """
    try:
        return orjson.loads(payload)
    except orjson.JSONDecodeError as e:
        raise CacheSerializationError.from_exception(e, message="Cached payload is not valid JSON") from e


def tag_key_name(tag: str) -> str:
    return f"{REDIS_KEY_TAG}:{tag}"


class RemoteCache:
    """
    Breaker-guarded, JSON-typed wrapper around a CacheBackend.

    Usage:
        remote = RemoteCache(RedisClient(), CircuitBreaker())
        await remote.set("user:42", {"name": "Ada"}, ttl_seconds=300, tags=["users"])
        await remote.get("user:42")           # {"name": "Ada"}
        await remote.invalidate_by_tags(["users"])
    """

    def __init__(
        self,
        backend: CacheBackend,
        breaker: CircuitBreaker,
        stats: CacheStats | None = None,
        tag_ttl: int = TAG_TTL,
    ):
        self._backend = backend
        self._breaker = breaker
        self._stats = stats or CacheStats()
        self._tag_ttl = tag_ttl

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def stats(self) -> CacheStats:
        return self._stats

    async def _guarded(
        self, operation: str, call: Callable[[], Awaitable[T]], default: T, key: str | None = None
    ) -> T:
        """
        Run a store call through the breaker and collapse failures to a default.

        Short-circuits are logged at debug level and are not errors.
        """
        try:
            result = await self._breaker.execute(call)
        except Exception as e:
            self._stats.record_error()
            log_stage(
                logger,
                Stage.REMOTE_LOOKUP,
                "Remote cache operation failed",
                level="warning",
                operation=operation,
                cache_key=truncate_key(key) if key else None,
                error=str(e),
                error_type=type(e).__name__,
                circuit_state=self._breaker.state.value,
            )
            return default

        if result is CIRCUIT_OPEN:
            logger.debug(
                "Remote cache short-circuited",
                stage=Stage.CIRCUIT_BREAKER.value,
                operation=operation,
                cache_key=truncate_key(key) if key else None,
            )
            return default
        return result

    def _decode(self, key: str, payload: str | bytes | None) -> Any | None:
        if payload is None:
            return None
        try:
            return deserialize(payload)
        except CacheSerializationError as e:
            self._stats.record_error()
            log_stage(
                logger,
                Stage.REMOTE_LOOKUP,
                "Cached payload could not be decoded",
                level="warning",
                cache_key=truncate_key(key),
                error=str(e),
            )
            return None

    def _encode(self, key: str, value: Any) -> str | None:
        try:
            return serialize(value)
        except CacheSerializationError as e:
            self._stats.record_error()
            log_stage(
                logger,
                Stage.POPULATE,
                "Value could not be serialized",
                level="warning",
                cache_key=truncate_key(key),
                value_type=type(value).__name__,
                error=str(e),
            )
            return None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Fetch and decode a value. None on miss, open circuit or failure."""
        payload = await self._guarded("get", lambda: self._backend.get(key), None, key)
        return self._decode(key, payload)

    async def get_with_ttl(self, key: str) -> tuple[Any | None, int]:
        """
        Fetch a value together with its remaining TTL in seconds.

        Returns:
            (value, ttl); ttl is -1 for keys without expiry and -2 when absent
        """

        async def fetch() -> tuple[str | None, int]:
            payload = await self._backend.get(key)
            if payload is None:
                return None, TTL_MISSING
            return payload, await self._backend.ttl(key)

        payload, ttl = await self._guarded("get_with_ttl", fetch, (None, TTL_MISSING), key)
        value = self._decode(key, payload)
        if value is None:
            return None, TTL_MISSING
        return value, ttl

    async def mget(self, keys: list[str]) -> dict[str, Any | None]:
        """
        Fetch several keys in one round-trip.

        Returns:
            One entry per input key; missing or undecodable values map to None
        """
        if not keys:
            return {}

        payloads = await self._guarded("mget", lambda: self._backend.mget(keys), None)
        if payloads is None:
            return {key: None for key in keys}
        return {key: self._decode(key, payload) for key, payload in zip(keys, payloads)}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def set(
        self, key: str, value: Any, ttl_seconds: int, tags: list[str] | None = None
    ) -> bool:
        """
        Store a value with SET EX and register it under each tag.

        Each tag set gets SADD + EXPIRE(tag_ttl) so the index expires on its own.
        """
        payload = self._encode(key, value)
        if payload is None:
            return False

        tag_names = [tag_key_name(tag) for tag in tags or []]

        async def write() -> bool:
            stored = await self._backend.set(key, payload, ttl=ttl_seconds)
            if tag_names:
                await self._backend.tag_key(key, tag_names, self._tag_ttl)
            return stored

        return await self._guarded("set", write, False, key)

    async def mset(self, entries: dict[str, Any], ttl_seconds: int) -> bool:
        """Pipelined SET EX for every entry. False if any value cannot be encoded."""
        if not entries:
            return True

        encoded: dict[str, str] = {}
        for key, value in entries.items():
            payload = self._encode(key, value)
            if payload is None:
                return False
            encoded[key] = payload

        return await self._guarded(
            "mset", lambda: self._backend.set_many(encoded, ttl_seconds), False
        )

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def delete(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern (KEYS + DEL).

        STAGE-CACHE.INVALIDATE: admin / maintenance path, not for hot paths.

        Returns:
            Number of keys removed
        """

        async def remove() -> int:
            matched = await self._backend.keys(pattern)
            if not matched:
                return 0
            return await self._backend.delete(*matched)

        removed = await self._guarded("delete", remove, 0, pattern)
        log_stage(
            logger, Stage.INVALIDATE, "Remote keys deleted by pattern", pattern=pattern, removed=removed
        )
        return removed

    async def invalidate_by_tags(self, tags: list[str]) -> list[str]:
        """
        Delete every key registered under any of the tags, plus the tag sets.

        Returns:
            The invalidated cache keys (sorted)
        """
        if not tags:
            return []

        tag_names = [tag_key_name(tag) for tag in tags]

        async def invalidate() -> list[str]:
            members: set[str] = set()
            for name in tag_names:
                members |= await self._backend.smembers(name)
            await self._backend.delete(*members, *tag_names)
            return sorted(members)

        keys = await self._guarded("invalidate_by_tags", invalidate, [])
        log_stage(
            logger, Stage.INVALIDATE, "Remote keys invalidated by tags", tags=tags, invalidated=len(keys)
        )
        return keys

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    async def ping(self) -> bool:
        try:
            return bool(await self._backend.ping())
        except Exception as e:
            logger.warning("Remote cache ping failed", stage=Stage.REDIS.value, error=str(e))
            return False

    async def flush(self) -> bool:
        """FLUSHDB on the remote store. Callers enforce environment rules."""
        return await self._guarded("flush", self._backend.flushdb, False)

    async def disconnect(self) -> None:
        await self._backend.disconnect()

    async def health_check(self) -> dict[str, Any]:
        try:
            health = await self._backend.health_check()
        except Exception as e:
            health = {"status": "unhealthy", "error": str(e)}
        health["circuit_breaker"] = self._breaker.stats()
        return health
