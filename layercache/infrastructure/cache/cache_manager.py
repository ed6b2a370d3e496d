#!/usr/bin/env python3
"""
Multi-Layer Cache Manager

Architecture:
    CacheManager (Public API)
        ├── LocalCache   (L1: in-process, bounded, TTL capped at 60s)
        ├── RemoteCache  (L2: Redis through the CircuitBreaker)
        ├── CacheStats   (hits / misses / errors, evictions from L1)
        ├── Warmup queue (keys pending refresh-ahead)
        └── TaskScheduler
            ├── sweep   (60s)  expired L1 entries
            ├── stats   (300s) statistics report
            └── warmup  (30s)  drain the warmup queue via registered loaders

Read path:
    GET: L1 → L2 (breaker guarded) → miss
    An L2 hit is promoted into L1 for min(remaining TTL, 60s). Under
    REFRESH_AHEAD, an L2 hit whose remaining TTL is below
    ttl_seconds * refresh_ahead_fraction is queued for background refresh;
    the caller still gets the cached value immediately.

Error Policy:
    Transport and serialization failures are counted and served as misses.
    Only misuse raises: flush() in production, write strategies without a
    persistence hook.
"""

import asyncio
import fnmatch
import functools
import hashlib
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

import orjson

from layercache.core.config.constants import (
    DEFAULT_TTL,
    MAX_KEY_LENGTH,
    REFRESH_AHEAD_FRACTION,
    CacheStrategy,
    CacheTier,
    Stage,
)
from layercache.core.config.settings import Settings, get_settings
from layercache.core.exceptions import CacheConfigurationError, CacheFlushForbiddenError
from layercache.core.interfaces.cache import CacheBackend
from layercache.core.logging.logger import get_logger, log_stage, truncate_key
from layercache.core.resilience.circuit_breaker import CircuitBreaker
from layercache.core.scheduling.clock import Clock, SystemClock
from layercache.core.scheduling.scheduler import TaskScheduler
from layercache.infrastructure.cache.local_cache import LocalCache
from layercache.infrastructure.cache.remote_cache import RemoteCache
from layercache.infrastructure.cache.stats import CacheStats

logger = get_logger(__name__)

Loader = Callable[[], Awaitable[Any]]
KeyLoader = Callable[[str], Awaitable[Any]]


# =============================================================================
# OPTIONS & COLLABORATORS
# =============================================================================


@dataclass
class CacheOptions:
    """
    Per-call cache options. Defaults are applied here, once.

    Attributes:
        ttl_seconds: Remote TTL in seconds
        strategy: Write/refresh strategy
        tags: Tags to register the key under
        refresh_ahead_fraction: Remaining-TTL fraction that queues a refresh
    """

    ttl_seconds: int = DEFAULT_TTL
    strategy: CacheStrategy = CacheStrategy.CACHE_ASIDE
    tags: list[str] = field(default_factory=list)
    refresh_ahead_fraction: float = REFRESH_AHEAD_FRACTION

    def __post_init__(self):
        if self.ttl_seconds <= 0:
            raise CacheConfigurationError(
                "ttl_seconds must be positive", details={"ttl_seconds": self.ttl_seconds}
            )
        if not 0.0 <= self.refresh_ahead_fraction <= 1.0:
            raise CacheConfigurationError(
                "refresh_ahead_fraction must be between 0 and 1",
                details={"refresh_ahead_fraction": self.refresh_ahead_fraction},
            )
        self.strategy = CacheStrategy(self.strategy)
        self.tags = list(self.tags)


@runtime_checkable
class PersistenceHook(Protocol):
    """
    Backing-store writer used by WRITE_THROUGH and WRITE_BEHIND.

    write() returns True when the value was persisted.
    """

    async def write(self, key: str, value: Any) -> bool:
        ...


def generate_cache_key(namespace: str, *parts: Any) -> str:
    """
    Build a readable cache key: "namespace:part1:part2".

    STAGE-CACHE.KEY: Cache key generation

    dicts, lists and tuples are encoded as JSON with sorted keys so equal
    arguments produce equal keys. Keys longer than MAX_KEY_LENGTH keep their
    namespace and end in an md5 digest of the full key.

    Example:
        generate_cache_key("user", 42, {"page": 2})  → 'user:42:{"page":2}'
    """
    encoded = []
    for part in parts:
        if isinstance(part, str):
            encoded.append(part)
        elif isinstance(part, (dict, list, tuple)):
            encoded.append(
                orjson.dumps(part, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS).decode()
            )
        else:
            encoded.append(str(part))

    key = ":".join([namespace, *encoded])
    if len(key) > MAX_KEY_LENGTH:
        digest = hashlib.md5(key.encode()).hexdigest()
        key = f"{namespace}:{digest}"
    return key


# =============================================================================
# PUBLIC API
# =============================================================================


class CacheManager:
    """
    Local + remote cache with statistics, tags, batching and refresh-ahead.

    Usage:
        manager = CacheManager(RedisClient())
        await manager.connect()
        manager.start()

        user = await manager.get("user:42")
        if user is None:
            user = await load_user(42)
            await manager.set("user:42", user, CacheOptions(ttl_seconds=600, tags=["users"]))

        await manager.invalidate_by_tags(["users"])
        stats = manager.get_stats()

        await manager.disconnect()
    """

    def __init__(
        self,
        backend: CacheBackend,
        settings: Settings | None = None,
        breaker: CircuitBreaker | None = None,
        clock: Clock | None = None,
        persistence_hook: PersistenceHook | None = None,
        scheduler: TaskScheduler | None = None,
    ):
        """
        Initialize cache manager.

        STAGE-CACHE.INIT: Cache manager initialization
        """
        self._settings = settings or get_settings()
        self._clock = clock or SystemClock()
        cache_settings = self._settings.cache

        self._stats = CacheStats()
        self._breaker = breaker or CircuitBreaker.from_settings(self._settings, clock=self._clock)
        self._local = LocalCache(max_size=cache_settings.CACHE_LOCAL_MAX_SIZE, clock=self._clock)
        self._remote = RemoteCache(
            backend, self._breaker, stats=self._stats, tag_ttl=cache_settings.CACHE_TAG_TTL
        )
        self._persistence_hook = persistence_hook

        self._enabled = cache_settings.CACHE_ENABLED
        self._local_max_ttl = cache_settings.CACHE_LOCAL_MAX_TTL
        self._default_options = CacheOptions(
            ttl_seconds=cache_settings.CACHE_DEFAULT_TTL,
            refresh_ahead_fraction=cache_settings.CACHE_REFRESH_AHEAD_FRACTION,
        )

        self._warmup_queue: dict[str, CacheOptions] = {}
        self._loaders: dict[str, tuple[KeyLoader, CacheOptions | None]] = {}
        self._pending_writes: set[asyncio.Task] = set()

        self._scheduler = scheduler or TaskScheduler(clock=self._clock)
        self._scheduler.add_job("sweep", cache_settings.CACHE_SWEEP_INTERVAL, self._sweep_job)
        self._scheduler.add_job("stats", cache_settings.CACHE_STATS_INTERVAL, self._stats_job)
        self._scheduler.add_job(
            "warmup", cache_settings.CACHE_WARMUP_INTERVAL, self.process_warmup_queue
        )

        log_stage(
            logger,
            Stage.INITIALIZATION,
            "Cache manager initialized",
            local_max_size=cache_settings.CACHE_LOCAL_MAX_SIZE,
            default_ttl=cache_settings.CACHE_DEFAULT_TTL,
            caching_enabled=self._enabled,
            environment=self._settings.ENVIRONMENT,
        )

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def local(self) -> LocalCache:
        return self._local

    @property
    def remote(self) -> RemoteCache:
        return self._remote

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def scheduler(self) -> TaskScheduler:
        return self._scheduler

    @property
    def pending_warmup(self) -> list[str]:
        """Keys currently queued for refresh-ahead."""
        return list(self._warmup_queue)

    def _resolve(self, options: CacheOptions | None) -> CacheOptions:
        return options if options is not None else replace(self._default_options, tags=[])

    def _local_ttl_ms(self, ttl_seconds: float) -> int:
        """
        Local TTL: remote TTL capped at CACHE_LOCAL_MAX_TTL, in milliseconds.

        -1 (no expiry) and -2 (unknown) fall back to the cap.
        """
        if ttl_seconds < 0:
            ttl_seconds = self._local_max_ttl
        return int(min(ttl_seconds, self._local_max_ttl) * 1000)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Connect the remote backend.

        Raises:
            CacheConnectionError: If the backend cannot be reached
        """
        await self._remote.backend.connect()
        log_stage(logger, Stage.INITIALIZATION, "Remote cache connected")

    def start(self) -> None:
        """Start the periodic background jobs."""
        self._scheduler.start()

    async def stop(self) -> None:
        """Stop background jobs and wait for queued write-behind writes."""
        await self._scheduler.stop()
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)

    async def disconnect(self) -> None:
        """
        Stop background work and close the remote connection.

        STAGE-CACHE.SHUTDOWN
        """
        await self.stop()
        await self._remote.disconnect()
        log_stage(logger, Stage.SHUTDOWN, "Cache manager disconnected", **self.get_stats())

    async def ping(self) -> bool:
        return await self._remote.ping()

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str, options: CacheOptions | None = None) -> Any | None:
        """
        Get a value with L1→L2 fallback.

        STAGE-CACHE.L1: local lookup
        STAGE-CACHE.L2: remote lookup (if local miss)

        Args:
            key: Cache key
            options: Strategy and threshold for refresh-ahead

        Returns:
            Cached value or None on miss (including open circuit and store errors)
        """
        if not self._enabled:
            self._stats.record_lookup(CacheTier.MISS)
            return None

        options = self._resolve(options)

        value = self._local.get(key)
        if value is not None:
            self._stats.record_lookup(CacheTier.L1)
            logger.debug("Local cache hit", stage=Stage.LOCAL_LOOKUP.value, cache_key=truncate_key(key))
            return value

        value, remaining_ttl = await self._remote.get_with_ttl(key)
        if value is None:
            self._stats.record_lookup(CacheTier.MISS)
            logger.debug("Cache miss", stage=Stage.REMOTE_LOOKUP.value, cache_key=truncate_key(key))
            return None

        # TTL 0: expires within the second, served without promotion
        if remaining_ttl != 0:
            self._local.set(key, value, self._local_ttl_ms(remaining_ttl))
        self._stats.record_lookup(CacheTier.L2)
        logger.debug(
            "Remote cache hit",
            stage=Stage.REMOTE_LOOKUP.value,
            cache_key=truncate_key(key),
            remaining_ttl=remaining_ttl,
        )

        if (
            options.strategy == CacheStrategy.REFRESH_AHEAD
            and 0 < remaining_ttl < options.ttl_seconds * options.refresh_ahead_fraction
        ):
            self._warmup_queue[key] = options
            log_stage(
                logger,
                Stage.WARMUP,
                "Key queued for refresh-ahead",
                level="debug",
                cache_key=truncate_key(key),
                remaining_ttl=remaining_ttl,
            )

        return value

    async def set(self, key: str, value: Any, options: CacheOptions | None = None) -> bool:
        """
        Store a value in the remote layer and mirror it into the local layer.

        STAGE-CACHE.SET: Cache population

        Strategies:
            CACHE_ASIDE:   store only
            WRITE_THROUGH: persistence hook first; False/exception aborts the write
            WRITE_BEHIND:  store, then run the hook as a background task

        Returns:
            True if the remote write succeeded. With caching disabled,
            WRITE_THROUGH/WRITE_BEHIND return the persistence hook result.

        Raises:
            CacheConfigurationError: WRITE_THROUGH/WRITE_BEHIND without a persistence hook
        """
        options = self._resolve(options)

        if options.strategy in (CacheStrategy.WRITE_THROUGH, CacheStrategy.WRITE_BEHIND):
            if self._persistence_hook is None:
                raise CacheConfigurationError(
                    f"{options.strategy.value} requires a persistence hook",
                    key=key,
                    details={"strategy": options.strategy.value},
                ).with_suggestion("Pass persistence_hook= to CacheManager")

        if not self._enabled:
            # Persistence still happens with caching switched off
            if options.strategy in (CacheStrategy.WRITE_THROUGH, CacheStrategy.WRITE_BEHIND):
                return await self._persist(key, value)
            return False

        if options.strategy == CacheStrategy.WRITE_THROUGH:
            if not await self._persist(key, value):
                return False

        stored = await self._remote.set(key, value, options.ttl_seconds, options.tags)
        self._local.set(key, value, self._local_ttl_ms(options.ttl_seconds))

        if options.strategy == CacheStrategy.WRITE_BEHIND:
            task = asyncio.create_task(self._persist(key, value))
            self._pending_writes.add(task)
            task.add_done_callback(self._pending_writes.discard)

        log_stage(
            logger,
            Stage.POPULATE,
            "Cache set",
            level="debug",
            cache_key=truncate_key(key),
            ttl=options.ttl_seconds,
            tags=options.tags or None,
            strategy=options.strategy.value,
            stored=stored,
        )
        return stored

    async def _persist(self, key: str, value: Any) -> bool:
        try:
            persisted = bool(await self._persistence_hook.write(key, value))
        except Exception as e:
            self._stats.record_error()
            log_stage(
                logger,
                Stage.POPULATE,
                "Persistence hook failed",
                level="error",
                cache_key=truncate_key(key),
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if not persisted:
            log_stage(
                logger,
                Stage.POPULATE,
                "Persistence hook rejected write",
                level="warning",
                cache_key=truncate_key(key),
            )
        return persisted

    async def delete(self, pattern: str) -> int:
        """
        Delete keys matching a glob pattern from both layers.

        STAGE-CACHE.INVALIDATE

        Returns:
            Number of remote keys removed
        """
        removed = await self._remote.delete(pattern)
        for key in self._local.keys():
            if fnmatch.fnmatchcase(key, pattern):
                self._local.delete(key)
        return removed

    async def invalidate_by_tags(self, tags: list[str]) -> list[str]:
        """
        Invalidate every key registered under any of the tags.

        Returns:
            The invalidated keys
        """
        keys = await self._remote.invalidate_by_tags(tags)
        for key in keys:
            self._local.delete(key)
        return keys

    # -------------------------------------------------------------------------
    # Batch Operations
    # -------------------------------------------------------------------------

    async def mget(self, keys: list[str]) -> dict[str, Any | None]:
        """
        Get several keys: L1 first, then one remote MGET for the rest.

        STAGE-CACHE.BATCH

        Every key counts as one lookup in the statistics. Remote hits are
        promoted into L1 with the local TTL cap.

        Returns:
            Dict with one entry per input key (None for misses)
        """
        results: dict[str, Any | None] = {}
        remote_keys: list[str] = []
        seen: set[str] = set()

        for key in keys:
            if key in seen:
                continue
            seen.add(key)
            value = self._local.get(key) if self._enabled else None
            if value is not None:
                results[key] = value
                self._stats.record_lookup(CacheTier.L1)
            else:
                remote_keys.append(key)

        if remote_keys and self._enabled:
            fetched = await self._remote.mget(remote_keys)
        else:
            fetched = {}

        for key in remote_keys:
            value = fetched.get(key)
            if value is not None:
                self._local.set(key, value, self._local_ttl_ms(self._local_max_ttl))
                self._stats.record_lookup(CacheTier.L2)
            else:
                self._stats.record_lookup(CacheTier.MISS)
            results[key] = value

        log_stage(
            logger,
            Stage.BATCH,
            "Batch cache lookup",
            level="debug",
            requested=len(keys),
            remote_lookups=len(remote_keys),
        )
        return {key: results[key] for key in keys}

    async def mset(self, entries: dict[str, Any], options: CacheOptions | None = None) -> bool:
        """Pipelined write of several entries with one TTL; mirrored into L1."""
        if not self._enabled:
            return False
        options = self._resolve(options)

        stored = await self._remote.mset(entries, options.ttl_seconds)
        ttl_ms = self._local_ttl_ms(options.ttl_seconds)
        for key, value in entries.items():
            self._local.set(key, value, ttl_ms)
        return stored

    # -------------------------------------------------------------------------
    # Warmup / Refresh-Ahead
    # -------------------------------------------------------------------------

    async def warmup(self, key: str, loader: Loader, options: CacheOptions | None = None) -> bool:
        """
        Load a value and store it.

        STAGE-CACHE.WARMUP

        Loader errors are logged and counted, never raised. A None result
        stores nothing.

        Returns:
            True if a value was loaded and stored
        """
        try:
            value = await loader()
        except Exception as e:
            self._stats.record_error()
            log_stage(
                logger,
                Stage.WARMUP,
                "Cache warmup loader failed",
                level="error",
                cache_key=truncate_key(key),
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if value is None:
            return False
        return await self.set(key, value, options)

    async def warm(self, entries: list[tuple[str, Loader, CacheOptions | None]]) -> int:
        """Warm several keys concurrently. Returns the number stored."""
        results = await asyncio.gather(
            *(self.warmup(key, loader, options) for key, loader, options in entries)
        )
        return sum(1 for stored in results if stored)

    def register_loader(
        self, key_or_prefix: str, loader: KeyLoader, options: CacheOptions | None = None
    ) -> None:
        """
        Register a loader used to refresh queued keys.

        The loader receives the key. When several registrations match a key,
        the longest prefix wins.
        """
        self._loaders[key_or_prefix] = (loader, options)

    def _find_loader(self, key: str) -> tuple[KeyLoader, CacheOptions | None] | None:
        matches = [prefix for prefix in self._loaders if key.startswith(prefix)]
        if not matches:
            return None
        return self._loaders[max(matches, key=len)]

    async def process_warmup_queue(self) -> int:
        """
        Drain the warmup queue.

        Keys without a registered loader are dropped with a debug log; the
        manager cannot rebuild a value from a bare key.

        Returns:
            Number of keys refreshed
        """
        queued = self._warmup_queue
        self._warmup_queue = {}
        refreshed = 0

        for key, queued_options in queued.items():
            registration = self._find_loader(key)
            if registration is None:
                log_stage(
                    logger,
                    Stage.WARMUP,
                    "No loader registered, dropping refresh",
                    level="debug",
                    cache_key=truncate_key(key),
                )
                continue

            loader, loader_options = registration
            if await self.warmup(key, functools.partial(loader, key), loader_options or queued_options):
                refreshed += 1

        if queued:
            log_stage(
                logger, Stage.WARMUP, "Warmup queue processed", queued=len(queued), refreshed=refreshed
            )
        return refreshed

    async def get_or_compute(
        self,
        key: str,
        compute_fn: Callable[[], Any],
        options: CacheOptions | None = None,
    ) -> Any:
        """
        Get from cache or compute and cache the result (cache-aside pattern).

        Errors raised by compute_fn propagate to the caller.
        """
        cached = await self.get(key, options)
        if cached is not None:
            return cached

        value = compute_fn()
        if inspect.isawaitable(value):
            value = await value

        if value is not None:
            await self.set(key, value, options)
        return value

    # -------------------------------------------------------------------------
    # Background jobs
    # -------------------------------------------------------------------------

    async def _sweep_job(self) -> None:
        self._local.sweep()

    async def _stats_job(self) -> None:
        self.report_stats()

    def report_stats(self) -> dict[str, Any]:
        """Log the current statistics. STAGE-CACHE.STATS"""
        stats = self.get_stats()
        log_stage(
            logger,
            Stage.STATS,
            "Cache statistics",
            **stats,
            local_size=self._local.size,
            pending_warmup=len(self._warmup_queue),
            circuit_state=self._breaker.state.value,
        )
        return stats

    # -------------------------------------------------------------------------
    # Monitoring & Administration
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """
        Snapshot of the counters.

        Returns:
            New dict with hits, misses, errors, evictions, hit_rate (0..1)
        """
        return self._stats.snapshot(evictions=self._local.evictions)

    async def flush(self) -> bool:
        """
        Clear both layers and reset statistics.

        Raises:
            CacheFlushForbiddenError: In the production environment
        """
        if self._settings.is_production:
            raise CacheFlushForbiddenError(
                "Cache flush is not allowed in production",
                details={"environment": self._settings.ENVIRONMENT},
            )

        flushed = await self._remote.flush()
        self._local.clear()
        self._local.reset_evictions()
        self._warmup_queue.clear()
        self._stats.reset()

        log_stage(
            logger,
            Stage.INVALIDATE,
            "Cache flushed",
            level="warning",
            remote_flushed=flushed,
            environment=self._settings.ENVIRONMENT,
        )
        return flushed

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on the cache system.

        Returns:
            Dict with health status for both layers
        """
        remote_health = await self._remote.health_check()
        local_size = self._local.size
        local_max = self._local.max_size

        status = "healthy"
        if remote_health.get("status") != "healthy":
            status = "degraded"

        return {
            "status": status,
            "caching_enabled": self._enabled,
            "local": {
                "status": "healthy",
                "size": local_size,
                "max_size": local_max,
                "capacity_utilization": round(local_size / local_max * 100, 2),
            },
            "remote": remote_health,
            "stats": self.get_stats(),
            "pending_warmup": len(self._warmup_queue),
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    generate_cache_key = staticmethod(generate_cache_key)
