"""
Redis Client with Connection Pooling

Architecture:
    RedisClient (Public API, implements CacheBackend)
        ├── ConnectionManager (Connection lifecycle)
        ├── OperationExecutor (Command execution with error handling)
        └── HealthMonitor (Health checks and metrics)

Error Policy:
    - Connection / timeout failures → CacheConnectionError
    - Any other RedisError         → CacheKeyError
    Errors are raised, never swallowed: the circuit breaker in front of this
    client has to see every failure.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from layercache.core.config.constants import Stage
from layercache.core.config.settings import Settings, get_settings
from layercache.core.exceptions import CacheConnectionError, CacheKeyError
from layercache.core.logging.logger import get_logger, truncate_key

logger = get_logger(__name__)


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# Handles connection lifecycle and pooling
# =============================================================================


class ConnectionManager:
    """
    Manages Redis connection lifecycle and pooling.

    Pool Configuration (from settings):
    - Max connections: REDIS_MAX_CONNECTIONS (50)
    - Socket timeout: REDIS_SOCKET_TIMEOUT (5s)
    - Health check interval: REDIS_HEALTH_CHECK_INTERVAL (30s)
    - Decode responses: strings, not bytes
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False

    async def connect(self) -> redis.Redis:
        """
        Establish connection to Redis with connection pooling.

        STAGE-REDIS.2: Connection establishment

        Returns:
            redis.Redis: Connected Redis client

        Raises:
            CacheConnectionError: If connection fails
        """
        if self._is_connected and self._client:
            return self._client

        redis_settings = self._settings.redis
        try:
            # STAGE-REDIS.2.1: Create connection pool
            self._pool = ConnectionPool(
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
                db=redis_settings.REDIS_DB,
                password=redis_settings.REDIS_PASSWORD,
                max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
                health_check_interval=redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )

            # STAGE-REDIS.2.2: Create client and verify with ping
            self._client = redis.Redis(connection_pool=self._pool)
            await self._client.ping()

            self._is_connected = True

            logger.info(
                "Redis connected successfully",
                stage="REDIS.2",
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
                db=redis_settings.REDIS_DB,
                max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
            )

            return self._client

        except (ConnectionError, TimeoutError, OSError) as e:
            logger.error("Failed to connect to Redis", stage="REDIS.2", error=str(e))
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={
                    "host": redis_settings.REDIS_HOST,
                    "port": redis_settings.REDIS_PORT,
                },
            ) from e

    async def disconnect(self) -> None:
        """
        Close Redis connection and pool.

        STAGE-REDIS.3: Connection cleanup
        """
        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._is_connected = False

        logger.info("Redis disconnected", stage="REDIS.3")

    async def ping(self) -> bool:
        try:
            if self._client and self._is_connected:
                return bool(await self._client.ping())
        except (ConnectionError, TimeoutError):
            pass
        return False

    def get_client(self) -> redis.Redis | None:
        return self._client

    def get_pool(self) -> ConnectionPool | None:
        return self._pool

    def is_connected(self) -> bool:
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTION
# Centralized error handling for Redis commands
# =============================================================================


class OperationExecutor:
    """
    Executes Redis operations with consistent error handling.

    Error Handling Strategy:
    - Catch RedisError exceptions
    - Log error with context (stage, key, etc.)
    - Raise CacheConnectionError / CacheKeyError with details
    """

    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client

    @asynccontextmanager
    async def _command(self, command: str, key: str | None = None, **context) -> AsyncIterator[None]:
        """Translate redis-py errors raised inside the block into cache errors."""
        try:
            yield
        except (ConnectionError, TimeoutError) as e:
            logger.error(
                f"Redis {command} failed: connection",
                stage=f"{Stage.REDIS.value}.{command}",
                key=truncate_key(key) if key else None,
                error=str(e),
                **context,
            )
            raise CacheConnectionError.from_exception(
                e, message=f"Redis {command} failed: {e}", key=key, command=command
            ) from e
        except RedisError as e:
            logger.error(
                f"Redis {command} failed",
                stage=f"{Stage.REDIS.value}.{command}",
                key=truncate_key(key) if key else None,
                error=str(e),
                **context,
            )
            raise CacheKeyError.from_exception(
                e, message=f"Redis {command} failed: {e}", key=key, command=command
            ) from e

    # -------------------------------------------------------------------------
    # Basic Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """
        Get value from Redis.

        STAGE-REDIS.GET: Redis GET operation
        """
        async with self._command("GET", key):
            return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        Set value in Redis.

        STAGE-REDIS.SET: Redis SET ... EX operation

        Args:
            key: Redis key
            value: Serialized value
            ttl: Time-to-live in seconds (optional)
        """
        async with self._command("SET", key):
            result = await self._redis.set(key, value, ex=ttl)
            return bool(result)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        async with self._command("DEL", count=len(keys)):
            return await self._redis.delete(*keys)

    async def keys(self, pattern: str) -> list[str]:
        """
        Glob-style key listing.

        STAGE-REDIS.KEYS: blocks the server for the scan; admin paths only.
        """
        async with self._command("KEYS", pattern=pattern):
            return list(await self._redis.keys(pattern))

    async def mget(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        async with self._command("MGET", count=len(keys)):
            return list(await self._redis.mget(keys))

    async def expire(self, key: str, ttl: int) -> bool:
        async with self._command("EXPIRE", key):
            return bool(await self._redis.expire(key, ttl))

    async def ttl(self, key: str) -> int:
        """
        Get TTL of a key.

        Returns:
            TTL in seconds, -1 if no TTL, -2 if key doesn't exist
        """
        async with self._command("TTL", key):
            return int(await self._redis.ttl(key))

    # -------------------------------------------------------------------------
    # Set Operations (tag index)
    # -------------------------------------------------------------------------

    async def sadd(self, name: str, *members: str) -> int:
        async with self._command("SADD", name):
            return await self._redis.sadd(name, *members)

    async def smembers(self, name: str) -> set[str]:
        async with self._command("SMEMBERS", name):
            return set(await self._redis.smembers(name))

    # -------------------------------------------------------------------------
    # Server / Batch Operations
    # -------------------------------------------------------------------------

    async def flushdb(self) -> bool:
        async with self._command("FLUSHDB"):
            return bool(await self._redis.flushdb())

    async def set_many(self, mapping: dict[str, str], ttl: int) -> bool:
        """
        Pipelined SET EX for every entry (one round-trip).

        STAGE-REDIS.PIPELINE: batch write
        """
        if not mapping:
            return True
        async with self._command("PIPELINE", count=len(mapping)):
            async with self._redis.pipeline(transaction=False) as pipe:
                for key, value in mapping.items():
                    pipe.set(key, value, ex=ttl)
                results = await pipe.execute()
            return all(results)

    async def tag_key(self, key: str, tag_names: list[str], tag_ttl: int) -> None:
        """Pipelined SADD + EXPIRE for each tag set."""
        if not tag_names:
            return
        async with self._command("PIPELINE", key, tags=len(tag_names)):
            async with self._redis.pipeline(transaction=False) as pipe:
                for name in tag_names:
                    pipe.sadd(name, key)
                    pipe.expire(name, tag_ttl)
                await pipe.execute()


# =============================================================================
# LAYER 3: HEALTH MONITORING
# Health checks and connection pool metrics
# =============================================================================


class HealthMonitor:
    """
    Monitors Redis health and connection pool metrics.

    Metrics Tracked:
    - Connection status
    - Ping latency
    - Pool size and utilization
    - Pool exhaustion warnings (>80% utilized)
    """

    def __init__(self, connection_manager: ConnectionManager, settings: Settings):
        self._conn_mgr = connection_manager
        self._settings = settings

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on Redis connection.

        STAGE-REDIS.HEALTH: Redis health check

        Returns:
            Dict with health status and metrics
        """
        health = {
            "status": "healthy",
            "connected": self._conn_mgr.is_connected(),
            "host": self._settings.redis.REDIS_HOST,
            "port": self._settings.redis.REDIS_PORT,
            "pool_size": 0,
            "pool_available": 0,
            "pool_utilization_pct": 0,
            "pool_warning": False,
            "ping_latency_ms": None,
        }

        try:
            client = self._conn_mgr.get_client()
            if not client:
                health["status"] = "unhealthy"
                health["error"] = "Client not initialized"
                return health

            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)

            pool = self._conn_mgr.get_pool()
            if pool:
                health["pool_size"] = pool.max_connections

                if hasattr(pool, "_available_connections"):
                    available = len(pool._available_connections)
                    health["pool_available"] = available

                    utilization = 100.0 * (
                        (pool.max_connections - available) / pool.max_connections
                    )
                    health["pool_utilization_pct"] = round(utilization, 1)

                    if utilization > 80:
                        health["pool_warning"] = True
                        logger.warning(
                            "Redis pool utilization high",
                            pool_utilization=utilization,
                            max_connections=pool.max_connections,
                        )

        except (RedisError, OSError) as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)

        return health


# =============================================================================
# LAYER 4: PUBLIC API
# Clean interface that coordinates all layers
# =============================================================================


class RedisClient:
    """
    Async Redis client with connection pooling and health checks.

    Implements the CacheBackend protocol used by RemoteCache.

    Usage:
        client = RedisClient()
        await client.connect()

        await client.set("user:42", '{"name": "Ada"}', ttl=300)
        value = await client.get("user:42")

        await client.disconnect()
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize Redis client.

        STAGE-REDIS.1: Client initialization
        """
        self._settings = settings or get_settings()

        self._conn_mgr = ConnectionManager(self._settings)
        self._executor: OperationExecutor | None = None
        self._health_monitor = HealthMonitor(self._conn_mgr, self._settings)

        logger.info(
            "Redis client initialized",
            stage="REDIS.1",
            host=self._settings.redis.REDIS_HOST,
            port=self._settings.redis.REDIS_PORT,
        )

    async def connect(self) -> None:
        """
        Establish connection to Redis with connection pooling.

        Raises:
            CacheConnectionError: If connection fails
        """
        client = await self._conn_mgr.connect()
        self._executor = OperationExecutor(client)

    async def disconnect(self) -> None:
        await self._conn_mgr.disconnect()
        self._executor = None

    async def ping(self) -> bool:
        return await self._conn_mgr.ping()

    @property
    def is_connected(self) -> bool:
        return self._conn_mgr.is_connected()

    def _require_executor(self) -> OperationExecutor:
        if self._executor is None:
            raise CacheConnectionError(
                "Redis client is not connected",
                details={"host": self._settings.redis.REDIS_HOST},
            ).with_suggestion("Call RedisClient.connect() before issuing commands")
        return self._executor

    # -------------------------------------------------------------------------
    # Delegate to OperationExecutor
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        return await self._require_executor().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        return await self._require_executor().set(key, value, ttl=ttl)

    async def delete(self, *keys: str) -> int:
        return await self._require_executor().delete(*keys)

    async def keys(self, pattern: str) -> list[str]:
        return await self._require_executor().keys(pattern)

    async def mget(self, keys: list[str]) -> list[str | None]:
        return await self._require_executor().mget(keys)

    async def expire(self, key: str, ttl: int) -> bool:
        return await self._require_executor().expire(key, ttl)

    async def ttl(self, key: str) -> int:
        return await self._require_executor().ttl(key)

    async def sadd(self, name: str, *members: str) -> int:
        return await self._require_executor().sadd(name, *members)

    async def smembers(self, name: str) -> set[str]:
        return await self._require_executor().smembers(name)

    async def flushdb(self) -> bool:
        return await self._require_executor().flushdb()

    async def set_many(self, mapping: dict[str, str], ttl: int) -> bool:
        return await self._require_executor().set_many(mapping, ttl)

    async def tag_key(self, key: str, tag_names: list[str], tag_ttl: int) -> None:
        await self._require_executor().tag_key(key, tag_names, tag_ttl)

    async def health_check(self) -> dict[str, Any]:
        """
        Perform comprehensive health check.

        Returns:
            Dict with health status and metrics
        """
        return await self._health_monitor.health_check()
