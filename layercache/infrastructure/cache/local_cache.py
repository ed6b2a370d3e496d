"""
Local (L1) In-Process Cache

STAGE-CACHE.L1: bounded key/value map with per-entry expiry.

Implementation Details:
- OrderedDict keyed by cache key, values are CacheEntry(value, expires_at)
- Insertion-order eviction: when full and the key is new, the earliest
  inserted key is dropped and counted as one eviction
- Overwriting an existing key keeps its original insertion position
- Expired entries are removed lazily on read and in bulk by sweep()
- Synchronous: no awaits, so no lock is needed on a single event loop

This is a per-process cache, not shared across workers. Values are stored
as-is (no serialization) and returned by reference.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

from layercache.core.config.constants import LOCAL_CACHE_MAX_SIZE, Stage
from layercache.core.logging.logger import get_logger, log_stage
from layercache.core.scheduling.clock import Clock, SystemClock

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class LocalCache:
    """
    Bounded in-memory cache with per-entry TTL.

    Usage:
        local = LocalCache(max_size=1000)
        local.set("user:42", {"name": "Ada"}, ttl_ms=5000)
        local.get("user:42")   # {"name": "Ada"}
    """

    def __init__(self, max_size: int = LOCAL_CACHE_MAX_SIZE, clock: Clock | None = None):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._clock = clock or SystemClock()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._evictions = 0

    def get(self, key: str) -> Any | None:
        """
        Return the value if present and not expired, else None.

        A stale entry found here is removed.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock.now() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def remaining_ttl(self, key: str) -> float | None:
        """Seconds until the entry expires, or None if absent/expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        remaining = entry.expires_at - self._clock.now()
        return remaining if remaining > 0 else None

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        """
        Insert or overwrite an entry that expires ttl_ms from now.

        Args:
            key: Cache key
            value: Any Python object
            ttl_ms: Time-to-live in milliseconds
        """
        if key not in self._entries and len(self._entries) >= self._max_size:
            oldest_key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(
                "Local cache eviction",
                stage=Stage.LOCAL_LOOKUP.value,
                evicted_key=oldest_key,
                evictions=self._evictions,
            )

        self._entries[key] = CacheEntry(value=value, expires_at=self._clock.now() + ttl_ms / 1000.0)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """
        Remove every entry whose expiry has passed.

        STAGE-CACHE.SWEEP: run by the background scheduler, never per operation.

        Returns:
            Number of entries removed
        """
        now = self._clock.now()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]

        if expired:
            log_stage(
                logger,
                Stage.SWEEP,
                "Local cache sweep removed expired entries",
                level="debug",
                removed=len(expired),
                remaining=len(self._entries),
            )
        return len(expired)

    def reset_evictions(self) -> None:
        self._evictions = 0

    def keys(self) -> list[str]:
        """Keys in insertion order (oldest first). May include expired entries."""
        return list(self._entries.keys())

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def evictions(self) -> int:
        return self._evictions

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
