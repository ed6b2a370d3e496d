"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the multi-layer cache.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache processing stages used as the `stage` field of log events.

    Format: {PREFIX}.{NAME}
    """

    INITIALIZATION = "CACHE.INIT"
    LOCAL_LOOKUP = "CACHE.L1"
    REMOTE_LOOKUP = "CACHE.L2"
    POPULATE = "CACHE.SET"
    INVALIDATE = "CACHE.INVALIDATE"
    BATCH = "CACHE.BATCH"
    WARMUP = "CACHE.WARMUP"
    SWEEP = "CACHE.SWEEP"
    STATS = "CACHE.STATS"
    SHUTDOWN = "CACHE.SHUTDOWN"

    CIRCUIT_BREAKER = "CB"
    SCHEDULER = "SCHED"
    REDIS = "REDIS"


# ============================================================================
# Circuit Breaker States
# ============================================================================


class CircuitState(str, Enum):
    """
    Circuit breaker states.

    CLOSED: Normal operation, requests allowed
    OPEN: Failing fast, requests short-circuited
    HALF_OPEN: Testing recovery, trial requests allowed
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Multi-tier caching levels.

    L1: In-process local cache (no network)
    L2: Redis remote cache (network, breaker protected)
    """

    L1 = "l1"
    L2 = "l2"
    MISS = "miss"


# ============================================================================
# Cache Write Strategies
# ============================================================================


class CacheStrategy(str, Enum):
    """
    Cache write/refresh strategies.

    CACHE_ASIDE: caller computes on miss, manager only stores
    WRITE_THROUGH: persistence hook awaited before caching
    WRITE_BEHIND: cache first, persistence hook scheduled in background
    REFRESH_AHEAD: remote hits near expiry are queued for background refresh
    """

    CACHE_ASIDE = "cache-aside"
    WRITE_THROUGH = "write-through"
    WRITE_BEHIND = "write-behind"
    REFRESH_AHEAD = "refresh-ahead"


# ============================================================================
# Defaults
# ============================================================================

# Local layer
LOCAL_CACHE_MAX_SIZE = 1000  # Maximum entries in the local layer
LOCAL_CACHE_MAX_TTL = 60  # Local TTL cap in seconds

# Remote layer
DEFAULT_TTL = 300  # Default remote TTL in seconds (5 minutes)
TAG_TTL = 86400  # Tag index TTL in seconds (24 hours)
REFRESH_AHEAD_FRACTION = 0.2  # Refresh when < 20% of TTL remains

# Circuit breaker
CB_FAILURE_THRESHOLD = 5
CB_SUCCESS_THRESHOLD = 3
CB_RECOVERY_TIMEOUT = 60.0

# Background task intervals (seconds)
SWEEP_INTERVAL = 60
STATS_INTERVAL = 300
WARMUP_INTERVAL = 30

# Key limits
LOG_KEY_MAX_LENGTH = 64  # Truncation length for keys in log fields
MAX_KEY_LENGTH = 200  # Longer generated keys are shortened to an md5 digest

# ============================================================================
# Redis Key Prefixes
# ============================================================================

REDIS_KEY_TAG = "tag"
REDIS_KEY_CACHE = "cache"
