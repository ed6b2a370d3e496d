"""
Configuration Module

Centralized, type-safe configuration for the multi-layer cache.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants and enums

Usage:
------
```python
from layercache.core.config import get_settings
from layercache.core.config.constants import CacheStrategy, CircuitState

settings = get_settings()
redis_host = settings.redis.REDIS_HOST
threshold = settings.circuit_breaker.CB_FAILURE_THRESHOLD
```

Environment Variables:
---------------------
```bash
REDIS_HOST=localhost
REDIS_PORT=6379
CACHE_DEFAULT_TTL=300
CACHE_LOCAL_MAX_SIZE=1000
CB_FAILURE_THRESHOLD=5
CB_RECOVERY_TIMEOUT=60
LOG_LEVEL=INFO
LOG_FORMAT=json
ENVIRONMENT=production
```
"""

from layercache.core.config.constants import (
    CB_FAILURE_THRESHOLD,
    CB_RECOVERY_TIMEOUT,
    CB_SUCCESS_THRESHOLD,
    DEFAULT_TTL,
    LOCAL_CACHE_MAX_SIZE,
    LOCAL_CACHE_MAX_TTL,
    REDIS_KEY_CACHE,
    REDIS_KEY_TAG,
    REFRESH_AHEAD_FRACTION,
    SWEEP_INTERVAL,
    STATS_INTERVAL,
    TAG_TTL,
    WARMUP_INTERVAL,
    CacheStrategy,
    CacheTier,
    CircuitState,
    Stage,
)
from layercache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "CircuitState",
    "CacheTier",
    "CacheStrategy",
    # Defaults
    "LOCAL_CACHE_MAX_SIZE",
    "LOCAL_CACHE_MAX_TTL",
    "DEFAULT_TTL",
    "TAG_TTL",
    "REFRESH_AHEAD_FRACTION",
    "CB_FAILURE_THRESHOLD",
    "CB_SUCCESS_THRESHOLD",
    "CB_RECOVERY_TIMEOUT",
    "SWEEP_INTERVAL",
    "STATS_INTERVAL",
    "WARMUP_INTERVAL",
    # Redis keys
    "REDIS_KEY_TAG",
    "REDIS_KEY_CACHE",
]
