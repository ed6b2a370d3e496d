"""
Core Module

Foundational components: configuration, logging, exceptions, resilience,
scheduling and backend interfaces.
"""

from .exceptions import (
    CacheConfigurationError,
    CacheConnectionError,
    CacheError,
    CacheFlushForbiddenError,
    CacheKeyError,
    CacheSerializationError,
    LayerCacheError,
)
from .logging import (
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_stage,
    set_correlation_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "log_stage",
    "LayerCacheError",
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    "CacheConfigurationError",
    "CacheFlushForbiddenError",
]
