"""
Cache-Related Exceptions

Raised by the Redis client, the remote cache wrapper and the cache manager.
Transport and serialization failures are normally absorbed by the manager
(counted, treated as misses); only misuse reaches callers.
"""

from layercache.core.exceptions.base import LayerCacheError


class CacheError(LayerCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the remote cache (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    - Authentication failure
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when a cache key operation fails.

    Common causes:
    - Operation timeout
    - Wrong value type stored under the key
    - Memory limit exceeded
    """
    pass


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded to or decoded from JSON."""
    pass


class CacheConfigurationError(CacheError):
    """
    Raised when the cache is used in a way its configuration does not support.

    Example: a WRITE_THROUGH set on a manager without a persistence hook.
    """
    pass


class CacheFlushForbiddenError(CacheError):
    """Raised when flush() is called in the production environment."""
    pass
