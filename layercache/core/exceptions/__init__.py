"""
Exception Module

Structured exception hierarchy for layercache.

Module Structure:
-----------------
- **base.py**: LayerCacheError base class
- **cache.py**: Cache-related exceptions (Redis, serialization, misuse)

Usage:
------
```python
from layercache.core.exceptions import CacheFlushForbiddenError, LayerCacheError

try:
    await manager.flush()
except CacheFlushForbiddenError as e:
    logger.warning("flush refused", **e.to_dict())
```
"""

from layercache.core.exceptions.base import LayerCacheError
from layercache.core.exceptions.cache import (
    CacheConfigurationError,
    CacheConnectionError,
    CacheError,
    CacheFlushForbiddenError,
    CacheKeyError,
    CacheSerializationError,
)

__all__ = [
    # Base
    "LayerCacheError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    "CacheConfigurationError",
    "CacheFlushForbiddenError",
]
