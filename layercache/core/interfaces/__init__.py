"""
Core Interfaces Module

Protocols that decouple the cache layers from concrete stores.

Components:
-----------
- **cache.py**: CacheBackend protocol and the InMemoryCache implementation

Usage:
------
```python
from layercache.core.interfaces import CacheBackend, InMemoryCache

backend: CacheBackend = InMemoryCache()
await backend.set("user:42", '{"name": "Ada"}', ttl=300)
```
"""

from layercache.core.interfaces.cache import CacheBackend, InMemoryCache

__all__ = [
    "CacheBackend",
    "InMemoryCache",
]
