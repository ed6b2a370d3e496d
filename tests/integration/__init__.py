"""
Integration tests.

These run the cache manager against a live Redis (REDIS_HOST/REDIS_PORT) and
are skipped when no server is reachable.
"""
