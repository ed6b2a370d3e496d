"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.

Time-dependent components share one ManualClock so tests advance virtual
time instead of sleeping.
"""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from layercache.core.config.settings import Settings  # noqa: E402
from layercache.core.interfaces.cache import InMemoryCache  # noqa: E402
from layercache.core.resilience.circuit_breaker import CircuitBreaker  # noqa: E402
from layercache.core.scheduling.clock import ManualClock  # noqa: E402
from layercache.infrastructure.cache.cache_manager import CacheManager  # noqa: E402
from tests.test_fixtures.settings_factory import make_settings  # noqa: E402

# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def production_settings() -> Settings:
    return make_settings(ENVIRONMENT="production")


@pytest.fixture
def mock_settings():
    """
    Mock application settings for code paths that only read a few attributes.
    """
    settings = MagicMock(spec=Settings)
    settings.circuit_breaker.CB_FAILURE_THRESHOLD = 5
    settings.circuit_breaker.CB_SUCCESS_THRESHOLD = 3
    settings.circuit_breaker.CB_RECOVERY_TIMEOUT = 60.0
    settings.app.ENVIRONMENT = "test"
    return settings


# ============================================================================
# Time & Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock(start=1_000.0)


@pytest.fixture
async def in_memory_backend(manual_clock) -> InMemoryCache:
    """Connected in-memory backend driven by the manual clock."""
    backend = InMemoryCache(clock=manual_clock)
    await backend.connect()
    return backend


@pytest.fixture
def breaker(manual_clock) -> CircuitBreaker:
    return CircuitBreaker(
        name="test",
        failure_threshold=5,
        success_threshold=3,
        recovery_timeout=60.0,
        clock=manual_clock,
    )


@pytest.fixture
def cache_manager(in_memory_backend, test_settings, manual_clock, breaker) -> CacheManager:
    """Cache manager over the in-memory backend with default settings."""
    return CacheManager(
        in_memory_backend, settings=test_settings, breaker=breaker, clock=manual_clock
    )


@pytest.fixture
def mock_cache_manager():
    """
    Mock CacheManager for isolated route testing.
    """
    cache = MagicMock(spec=CacheManager)
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=True)
    cache.delete = AsyncMock(return_value=0)
    cache.invalidate_by_tags = AsyncMock(return_value=[])
    cache.flush = AsyncMock(return_value=True)
    cache.start = MagicMock()
    cache.stop = AsyncMock()
    cache.get_stats = MagicMock(
        return_value={
            "hits": 0,
            "misses": 0,
            "errors": 0,
            "evictions": 0,
            "hit_rate": 0.0,
            "l1_hits": 0,
            "l2_hits": 0,
            "total_requests": 0,
        }
    )
    cache.health_check = AsyncMock(return_value={"status": "healthy"})
    return cache
