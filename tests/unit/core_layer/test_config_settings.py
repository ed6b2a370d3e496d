"""
Unit Tests for Configuration Settings

Tests the settings loading, validation, nested views and default values.
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from layercache.core.config.constants import (
    CB_FAILURE_THRESHOLD,
    CB_RECOVERY_TIMEOUT,
    CB_SUCCESS_THRESHOLD,
    DEFAULT_TTL,
    LOCAL_CACHE_MAX_SIZE,
    LOCAL_CACHE_MAX_TTL,
    CacheStrategy,
    CircuitState,
    Stage,
)
from layercache.core.config.settings import Settings, get_settings, reload_settings
from tests.test_fixtures.settings_factory import make_settings


@pytest.mark.unit
class TestSettingsDefaults:
    """Defaults match the documented cache behavior."""

    def test_cache_defaults(self):
        settings = make_settings()

        assert settings.cache.CACHE_ENABLED is True
        assert settings.cache.CACHE_DEFAULT_TTL == DEFAULT_TTL
        assert settings.cache.CACHE_LOCAL_MAX_SIZE == LOCAL_CACHE_MAX_SIZE
        assert settings.cache.CACHE_LOCAL_MAX_TTL == LOCAL_CACHE_MAX_TTL
        assert settings.cache.CACHE_TAG_TTL == 86400
        assert settings.cache.CACHE_REFRESH_AHEAD_FRACTION == 0.2

    def test_cache_view_fields(self):
        assert set(type(make_settings().cache).model_fields) == {
            "CACHE_ENABLED",
            "CACHE_DEFAULT_TTL",
            "CACHE_LOCAL_MAX_SIZE",
            "CACHE_LOCAL_MAX_TTL",
            "CACHE_TAG_TTL",
            "CACHE_REFRESH_AHEAD_FRACTION",
            "CACHE_SWEEP_INTERVAL",
            "CACHE_STATS_INTERVAL",
            "CACHE_WARMUP_INTERVAL",
        }

    def test_background_intervals(self):
        settings = make_settings()

        assert settings.cache.CACHE_SWEEP_INTERVAL == 60
        assert settings.cache.CACHE_STATS_INTERVAL == 300
        assert settings.cache.CACHE_WARMUP_INTERVAL == 30

    def test_circuit_breaker_defaults(self):
        settings = make_settings()

        assert settings.circuit_breaker.CB_FAILURE_THRESHOLD == CB_FAILURE_THRESHOLD
        assert settings.circuit_breaker.CB_SUCCESS_THRESHOLD == CB_SUCCESS_THRESHOLD
        assert settings.circuit_breaker.CB_RECOVERY_TIMEOUT == CB_RECOVERY_TIMEOUT

    def test_redis_defaults(self):
        settings = make_settings()

        assert settings.redis.REDIS_HOST == "localhost"
        assert settings.redis.REDIS_PORT == 6379
        assert settings.redis.REDIS_PASSWORD is None

    def test_app_view_reflects_root_fields(self):
        settings = make_settings(APP_NAME="orders-cache", API_PORT=9000)

        assert settings.app.APP_NAME == "orders-cache"
        assert settings.app.API_PORT == 9000
        assert settings.app.ENVIRONMENT == "test"


@pytest.mark.unit
class TestSettingsValidation:
    def test_log_level_normalized(self):
        assert make_settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(LOG_LEVEL="LOUD")

    def test_refresh_fraction_bounds(self):
        with pytest.raises(ValidationError):
            make_settings(CACHE_REFRESH_AHEAD_FRACTION=1.5)
        assert make_settings(CACHE_REFRESH_AHEAD_FRACTION=0.0).CACHE_REFRESH_AHEAD_FRACTION == 0.0

    def test_invalid_environment_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(ENVIRONMENT="moon")

    def test_is_production(self):
        assert make_settings(ENVIRONMENT="production").is_production is True
        assert make_settings().is_production is False


@pytest.mark.unit
class TestSettingsEnvironment:
    def test_environment_variables_override(self):
        env = {"REDIS_HOST": "redis.internal", "CACHE_LOCAL_MAX_SIZE": "50"}
        with patch.dict("os.environ", env):
            settings = Settings(_env_file=None)

        assert settings.redis.REDIS_HOST == "redis.internal"
        assert settings.cache.CACHE_LOCAL_MAX_SIZE == 50

    def test_get_settings_is_cached_and_reloadable(self):
        first = get_settings()
        assert get_settings() is first

        reloaded = reload_settings()
        assert reloaded is not first
        assert get_settings() is reloaded


@pytest.mark.unit
class TestConstants:
    def test_enum_values(self):
        assert CircuitState.HALF_OPEN.value == "half_open"
        assert CacheStrategy("write-behind") is CacheStrategy.WRITE_BEHIND
        assert Stage.LOCAL_LOOKUP.value == "CACHE.L1"
