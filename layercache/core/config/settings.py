#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
multi-layer cache. All tunables (Redis connection, local layer bounds, circuit
breaker thresholds, background task intervals, logging) live here.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Nested views (settings.redis, settings.cache, ...) for grouped access
- Easy testing with reload_settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """
    Redis connection configuration for the remote cache layer.

    STAGE-0.1: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")

    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Multi-layer cache configuration.

    STAGE-CACHE: TTLs, local layer bounds and background task intervals
    """

    CACHE_ENABLED: bool = Field(default=True, description="Master switch for caching")
    CACHE_DEFAULT_TTL: int = Field(default=300, description="Default remote TTL in seconds")
    CACHE_LOCAL_MAX_SIZE: int = Field(default=1000, description="Local layer max entries")
    CACHE_LOCAL_MAX_TTL: int = Field(default=60, description="Cap on local layer TTL in seconds")
    CACHE_TAG_TTL: int = Field(default=86400, description="Tag index TTL in seconds (24 hours)")
    CACHE_REFRESH_AHEAD_FRACTION: float = Field(
        default=0.2, description="Remaining TTL fraction that triggers refresh-ahead"
    )
    CACHE_SWEEP_INTERVAL: int = Field(default=60, description="Local sweep interval in seconds")
    CACHE_STATS_INTERVAL: int = Field(default=300, description="Stats report interval in seconds")
    CACHE_WARMUP_INTERVAL: int = Field(default=30, description="Warmup queue drain interval in seconds")

    @field_validator("CACHE_REFRESH_AHEAD_FRACTION")
    @classmethod
    def validate_refresh_fraction(cls, v):
        """Refresh-ahead fraction must lie in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("CACHE_REFRESH_AHEAD_FRACTION must be between 0 and 1")
        return v

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CircuitBreakerSettings(BaseSettings):
    """
    Circuit breaker configuration for the remote cache layer.

    STAGE-CB: Circuit breaker thresholds
    """

    CB_FAILURE_THRESHOLD: int = Field(default=5, description="Failures before opening circuit")
    CB_SUCCESS_THRESHOLD: int = Field(default=3, description="Half-open successes to close circuit")
    CB_RECOVERY_TIMEOUT: float = Field(default=60.0, description="Seconds before attempting recovery")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="layercache", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="Admin API bind host")
    API_PORT: int = Field(default=8000, description="Admin API bind port")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from layercache.core.config.settings import get_settings

        settings = get_settings()
        redis_host = settings.redis.REDIS_HOST
        local_size = settings.cache.CACHE_LOCAL_MAX_SIZE
    """

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Cache settings
    CACHE_ENABLED: bool = Field(default=True, description="Master switch for caching")
    CACHE_DEFAULT_TTL: int = Field(default=300, description="Default remote TTL in seconds")
    CACHE_LOCAL_MAX_SIZE: int = Field(default=1000, description="Local layer max entries")
    CACHE_LOCAL_MAX_TTL: int = Field(default=60, description="Cap on local layer TTL in seconds")
    CACHE_TAG_TTL: int = Field(default=86400, description="Tag index TTL in seconds (24 hours)")
    CACHE_REFRESH_AHEAD_FRACTION: float = Field(
        default=0.2, description="Remaining TTL fraction that triggers refresh-ahead"
    )
    CACHE_SWEEP_INTERVAL: int = Field(default=60, description="Local sweep interval in seconds")
    CACHE_STATS_INTERVAL: int = Field(default=300, description="Stats report interval in seconds")
    CACHE_WARMUP_INTERVAL: int = Field(default=30, description="Warmup queue drain interval in seconds")

    # Circuit Breaker settings
    CB_FAILURE_THRESHOLD: int = Field(default=5, description="Failures before opening circuit")
    CB_SUCCESS_THRESHOLD: int = Field(default=3, description="Half-open successes to close circuit")
    CB_RECOVERY_TIMEOUT: float = Field(default=60.0, description="Seconds before attempting recovery")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="layercache", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="Admin API bind host")
    API_PORT: int = Field(default=8000, description="Admin API bind port")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("CACHE_REFRESH_AHEAD_FRACTION")
    @classmethod
    def validate_refresh_fraction(cls, v):
        """Refresh-ahead fraction must lie in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("CACHE_REFRESH_AHEAD_FRACTION must be between 0 and 1")
        return v

    # Nested configuration views
    @property
    def redis(self) -> "RedisSettings":
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
        )

    @property
    def cache(self) -> "CacheSettings":
        """Get cache settings."""
        return CacheSettings(
            CACHE_ENABLED=self.CACHE_ENABLED,
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
            CACHE_LOCAL_MAX_SIZE=self.CACHE_LOCAL_MAX_SIZE,
            CACHE_LOCAL_MAX_TTL=self.CACHE_LOCAL_MAX_TTL,
            CACHE_TAG_TTL=self.CACHE_TAG_TTL,
            CACHE_REFRESH_AHEAD_FRACTION=self.CACHE_REFRESH_AHEAD_FRACTION,
            CACHE_SWEEP_INTERVAL=self.CACHE_SWEEP_INTERVAL,
            CACHE_STATS_INTERVAL=self.CACHE_STATS_INTERVAL,
            CACHE_WARMUP_INTERVAL=self.CACHE_WARMUP_INTERVAL,
        )

    @property
    def circuit_breaker(self) -> "CircuitBreakerSettings":
        """Get circuit breaker settings."""
        return CircuitBreakerSettings(
            CB_FAILURE_THRESHOLD=self.CB_FAILURE_THRESHOLD,
            CB_SUCCESS_THRESHOLD=self.CB_SUCCESS_THRESHOLD,
            CB_RECOVERY_TIMEOUT=self.CB_RECOVERY_TIMEOUT,
        )

    @property
    def logging(self) -> "LoggingSettings":
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> "ApplicationSettings":
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
        )

    @property
    def is_production(self) -> bool:
        """True when running in the production environment."""
        return self.ENVIRONMENT == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance (lazily created)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
