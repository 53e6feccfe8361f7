#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

Type-safe, environment-based configuration for the directory cache service.
All configuration is read once, when the first `Settings` instance is built,
and is treated as immutable for the life of the process.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing: build a `Settings(...)` with explicit values and inject it
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from directory_cache.core.config.constants import (
    BYTES_PER_MB,
    CACHE_VERSION,
    REDIS_KEY_PREFIX_DEFAULT,
    REDIS_NAMESPACE_CACHE,
)


class RedisSettings(BaseSettings):
    """
    Redis connection configuration for the distributed tier.

    `REDIS_HOST` has no default on purpose: an enabled tier without a host is
    a configuration error that degrades to "tier absent".
    """

    REDIS_HOST: str | None = Field(default=None, description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_KEY_PREFIX: str = Field(default=REDIS_KEY_PREFIX_DEFAULT, description="Key folder prefix")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Multi-tier cache configuration.

    STAGE-CACHE.0: Cache configuration

    TTLs are in seconds, the cleanup interval in milliseconds, and the memory
    budget in megabytes (0 = unbounded).
    """

    CACHE_MEMORY_ENABLE: bool = Field(default=False, description="Enable in-process memory tier")
    CACHE_REDIS_ENABLE: bool = Field(default=False, description="Enable Redis tier")
    CACHE_MEMORY_TTL: int = Field(default=300, ge=1, description="Memory tier TTL (seconds)")
    CACHE_MEMORY_MAX_SIZE_MB: float = Field(default=100, ge=0, description="Memory tier budget (MB)")
    CACHE_MEMORY_CLEANUP_ENABLED: bool = Field(default=False, description="Periodic expiry sweep")
    CACHE_MEMORY_CLEANUP_INTERVAL_MS: int = Field(
        default=60000, ge=100, description="Expiry sweep interval (ms)"
    )
    CACHE_REDIS_TTL: int = Field(default=3600, ge=1, description="Redis tier TTL (seconds)")
    CACHE_REDIS_TIMEOUT_MS: int = Field(
        default=150, ge=1, description="Upper bound for a single Redis call (ms)"
    )
    CACHE_REDIS_RETRY_INTERVAL: int = Field(
        default=30, ge=0, description="Seconds before retrying a failed Redis connect"
    )
    CACHE_ADMIN_TOKEN: str | None = Field(default=None, description="Token for admin endpoints")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    @property
    def memory_max_size_bytes(self) -> int:
        """Memory budget converted to bytes."""
        return int(self.CACHE_MEMORY_MAX_SIZE_MB * BYTES_PER_MB)

    @property
    def cleanup_interval_seconds(self) -> float:
        return self.CACHE_MEMORY_CLEANUP_INTERVAL_MS / 1000

    @property
    def redis_timeout_seconds(self) -> float:
        return self.CACHE_REDIS_TIMEOUT_MS / 1000


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
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    APP_NAME: str = Field(default="Directory Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all routers")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from directory_cache.core.config import get_settings

        settings = get_settings()
        ttl = settings.cache.CACHE_MEMORY_TTL
        host = settings.redis.REDIS_HOST

    Flat fields are what the environment populates; the section properties
    (`redis`, `cache`, `logging`, `app`) are typed views over them.
    """

    # Redis settings
    REDIS_HOST: str | None = Field(default=None, description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_KEY_PREFIX: str = Field(default=REDIS_KEY_PREFIX_DEFAULT, description="Key folder prefix")

    # Cache settings
    CACHE_MEMORY_ENABLE: bool = Field(default=False, description="Enable in-process memory tier")
    CACHE_REDIS_ENABLE: bool = Field(default=False, description="Enable Redis tier")
    CACHE_MEMORY_TTL: int = Field(default=300, ge=1, description="Memory tier TTL (seconds)")
    CACHE_MEMORY_MAX_SIZE_MB: float = Field(default=100, ge=0, description="Memory tier budget (MB)")
    CACHE_MEMORY_CLEANUP_ENABLED: bool = Field(default=False, description="Periodic expiry sweep")
    CACHE_MEMORY_CLEANUP_INTERVAL_MS: int = Field(
        default=60000, ge=100, description="Expiry sweep interval (ms)"
    )
    CACHE_REDIS_TTL: int = Field(default=3600, ge=1, description="Redis tier TTL (seconds)")
    CACHE_REDIS_TIMEOUT_MS: int = Field(
        default=150, ge=1, description="Upper bound for a single Redis call (ms)"
    )
    CACHE_REDIS_RETRY_INTERVAL: int = Field(
        default=30, ge=0, description="Seconds before retrying a failed Redis connect"
    )
    CACHE_ADMIN_TOKEN: str | None = Field(default=None, description="Token for admin endpoints")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    APP_NAME: str = Field(default="Directory Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all routers")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("REDIS_HOST")
    @classmethod
    def blank_host_is_unset(cls, v):
        """Treat an empty REDIS_HOST the same as a missing one."""
        if v is not None and not v.strip():
            return None
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
            REDIS_KEY_PREFIX=self.REDIS_KEY_PREFIX,
        )

    @property
    def cache(self) -> "CacheSettings":
        """Get cache settings."""
        return CacheSettings(
            CACHE_MEMORY_ENABLE=self.CACHE_MEMORY_ENABLE,
            CACHE_REDIS_ENABLE=self.CACHE_REDIS_ENABLE,
            CACHE_MEMORY_TTL=self.CACHE_MEMORY_TTL,
            CACHE_MEMORY_MAX_SIZE_MB=self.CACHE_MEMORY_MAX_SIZE_MB,
            CACHE_MEMORY_CLEANUP_ENABLED=self.CACHE_MEMORY_CLEANUP_ENABLED,
            CACHE_MEMORY_CLEANUP_INTERVAL_MS=self.CACHE_MEMORY_CLEANUP_INTERVAL_MS,
            CACHE_REDIS_TTL=self.CACHE_REDIS_TTL,
            CACHE_REDIS_TIMEOUT_MS=self.CACHE_REDIS_TIMEOUT_MS,
            CACHE_REDIS_RETRY_INTERVAL=self.CACHE_REDIS_RETRY_INTERVAL,
            CACHE_ADMIN_TOKEN=self.CACHE_ADMIN_TOKEN,
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
            API_BASE_PATH=self.API_BASE_PATH,
        )

    @property
    def redis_namespace(self) -> str:
        """Folder all distributed cache keys live under."""
        return f"{self.REDIS_KEY_PREFIX}:{REDIS_NAMESPACE_CACHE}:{CACHE_VERSION}"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Used by the application factory; everything below it receives the
    instance explicitly.

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
