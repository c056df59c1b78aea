#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
StepLeague cache subsystem. Client cache tiers, the server cache wrapper,
the circuit breaker, Redis adapters and logging all read from here.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms (construct Settings(...) directly)
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientCacheSettings(BaseSettings):
    """
    Client-side multi-tier cache configuration.

    STAGE-C: Tier naming, staleness windows and cross-context channel
    """

    CLIENT_CACHE_KEY: str = Field(default="stepleague_menu_cache", description="Logical cache key")
    CLIENT_CACHE_SCHEMA_VERSION: str = Field(default="1.0.0", description="Cached document shape version")
    CLIENT_CACHE_DURATION_MS: int = Field(default=300_000, description="Age after which a document is expired")
    CLIENT_STALE_DURATION_MS: int = Field(default=60_000, description="Age after which a document is stale")
    CLIENT_DURABLE_STORE_NAME: str = Field(default="menu-cache-db", description="Durable store name")
    CLIENT_DURABLE_COLLECTION: str = Field(default="menuCache", description="Durable store collection")
    CLIENT_BROADCAST_CHANNEL: str = Field(default="menu-cache-sync", description="Cross-context channel name")
    CLIENT_SESSION_QUOTA_BYTES: int = Field(default=5 * 1024 * 1024, description="Session store quota")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ServerCacheSettings(BaseSettings):
    """
    Server-side cached fetcher configuration.

    STAGE-S: Timeout race and revalidation defaults
    """

    SERVER_CACHE_TIMEOUT_MS: int = Field(default=3000, description="Fetcher timeout before fallback")
    SERVER_CACHE_REVALIDATE_SECONDS: int = Field(default=3600, description="Stale-while-revalidate period")
    SERVER_CACHE_MAX_ENTRIES: int = Field(default=256, description="Revalidating cache max entries")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CircuitBreakerSettings(BaseSettings):
    """
    Circuit breaker configuration for fault tolerance.

    STAGE-CB: Circuit breaker thresholds
    """

    CB_FAILURE_THRESHOLD: int = Field(default=5, description="Failures before opening circuit")
    CB_COOLDOWN_MS: int = Field(default=30_000, description="Milliseconds before a trial call")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RedisSettings(BaseSettings):
    """
    Redis configuration for the durable store and broadcast adapters.

    STAGE-0.1: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

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

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="StepLeague Config Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routes")
    REVALIDATION_TOKEN: str = Field(default="deployment-token", description="Webhook token")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        settings = get_settings()
        stale_ms = settings.client_cache.CLIENT_STALE_DURATION_MS
        threshold = settings.circuit_breaker.CB_FAILURE_THRESHOLD
    """

    # Client cache settings
    CLIENT_CACHE_KEY: str = Field(default="stepleague_menu_cache", description="Logical cache key")
    CLIENT_CACHE_SCHEMA_VERSION: str = Field(default="1.0.0", description="Cached document shape version")
    CLIENT_CACHE_DURATION_MS: int = Field(default=300_000, description="Age after which a document is expired")
    CLIENT_STALE_DURATION_MS: int = Field(default=60_000, description="Age after which a document is stale")
    CLIENT_DURABLE_STORE_NAME: str = Field(default="menu-cache-db", description="Durable store name")
    CLIENT_DURABLE_COLLECTION: str = Field(default="menuCache", description="Durable store collection")
    CLIENT_BROADCAST_CHANNEL: str = Field(default="menu-cache-sync", description="Cross-context channel name")
    CLIENT_SESSION_QUOTA_BYTES: int = Field(default=5 * 1024 * 1024, description="Session store quota")

    # Server cache settings
    SERVER_CACHE_TIMEOUT_MS: int = Field(default=3000, description="Fetcher timeout before fallback")
    SERVER_CACHE_REVALIDATE_SECONDS: int = Field(default=3600, description="Stale-while-revalidate period")
    SERVER_CACHE_MAX_ENTRIES: int = Field(default=256, description="Revalidating cache max entries")

    # Circuit Breaker settings
    CB_FAILURE_THRESHOLD: int = Field(default=5, description="Failures before opening circuit")
    CB_COOLDOWN_MS: int = Field(default=30_000, description="Milliseconds before a trial call")

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="StepLeague Config Cache", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routes")
    REVALIDATION_TOKEN: str = Field(default="deployment-token", description="Webhook token")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def validate_cache_windows(self):
        """An expired document must also be stale."""
        if self.CLIENT_CACHE_DURATION_MS <= self.CLIENT_STALE_DURATION_MS:
            raise ValueError("CLIENT_CACHE_DURATION_MS must be greater than CLIENT_STALE_DURATION_MS")
        return self

    @property
    def client_cache(self) -> 'ClientCacheSettings':
        """Get client cache settings."""
        return ClientCacheSettings(
            CLIENT_CACHE_KEY=self.CLIENT_CACHE_KEY,
            CLIENT_CACHE_SCHEMA_VERSION=self.CLIENT_CACHE_SCHEMA_VERSION,
            CLIENT_CACHE_DURATION_MS=self.CLIENT_CACHE_DURATION_MS,
            CLIENT_STALE_DURATION_MS=self.CLIENT_STALE_DURATION_MS,
            CLIENT_DURABLE_STORE_NAME=self.CLIENT_DURABLE_STORE_NAME,
            CLIENT_DURABLE_COLLECTION=self.CLIENT_DURABLE_COLLECTION,
            CLIENT_BROADCAST_CHANNEL=self.CLIENT_BROADCAST_CHANNEL,
            CLIENT_SESSION_QUOTA_BYTES=self.CLIENT_SESSION_QUOTA_BYTES,
        )

    @property
    def server_cache(self) -> 'ServerCacheSettings':
        """Get server cache settings."""
        return ServerCacheSettings(
            SERVER_CACHE_TIMEOUT_MS=self.SERVER_CACHE_TIMEOUT_MS,
            SERVER_CACHE_REVALIDATE_SECONDS=self.SERVER_CACHE_REVALIDATE_SECONDS,
            SERVER_CACHE_MAX_ENTRIES=self.SERVER_CACHE_MAX_ENTRIES,
        )

    @property
    def circuit_breaker(self) -> 'CircuitBreakerSettings':
        """Get circuit breaker settings."""
        return CircuitBreakerSettings(
            CB_FAILURE_THRESHOLD=self.CB_FAILURE_THRESHOLD,
            CB_COOLDOWN_MS=self.CB_COOLDOWN_MS,
        )

    @property
    def redis(self) -> 'RedisSettings':
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
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            API_BASE_PATH=self.API_BASE_PATH,
            REVALIDATION_TOKEN=self.REVALIDATION_TOKEN,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (lazy)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    Components accept an explicit ``settings`` argument; this accessor is the
    default when none is passed.
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
