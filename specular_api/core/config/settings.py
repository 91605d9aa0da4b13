#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
Specular API server. Every protection component (cache, circuit breaker,
request limiter) reads its process-wide defaults from here; explicit
constructor arguments still win over these values.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with override mechanisms
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from specular_api.core.config.constants import (
    DEFAULT_CACHE_CLEANUP_INTERVAL,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_CACHE_TTL,
    DEFAULT_CB_CHECK_INTERVAL,
    DEFAULT_CB_COOLDOWN_PERIOD,
    DEFAULT_CB_MEMORY_THRESHOLD,
    DEFAULT_LIMITER_MAX_CONCURRENT,
    DEFAULT_LIMITER_QUEUE_SIZE,
    DEFAULT_LIMITER_TIMEOUT,
)


class CacheSettings(BaseSettings):
    """
    Bounded TTL cache configuration.

    STAGE-C: Cache sizing and expiry
    """

    CACHE_MAX_SIZE: int = Field(default=DEFAULT_CACHE_MAX_SIZE, gt=0, description="Max cache entries")
    CACHE_TTL: float = Field(default=DEFAULT_CACHE_TTL, gt=0, description="Entry time-to-live in seconds")
    CACHE_CLEANUP_INTERVAL: float = Field(
        default=DEFAULT_CACHE_CLEANUP_INTERVAL, gt=0, description="Background sweep interval in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CircuitBreakerSettings(BaseSettings):
    """
    Memory-pressure circuit breaker configuration.

    STAGE-CB: Memory threshold and cooldown
    """

    CB_MEMORY_THRESHOLD: float = Field(
        default=DEFAULT_CB_MEMORY_THRESHOLD, description="Heap usage ratio that opens the circuit"
    )
    CB_CHECK_INTERVAL: float = Field(
        default=DEFAULT_CB_CHECK_INTERVAL, gt=0, description="Memory sampling interval in seconds"
    )
    CB_COOLDOWN_PERIOD: float = Field(
        default=DEFAULT_CB_COOLDOWN_PERIOD, gt=0, description="Seconds the circuit stays open"
    )
    MEMORY_LIMIT_MB: int | None = Field(
        default=None, gt=0, description="Memory budget in MB (defaults to total system memory)"
    )

    @field_validator("CB_MEMORY_THRESHOLD")
    @classmethod
    def validate_threshold(cls, v):
        """Threshold is a ratio, not a percentage."""
        if not 0 < v <= 1:
            raise ValueError("CB_MEMORY_THRESHOLD must be in (0, 1]")
        return v

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RequestLimiterSettings(BaseSettings):
    """
    Request admission control configuration.

    STAGE-RL: Concurrency and queue bounds
    """

    LIMITER_MAX_CONCURRENT: int = Field(
        default=DEFAULT_LIMITER_MAX_CONCURRENT, gt=0, description="Max concurrently processed requests"
    )
    LIMITER_QUEUE_SIZE: int = Field(
        default=DEFAULT_LIMITER_QUEUE_SIZE, ge=0, description="Max queued requests"
    )
    LIMITER_TIMEOUT: float = Field(
        default=DEFAULT_LIMITER_TIMEOUT, gt=0, description="Seconds a request may wait in the queue"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class NetworkSettings(BaseSettings):
    """
    Network registry overrides.

    RPC endpoints can be pointed at private nodes without touching the registry.
    """

    DEFAULT_NETWORK: str = Field(default="arc", description="Network used when a request names none")
    ARC_TESTNET_RPC_URL: str = Field(default="https://arc-testnet.drpc.org", description="Arc Testnet RPC")
    BASE_RPC_URL: str = Field(default="https://mainnet.base.org", description="Base Mainnet RPC")
    ARBITRUM_RPC_URL: str = Field(default="https://arb1.arbitrum.io/rpc", description="Arbitrum One RPC")

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

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Specular Multi-Network Agent API", description="Application name")
    APP_VERSION: str = Field(default="2.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=3001, description="API port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from specular_api.core.config import get_settings

        settings = get_settings()
        max_size = settings.cache.CACHE_MAX_SIZE
        threshold = settings.circuit_breaker.CB_MEMORY_THRESHOLD
    """

    # Cache
    CACHE_MAX_SIZE: int = Field(default=DEFAULT_CACHE_MAX_SIZE, gt=0)
    CACHE_TTL: float = Field(default=DEFAULT_CACHE_TTL, gt=0)
    CACHE_CLEANUP_INTERVAL: float = Field(default=DEFAULT_CACHE_CLEANUP_INTERVAL, gt=0)

    # Circuit breaker
    CB_MEMORY_THRESHOLD: float = Field(default=DEFAULT_CB_MEMORY_THRESHOLD)
    CB_CHECK_INTERVAL: float = Field(default=DEFAULT_CB_CHECK_INTERVAL, gt=0)
    CB_COOLDOWN_PERIOD: float = Field(default=DEFAULT_CB_COOLDOWN_PERIOD, gt=0)
    MEMORY_LIMIT_MB: int | None = Field(default=None, gt=0)

    # Request limiter
    LIMITER_MAX_CONCURRENT: int = Field(default=DEFAULT_LIMITER_MAX_CONCURRENT, gt=0)
    LIMITER_QUEUE_SIZE: int = Field(default=DEFAULT_LIMITER_QUEUE_SIZE, ge=0)
    LIMITER_TIMEOUT: float = Field(default=DEFAULT_LIMITER_TIMEOUT, gt=0)

    # Networks
    DEFAULT_NETWORK: str = Field(default="arc")
    ARC_TESTNET_RPC_URL: str = Field(default="https://arc-testnet.drpc.org")
    BASE_RPC_URL: str = Field(default="https://mainnet.base.org")
    ARBITRUM_RPC_URL: str = Field(default="https://arb1.arbitrum.io/rpc")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json")

    # Application
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(default="development")
    APP_NAME: str = Field(default="Specular Multi-Network Agent API")
    APP_VERSION: str = Field(default="2.0.0")
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=3001)
    CORS_ORIGINS: list[str] = Field(default=["*"])

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("CB_MEMORY_THRESHOLD")
    @classmethod
    def validate_threshold(cls, v):
        if not 0 < v <= 1:
            raise ValueError("CB_MEMORY_THRESHOLD must be in (0, 1]")
        return v

    # Nested configuration views
    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_MAX_SIZE=self.CACHE_MAX_SIZE,
            CACHE_TTL=self.CACHE_TTL,
            CACHE_CLEANUP_INTERVAL=self.CACHE_CLEANUP_INTERVAL,
        )

    @property
    def circuit_breaker(self) -> CircuitBreakerSettings:
        """Get circuit breaker settings."""
        return CircuitBreakerSettings(
            CB_MEMORY_THRESHOLD=self.CB_MEMORY_THRESHOLD,
            CB_CHECK_INTERVAL=self.CB_CHECK_INTERVAL,
            CB_COOLDOWN_PERIOD=self.CB_COOLDOWN_PERIOD,
            MEMORY_LIMIT_MB=self.MEMORY_LIMIT_MB,
        )

    @property
    def request_limiter(self) -> RequestLimiterSettings:
        """Get request limiter settings."""
        return RequestLimiterSettings(
            LIMITER_MAX_CONCURRENT=self.LIMITER_MAX_CONCURRENT,
            LIMITER_QUEUE_SIZE=self.LIMITER_QUEUE_SIZE,
            LIMITER_TIMEOUT=self.LIMITER_TIMEOUT,
        )

    @property
    def networks(self) -> NetworkSettings:
        """Get network registry overrides."""
        return NetworkSettings(
            DEFAULT_NETWORK=self.DEFAULT_NETWORK,
            ARC_TESTNET_RPC_URL=self.ARC_TESTNET_RPC_URL,
            BASE_RPC_URL=self.BASE_RPC_URL,
            ARBITRUM_RPC_URL=self.ARBITRUM_RPC_URL,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            CORS_ORIGINS=self.CORS_ORIGINS,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

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
