"""Application settings using pydantic-settings."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from typed_cache_core.constants import DEFAULT_LOCK_TIMEOUT_SECONDS, DEFAULT_SLIDING_EXPIRATION


class Settings(BaseSettings):
    """Central configuration for typed-cache."""

    model_config = SettingsConfigDict(env_prefix="TC_", env_file=".env")

    # --- Store ---
    cache_backend: Literal["memory", "disk", "redis", "db"] = Field(
        default="memory",
        description="Byte store backend: 'memory' for in-process, 'disk', 'redis' or 'db'",
    )
    redis_url: str | None = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (redis store and redis lock)",
    )
    cache_dir: Path = Field(
        default=Path("./.cache/typed_cache"),
        description="Directory for the diskcache store",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./typed_cache.db",
        description="SQLAlchemy database URL for the db store",
    )

    # --- Expiration ---
    default_sliding_expiration: timedelta = Field(
        default=DEFAULT_SLIDING_EXPIRATION,
        description="Sliding window used when a write passes no options",
    )

    # --- Locking ---
    lock_backend: Literal["none", "asyncio", "redis"] = Field(
        default="none",
        description="Per-key lock around list mutations: 'none' keeps last-write-wins",
    )
    lock_timeout_seconds: float = Field(
        default=DEFAULT_LOCK_TIMEOUT_SECONDS,
        description="Maximum time a redis lock is held before it auto-releases",
    )

    # --- Codec ---
    allow_non_public_construction: bool = Field(
        default=True,
        description="Let the codec build objects without calling __init__",
    )

    # --- Logging ---
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer",
    )

    # --- Tracing ---
    otel_exporter: Literal["none", "console", "otlp"] = Field(
        default="none",
        description="OpenTelemetry span exporter",
    )
    otel_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP collector endpoint",
    )
    otel_service_name: str = Field(
        default="typed-cache",
        description="Service name attached to spans",
    )

    @model_validator(mode="after")
    def validate_expiration(self) -> Settings:
        """Reject non-positive default expiration windows."""
        if self.default_sliding_expiration <= timedelta(0):
            msg = "default_sliding_expiration must be positive"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def validate_redis_config(self) -> Settings:
        """Require a redis URL for every redis-backed component."""
        needs_redis = self.cache_backend == "redis" or self.lock_backend == "redis"
        if needs_redis and not self.redis_url:
            msg = "redis_url required when cache_backend or lock_backend is redis"
            raise ValueError(msg)
        return self
