"""Tests for Settings configuration."""

from __future__ import annotations

import os
from datetime import timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from typed_cache_core.config.settings import Settings


@pytest.mark.unit
class TestSettings:
    """Test Settings validation and defaults."""

    def test_default_settings(self) -> None:
        """Settings loads with no env and correct defaults."""
        with patch.dict(os.environ, {}, clear=True):
            s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.cache_backend == "memory"
        assert s.lock_backend == "none"
        assert s.default_sliding_expiration == timedelta(days=7)
        assert s.allow_non_public_construction is True
        assert s.otel_exporter == "none"

    def test_env_prefix(self) -> None:
        """TC_-prefixed variables are read."""
        env = {"TC_CACHE_BACKEND": "disk", "TC_LOCK_BACKEND": "asyncio", "TC_LOG_FORMAT": "json"}
        with patch.dict(os.environ, env, clear=True):
            s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.cache_backend == "disk"
        assert s.lock_backend == "asyncio"
        assert s.log_format == "json"

    def test_expiration_from_env_iso_duration(self) -> None:
        """Default expiration accepts ISO 8601 durations from the environment."""
        env = {"TC_DEFAULT_SLIDING_EXPIRATION": "PT1H"}
        with patch.dict(os.environ, env, clear=True):
            s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.default_sliding_expiration == timedelta(hours=1)

    def test_non_positive_expiration_raises(self) -> None:
        """Zero default expiration is rejected."""
        with pytest.raises(ValidationError, match="default_sliding_expiration must be positive"):
            Settings(_env_file=None, default_sliding_expiration=timedelta(0))  # type: ignore[call-arg]

    def test_redis_backend_without_url_raises(self) -> None:
        """Redis backend needs a URL."""
        with pytest.raises(ValidationError, match="redis_url required"):
            Settings(_env_file=None, cache_backend="redis", redis_url=None)  # type: ignore[call-arg]

    def test_redis_lock_without_url_raises(self) -> None:
        """Redis lock needs a URL even with a non-redis store."""
        with pytest.raises(ValidationError, match="redis_url required"):
            Settings(_env_file=None, lock_backend="redis", redis_url=None)  # type: ignore[call-arg]

    def test_invalid_backend_rejected(self) -> None:
        """Unknown backends fail validation."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, cache_backend="memcached")  # type: ignore[call-arg, arg-type]
