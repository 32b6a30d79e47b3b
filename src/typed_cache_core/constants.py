"""Shared constants for typed-cache."""

from __future__ import annotations

from datetime import timedelta

# Sliding window applied when a write carries no expiration options
DEFAULT_SLIDING_EXPIRATION = timedelta(days=7)

# Redis hash fields for a stored entry
REDIS_DATA_FIELD = "data"
REDIS_SLIDING_FIELD = "sldexp"
REDIS_ABSOLUTE_FIELD = "absexp"
REDIS_NOT_PRESENT = -1

# Lock key namespace, kept apart from cached entries
LOCK_KEY_PREFIX = "typed_cache:lock:"
DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0
