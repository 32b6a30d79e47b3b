"""Expiration policy and write options models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator

from typed_cache_core.constants import DEFAULT_SLIDING_EXPIRATION
from typed_cache_core.exceptions import InvalidArgumentError


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class ExpirationPolicy(BaseModel):
    """When a stored entry expires.

    Any combination of the three fields may be set; the earliest resulting
    deadline wins. A policy with no field set never expires.
    """

    model_config = ConfigDict(frozen=True)

    absolute_expiration: datetime | None = Field(
        default=None, description="Fixed point in time after which the entry expires"
    )
    absolute_expiration_relative_to_now: timedelta | None = Field(
        default=None, description="Fixed lifetime measured from the write"
    )
    sliding_expiration: timedelta | None = Field(
        default=None, description="Idle window, reset on every read or refresh"
    )

    @field_validator("absolute_expiration_relative_to_now", "sliding_expiration")
    @classmethod
    def _positive_duration(cls, value: timedelta | None) -> timedelta | None:
        """Reject zero and negative durations."""
        if value is not None and value <= timedelta(0):
            msg = "expiration durations must be positive"
            raise ValueError(msg)
        return value

    @classmethod
    def sliding(cls, duration: timedelta) -> ExpirationPolicy:
        """Build a sliding-only policy."""
        return cls(sliding_expiration=duration)

    def absolute_deadline(self, now: datetime) -> datetime | None:
        """Resolve the absolute deadline for an entry written at ``now``."""
        candidates: list[datetime] = []
        if self.absolute_expiration is not None:
            candidates.append(_as_utc(self.absolute_expiration))
        if self.absolute_expiration_relative_to_now is not None:
            candidates.append(_as_utc(now) + self.absolute_expiration_relative_to_now)
        if not candidates:
            return None
        deadline = min(candidates)
        if deadline <= _as_utc(now):
            raise InvalidArgumentError(
                "absolute_expiration", "absolute expiration must be in the future"
            )
        return deadline


def next_expiry(
    now: datetime, sliding: timedelta | None, absolute: datetime | None
) -> datetime | None:
    """Return when an entry touched at ``now`` expires, or None for never."""
    candidates: list[datetime] = []
    if sliding is not None:
        candidates.append(_as_utc(now) + sliding)
    if absolute is not None:
        candidates.append(_as_utc(absolute))
    return min(candidates) if candidates else None


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """Check expiry, handling both naive and aware datetimes."""
    if expires_at is None:
        return False
    return _as_utc(expires_at) <= _as_utc(now)


class CacheWriteOptions(BaseModel):
    """Expiration options for a single write.

    ``policy`` takes precedence: when both fields are set the sliding
    duration is ignored. With neither set the default sliding window applies.
    """

    model_config = ConfigDict(frozen=True)

    sliding_expiration: timedelta | None = Field(
        default=None, description="Sliding window for the written entry"
    )
    policy: ExpirationPolicy | None = Field(
        default=None, description="Full expiration policy, overrides sliding_expiration"
    )

    @field_validator("sliding_expiration")
    @classmethod
    def _positive_sliding(cls, value: timedelta | None) -> timedelta | None:
        """Reject zero and negative sliding windows."""
        if value is not None and value <= timedelta(0):
            msg = "sliding_expiration must be positive"
            raise ValueError(msg)
        return value

    @classmethod
    def sliding(cls, duration: timedelta) -> CacheWriteOptions:
        """Options using an explicit sliding window."""
        return cls(sliding_expiration=duration)

    @classmethod
    def custom(cls, policy: ExpirationPolicy) -> CacheWriteOptions:
        """Options using a caller-supplied policy."""
        return cls(policy=policy)

    def resolve(self, default: timedelta = DEFAULT_SLIDING_EXPIRATION) -> ExpirationPolicy:
        """Collapse the options into the one policy handed to the store."""
        if self.policy is not None:
            return self.policy
        if self.sliding_expiration is not None:
            return ExpirationPolicy.sliding(self.sliding_expiration)
        return ExpirationPolicy.sliding(default)
