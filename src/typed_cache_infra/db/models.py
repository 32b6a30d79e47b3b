"""SQLAlchemy ORM table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, LargeBinary, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class CacheEntryModel(Base):
    """Key/value cache table with sliding and absolute expiry."""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    sliding_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    absolute_expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
