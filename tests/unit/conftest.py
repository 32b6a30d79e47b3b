"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest

from tests.mocks.mock_settings import make_settings
from tests.mocks.mock_stores import FakeClock, RecordingStore
from typed_cache.facade import TypedCache
from typed_cache.observability.tracing import disable_tracing
from typed_cache_infra.codec.json_codec import JsonValueCodec


@pytest.fixture
def mock_settings() -> MagicMock:
    """Return a MagicMock Settings with sensible defaults."""
    return make_settings()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Return a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def recording_store() -> RecordingStore:
    """Return an empty call-recording memory store."""
    return RecordingStore()


@pytest.fixture
def cache(recording_store: RecordingStore) -> TypedCache:
    """Return a TypedCache over the recording store with the JSON codec."""
    return TypedCache(recording_store, JsonValueCodec())


@pytest.fixture(autouse=True)
def _no_tracing() -> Generator[None, None, None]:
    """Keep the module-level tracer off between tests."""
    disable_tracing()
    yield
    disable_tracing()
