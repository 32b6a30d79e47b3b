"""Observability: structured logging and tracing."""

from typed_cache.observability.logging import (
    bind_cache_context,
    clear_cache_context,
    configure_logging,
)
from typed_cache.observability.tracing import (
    configure_tracing,
    configure_tracing_with_exporter,
    disable_tracing,
    get_tracer,
    traced_operation,
)

__all__ = [
    "bind_cache_context",
    "clear_cache_context",
    "configure_logging",
    "configure_tracing",
    "configure_tracing_with_exporter",
    "disable_tracing",
    "get_tracer",
    "traced_operation",
]
