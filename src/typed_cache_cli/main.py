"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import structlog
import typer
from rich.console import Console

from typed_cache.facade import TypedCache
from typed_cache.factories import create_typed_cache
from typed_cache.observability import (
    bind_cache_context,
    clear_cache_context,
    configure_logging,
    configure_tracing,
)
from typed_cache_core.config.settings import Settings
from typed_cache_core.exceptions import TypedCacheError
from typed_cache_core.models.expiration import CacheWriteOptions, ExpirationPolicy

app = typer.Typer(
    name="typed-cache",
    help="Inspect and edit typed cache entries as JSON",
)
console = Console()
logger = structlog.get_logger()

R = TypeVar("R")


def _load_settings(verbose: bool) -> Settings:
    """Load settings for a one-shot command; the store must outlive the process."""
    settings = Settings()
    if "cache_backend" not in settings.model_fields_set:
        settings.cache_backend = "disk"
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)
    configure_tracing(settings)
    if settings.cache_backend == "memory":
        console.print(
            "[red]Error:[/red] the memory backend does not persist between commands; "
            "set TC_CACHE_BACKEND to disk, redis or db"
        )
        raise typer.Exit(code=1)
    return settings


def _run(
    settings: Settings, key: str, action: Callable[[TypedCache], Awaitable[R]]
) -> R:
    """Build the cache from settings, run one action against it, then close it."""

    async def _main() -> R:
        cache = await create_typed_cache(settings)
        logger.debug("cli_action")
        try:
            return await action(cache)
        finally:
            await cache.close()

    bind_cache_context(backend=settings.cache_backend, key=key)
    try:
        return asyncio.run(_main())
    except TypedCacheError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    finally:
        clear_cache_context()


def _parse_json(text: str, what: str) -> Any:  # noqa: ANN401
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Error:[/red] {what} is not valid JSON: {exc.msg}")
        raise typer.Exit(code=1) from exc


def _parse_where(where: str) -> Callable[[Any], bool]:
    """Turn ``field=value`` into a predicate over JSON objects."""
    field, sep, expected = where.partition("=")
    if not sep or not field:
        console.print("[red]Error:[/red] --where must look like field=value")
        raise typer.Exit(code=1)

    def predicate(item: Any) -> bool:  # noqa: ANN401
        return isinstance(item, dict) and str(item.get(field)) == expected

    return predicate


def _sort_by(field: str) -> Callable[[Any], tuple[bool, Any]]:
    """Sort key on a JSON field; items missing the field go last."""

    def key(item: Any) -> tuple[bool, Any]:  # noqa: ANN401
        value = item.get(field) if isinstance(item, dict) else None
        return (value is None, value)

    return key


def _write_options(
    sliding_seconds: int | None, absolute_seconds: int | None
) -> CacheWriteOptions | None:
    """Map CLI expiry flags to write options; an absolute lifetime selects a full policy."""
    sliding = timedelta(seconds=sliding_seconds) if sliding_seconds else None
    if absolute_seconds:
        return CacheWriteOptions.custom(
            ExpirationPolicy(
                sliding_expiration=sliding,
                absolute_expiration_relative_to_now=timedelta(seconds=absolute_seconds),
            )
        )
    if sliding is not None:
        return CacheWriteOptions.sliding(sliding)
    return None


SlidingOption = typer.Option(
    None, "--sliding-seconds", min=1, help="Sliding expiration window in seconds"
)
AbsoluteOption = typer.Option(
    None, "--absolute-seconds", min=1, help="Absolute lifetime in seconds"
)
VerboseOption = typer.Option(False, "-v", "--verbose", help="Enable debug logging")


@app.command()
def get(
    key: str = typer.Argument(..., help="Cache key"),
    verbose: bool = VerboseOption,
) -> None:
    """Print the JSON value stored at KEY."""
    settings = _load_settings(verbose)
    value = _run(settings, key, lambda cache: cache.get(key, Any))
    if value is None:
        console.print(f"[yellow]No entry for[/yellow] {key}")
        raise typer.Exit(code=1)
    console.print_json(json.dumps(value))


@app.command(name="set")
def set_value(
    key: str = typer.Argument(..., help="Cache key"),
    value: str = typer.Argument(..., help="JSON value to store"),
    sliding_seconds: int | None = SlidingOption,
    absolute_seconds: int | None = AbsoluteOption,
    verbose: bool = VerboseOption,
) -> None:
    """Store a JSON value at KEY."""
    settings = _load_settings(verbose)
    parsed = _parse_json(value, "VALUE")
    options = _write_options(sliding_seconds, absolute_seconds)
    _run(settings, key, lambda cache: cache.set(key, parsed, options))
    console.print(f"[green]Stored[/green] {key}")


@app.command()
def append(
    key: str = typer.Argument(..., help="Key of an existing list"),
    item: str = typer.Argument(..., help="JSON item to append"),
    sort_by: str | None = typer.Option(None, "--sort-by", help="Re-sort by this field"),
    sliding_seconds: int | None = SlidingOption,
    verbose: bool = VerboseOption,
) -> None:
    """Append a JSON item to the list at KEY (no-op if KEY is absent)."""
    settings = _load_settings(verbose)
    parsed = _parse_json(item, "ITEM")
    sort_key = _sort_by(sort_by) if sort_by else None
    options = _write_options(sliding_seconds, None)
    written = _run(
        settings,
        key,
        lambda cache: cache.append_to_list(
            key, parsed, item_type=Any, sort_key=sort_key, options=options
        ),
    )
    if not written:
        console.print(f"[yellow]No list at[/yellow] {key}; nothing appended")
        return
    console.print(f"[green]Appended to[/green] {key}")


@app.command()
def update(
    key: str = typer.Argument(..., help="Key of an existing list"),
    item: str = typer.Argument(..., help="Replacement JSON item"),
    where: str = typer.Option(..., "--where", help="Match items by field=value"),
    sliding_seconds: int | None = SlidingOption,
    verbose: bool = VerboseOption,
) -> None:
    """Replace the first list item matching --where."""
    settings = _load_settings(verbose)
    parsed = _parse_json(item, "ITEM")
    predicate = _parse_where(where)
    options = _write_options(sliding_seconds, None)
    written = _run(
        settings,
        key,
        lambda cache: cache.update_in_list(
            key, predicate, parsed, item_type=Any, options=options
        ),
    )
    if not written:
        console.print(f"[yellow]No list at[/yellow] {key}; nothing updated")
        return
    console.print(f"[green]Updated[/green] {key}")


@app.command()
def remove(
    key: str = typer.Argument(..., help="Key of an existing list"),
    where: str = typer.Option(..., "--where", help="Match items by field=value"),
    sliding_seconds: int | None = SlidingOption,
    verbose: bool = VerboseOption,
) -> None:
    """Remove the first list item matching --where."""
    settings = _load_settings(verbose)
    predicate = _parse_where(where)
    options = _write_options(sliding_seconds, None)
    removed = _run(
        settings,
        key,
        lambda cache: cache.remove_from_list(key, predicate, Any, options=options),
    )
    if not removed:
        console.print(f"[yellow]Nothing removed from[/yellow] {key}")
        return
    console.print(f"[green]Removed from[/green] {key}")


@app.command()
def delete(
    key: str = typer.Argument(..., help="Cache key"),
    verbose: bool = VerboseOption,
) -> None:
    """Delete KEY from the store."""
    settings = _load_settings(verbose)
    _run(settings, key, lambda cache: cache.delete(key))
    console.print(f"[green]Deleted[/green] {key}")


if __name__ == "__main__":
    app()
