"""Cache commands -- inspect and clear ``Cache_<key>_Data.json`` entries.

The typed cache lives in :func:`~cinecache.config.get_typed_cache_dir`.
``cache list --http`` reports on the transport-level HTTP response cache
and ``cache clear --http`` empties it.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import typer

from cinecache.exit_codes import EXIT_INVALID_USAGE, EXIT_NOT_FOUND
from cinecache.output import error, format_response, info, print_table, success

cache_app = typer.Typer(no_args_is_help=True)


def _open_cache():
    from cinecache.cache import CacheEntryStore, TypedCache
    from cinecache.config import get_typed_cache_dir, resolve_settings

    settings = resolve_settings()
    return TypedCache(CacheEntryStore(get_typed_cache_dir(settings))), settings


def _format_time(value: Optional[datetime]) -> str:
    return value.isoformat(timespec="seconds") if value else "-"


@cache_app.command("status")
def cache_status(
    key: str = typer.Argument(help="Cache key."),
    freshness: Optional[float] = typer.Option(
        None, "--freshness", "-f", help="Freshness window in minutes (default from settings)."
    ),
) -> None:
    """Show whether KEY is cached and whether it is still fresh.

    Example::

        cinecache cache status Genres --freshness 7200
    """
    cache, settings = _open_cache()
    minutes = settings.cache.default_freshness_minutes if freshness is None else freshness
    status = asyncio.run(cache.status(key, minutes))
    format_response(status.model_dump(mode="json"))
    if not status.available:
        raise typer.Exit(code=EXIT_NOT_FOUND)


@cache_app.command("show")
def cache_show(key: str = typer.Argument(help="Cache key.")) -> None:
    """Print the stored payload of KEY regardless of its age."""
    from cinecache.exceptions import StorageError

    cache, _ = _open_cache()
    try:
        payload = cache.entries.read_raw(key)
    except StorageError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    format_response(payload)


@cache_app.command("list")
def cache_list(
    http: bool = typer.Option(False, "--http", help="Show HTTP response cache statistics instead."),
) -> None:
    """List cached keys with their modification time and age."""
    cache, settings = _open_cache()
    if http:
        from cinecache.client import HttpResponseCache
        from cinecache.config import get_cache_dir

        http_cache = HttpResponseCache(get_cache_dir(), settings.cache)
        try:
            format_response(http_cache.stats())
        finally:
            http_cache.close()
        return

    store = cache.entries
    keys = store.keys()
    if not keys:
        info(f"No cache entries in {store.directory}")
        return

    rows = []
    for key in keys:
        status = store.check_availability(key, settings.cache.default_freshness_minutes)
        age = f"{status.age_minutes:.1f}" if status.age_minutes is not None else "-"
        rows.append([key, _format_time(status.last_modified), age, "yes" if status.expired else "no"])
    print_table(["key", "modified", "age_minutes", "expired"], rows, title="Cache entries")


@cache_app.command("clear")
def cache_clear(
    key: Optional[str] = typer.Argument(None, help="Cache key to delete."),
    all_entries: bool = typer.Option(False, "--all", help="Delete every cache entry."),
    http: bool = typer.Option(False, "--http", help="Also clear the HTTP response cache."),
) -> None:
    """Delete one cache entry, or all of them with ``--all``.

    Example::

        cinecache cache clear Genres
        cinecache cache clear --all --http
    """
    if key is None and not all_entries and not http:
        error("Pass a KEY or --all.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    cache, settings = _open_cache()
    if all_entries:
        count = cache.entries.clear_all()
        success(f"Removed {count} cache entr{'y' if count == 1 else 'ies'}.")
    elif key is not None:
        if asyncio.run(cache.clear(key)):
            success(f"Removed '{key}'.")
        else:
            info(f"'{key}' is not cached.")

    if http:
        from cinecache.client import HttpResponseCache
        from cinecache.config import get_cache_dir

        http_cache = HttpResponseCache(get_cache_dir(), settings.cache)
        try:
            http_cache.clear()
        finally:
            http_cache.close()
        success("HTTP response cache cleared.")
