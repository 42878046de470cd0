"""API commands -- ``genres``, ``moods``, ``suggest``, ``search`` and ``roulette``.

``genres`` and ``moods`` go through the typed cache (keys ``GenreList`` and
``Genres``) and fall back to a stale copy when the API is unreachable.
``suggest`` picks movies for a mood. ``search`` calls the API directly (the
transport's HTTP cache still applies). ``roulette`` issues a single
uncached title search and prints the notification it publishes.

The HTTP transport can be supplied through ``ctx.obj["transport"]``; when
absent the client talks to the network.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import typer

from cinecache.exceptions import CinecacheError
from cinecache.exit_codes import EXIT_GENERIC_FAILURE
from cinecache.models import Mood, Settings
from cinecache.output import error, format_response, print_table, warning

STALE_WARNING = "API unavailable; showing an expired cached copy."


def _transport(ctx: typer.Context) -> Optional[httpx.AsyncBaseTransport]:
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    return obj.get("transport")


@asynccontextmanager
async def open_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator:
    """Yield an :class:`~cinecache.client.HttpxApiClient` with the HTTP cache attached."""
    from cinecache.client import HttpResponseCache, HttpxApiClient
    from cinecache.config import get_cache_dir

    http_cache = HttpResponseCache(get_cache_dir(), settings.cache)
    try:
        async with HttpxApiClient(
            settings.request, http_cache=http_cache, transport=transport,
        ) as client:
            yield client
    finally:
        http_cache.close()


def _genre_service(client, settings: Settings, freshness: Optional[float] = None):
    from cinecache.api import CachedApi, GenreService, TmdbApi
    from cinecache.api.moods import GENRES_FRESHNESS_MINUTES
    from cinecache.cache import CacheEntryStore, TypedCache
    from cinecache.config import get_typed_cache_dir

    api = TmdbApi(client, settings)
    cached = CachedApi(TypedCache(CacheEntryStore(get_typed_cache_dir(settings))))
    return api, GenreService(api, cached, freshness or GENRES_FRESHNESS_MINUTES)


def _fail(exc: Exception) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=getattr(exc, "exit_code", EXIT_GENERIC_FAILURE))


def genres_command(
    ctx: typer.Context,
    freshness: Optional[int] = typer.Option(
        None, "--freshness", "-f", help="Freshness window in minutes (default: 5 days)."
    ),
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cached copy."),
) -> None:
    """List movie genres, served from the local cache while fresh.

    Example::

        cinecache genres
        cinecache genres --refresh --json
    """
    from cinecache.config import resolve_settings
    from cinecache.models import CacheLevel

    settings = resolve_settings()
    if refresh:
        settings.request.cache_level = CacheLevel.RELOAD

    async def _run():
        async with open_client(settings, _transport(ctx)) as client:
            _, service = _genre_service(client, settings, freshness)
            return await service.genres(refresh=refresh)

    try:
        result = asyncio.run(_run())
        genres = result.unwrap_or_raise()
    except CinecacheError as exc:
        raise _fail(exc) from None

    if result.stale:
        warning(STALE_WARNING)
    rows = [[str(g.id), g.name] for g in (genres.genres if genres else [])]
    print_table(["id", "name"], rows, title="Genres")


def moods_command(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Rebuild the mapping from the API."),
) -> None:
    """Show which genre each mood maps to."""
    from cinecache.config import resolve_settings
    from cinecache.models import CacheLevel

    settings = resolve_settings()
    if refresh:
        settings.request.cache_level = CacheLevel.RELOAD

    async def _run():
        async with open_client(settings, _transport(ctx)) as client:
            _, service = _genre_service(client, settings)
            return await service.mapping(refresh=refresh)

    try:
        result = asyncio.run(_run())
        mapping = result.unwrap_or_raise() or []
    except CinecacheError as exc:
        raise _fail(exc) from None

    if result.stale:
        warning(STALE_WARNING)
    rows = [
        [entry.mood.value, entry.genre, "" if entry.genre_id is None else str(entry.genre_id)]
        for entry in mapping
    ]
    print_table(["mood", "genre", "genre_id"], rows, title="Moods")


def suggest_command(
    ctx: typer.Context,
    mood: Mood = typer.Argument(help="How you feel."),
    count: int = typer.Option(3, "--count", "-n", min=1, help="Number of movies."),
) -> None:
    """Suggest movies that suit a mood."""
    from cinecache.api import MovieSuggester
    from cinecache.config import resolve_settings

    settings = resolve_settings()

    async def _run():
        async with open_client(settings, _transport(ctx)) as client:
            api, service = _genre_service(client, settings)
            return await MovieSuggester(api, service, count=count).suggest(mood)

    try:
        movies = asyncio.run(_run()).unwrap_or_raise() or []
    except CinecacheError as exc:
        raise _fail(exc) from None

    rows = [
        [str(m.id), m.title or "", m.release_date or "", f"{m.vote_average or 0:.1f}"]
        for m in movies
    ]
    print_table(["id", "title", "release_date", "vote_average"], rows, title=f"Feeling {mood.value}")


def search_command(
    ctx: typer.Context,
    title: str = typer.Argument(help="Movie title to search for."),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Release year."),
    page: Optional[int] = typer.Option(None, "--page", help="Result page."),
) -> None:
    """Search movies by title."""
    from cinecache.api import TmdbApi
    from cinecache.config import resolve_settings

    settings = resolve_settings()

    async def _run():
        async with open_client(settings, _transport(ctx)) as client:
            return await TmdbApi(client, settings).search_movies(title, year=year, page=page)

    try:
        movies = asyncio.run(_run()).unwrap_or_raise()
    except CinecacheError as exc:
        raise _fail(exc) from None

    rows = [
        [str(m.id), m.title or "", m.release_date or "", f"{m.vote_average or 0:.1f}"]
        for m in (movies.results if movies else [])
    ]
    print_table(["id", "title", "release_date", "vote_average"], rows, title=f"Results for '{title}'")


def roulette_command(
    ctx: typer.Context,
    title: str = typer.Argument(help="Title to look up."),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Release year."),
) -> None:
    """Look up one title on the roulette search service."""
    from cinecache.config import resolve_settings
    from cinecache.events import EventBus
    from cinecache.roulette import RouletteClient, RouletteNotification

    settings = resolve_settings()
    received: list[RouletteNotification] = []
    bus = EventBus()
    bus.subscribe(RouletteNotification, received.append)

    async def _run() -> None:
        async with open_client(settings, _transport(ctx)) as client:
            roulette = RouletteClient(client, bus, timeout=settings.request.timeout)
            await roulette.create_request(title, year)

    try:
        asyncio.run(_run())
    except CinecacheError as exc:
        raise _fail(exc) from None

    if not received:
        error("No result received.")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    notification = received[0]
    if notification.error is not None:
        raise _fail(notification.error)
    format_response(notification.response)
