"""Mood-driven movie suggestions.

Each :class:`~cinecache.models.Mood` maps onto a genre name. The API ids of
those genres are resolved against the live genre list once and cached
under ``Genres`` for five days; the genre list itself is cached under
``GenreList``. Both fall back to an expired copy when the API is down.

:class:`MovieSuggester` turns a mood into a handful of distinct movies
picked from a random page of the matching genre.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import random
from typing import Optional

from cinecache.api.cached import CachedApi
from cinecache.api.result import ApiResult
from cinecache.api.wrapper import TmdbApi
from cinecache.exceptions import RequestError
from cinecache.models import GenreList, Mood, MoodGenre, Movie

logger = logging.getLogger(__name__)

GENRE_LIST_CACHE_KEY = "GenreList"
MOOD_GENRES_CACHE_KEY = "Genres"
GENRES_FRESHNESS_MINUTES = 24 * 60 * 5

SUGGESTION_COUNT = 3
MAX_SUGGESTION_PAGE = 9

MOOD_GENRES: dict[Mood, str] = {
    Mood.ANGER: "Action",
    Mood.ENVY: "Romance",
    Mood.HAPPY: "Comedy",
    Mood.LOVE: "Romance",
    Mood.SAD: "Drama",
    Mood.SURPRISE: "Thriller",
    Mood.AFRAID: "Horror",
    Mood.ANXIOUS: "Mystery",
    Mood.EXCITED: "Adventure",
}


def genre_name_for(mood: Mood | str) -> str:
    """Return the genre name *mood* maps to.

    Raises:
        RequestError: If *mood* is not a known mood.
    """
    try:
        return MOOD_GENRES[Mood(mood)]
    except (KeyError, ValueError) as exc:
        raise RequestError(f"Could not find mood {mood}") from exc


def build_mapping(genres: GenreList) -> list[MoodGenre]:
    """Resolve every mood's genre name against *genres*, ignoring case.

    Moods whose genre is missing from the list keep ``genre_id=None``.
    """
    ids = {genre.name.casefold(): genre.id for genre in genres.genres}
    return [
        MoodGenre(mood=mood, genre=name, genre_id=ids.get(name.casefold()))
        for mood, name in MOOD_GENRES.items()
    ]


def genre_id_in(mapping: list[MoodGenre], mood: Mood | str) -> int:
    """Return the genre id resolved for *mood* in *mapping*.

    Raises:
        RequestError: If the mood is unknown or its genre has no id.
    """
    genre_name_for(mood)
    mood = Mood(mood)
    for entry in mapping:
        if entry.mood == mood and entry.genre_id is not None:
            return entry.genre_id
    raise RequestError(f"Could not find a genre for mood {mood.value}")


class GenreService:
    """Cached genre list and mood mapping.

    Args:
        api: Typed API used on cache misses.
        cached: Cache-then-fetch helper over the typed cache.
        freshness_minutes: How long both cached values stay fresh.
    """

    def __init__(
        self,
        api: TmdbApi,
        cached: CachedApi,
        freshness_minutes: float = GENRES_FRESHNESS_MINUTES,
    ) -> None:
        self._api = api
        self._cached = cached
        self._freshness = freshness_minutes

    async def genres(self, refresh: bool = False) -> ApiResult[GenreList]:
        """Return the genre list."""
        return await self._cached.get(
            GENRE_LIST_CACHE_KEY, GenreList, self._freshness, self._api.get_genres,
            serve_stale=True, refresh=refresh,
        )

    async def mapping(self, refresh: bool = False) -> ApiResult[list[MoodGenre]]:
        """Return the mood mapping with resolved genre ids."""
        return await self._cached.get(
            MOOD_GENRES_CACHE_KEY, list[MoodGenre], self._freshness,
            functools.partial(self._generate_mapping, refresh),
            serve_stale=True, refresh=refresh,
        )

    async def genre_id_for(self, mood: Mood | str) -> int:
        """Return the genre id for *mood*.

        Raises:
            ApiError: If the mapping could not be loaded.
            RequestError: If the mood has no resolvable genre.
        """
        mapping = (await self.mapping()).unwrap_or_raise() or []
        return genre_id_in(mapping, mood)

    async def clear_cache(self) -> None:
        """Drop the cached genre list and mood mapping."""
        await self._cached.invalidate(MOOD_GENRES_CACHE_KEY)
        await self._cached.invalidate(GENRE_LIST_CACHE_KEY)

    async def _generate_mapping(self, refresh: bool) -> ApiResult[list[MoodGenre]]:
        genres = await self.genres(refresh=refresh)
        if not genres.ok:
            return ApiResult(error=genres.error, api_status=genres.api_status)
        return ApiResult(result=build_mapping(genres.result or GenreList()), stale=genres.stale)


class MovieSuggester:
    """Suggest movies that suit a mood.

    Args:
        api: Typed API used for genre pages and movie details.
        genres: Source of the mood mapping.
        count: Number of distinct movies per suggestion.
        rng: Random source; injectable for tests.

    Example::

        suggester = MovieSuggester(api, GenreService(api, cached))
        movies = (await suggester.suggest(Mood.HAPPY)).unwrap_or_raise()
    """

    def __init__(
        self,
        api: TmdbApi,
        genres: GenreService,
        count: int = SUGGESTION_COUNT,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._api = api
        self._genres = genres
        self._count = count
        self._rng = rng or random.Random()

    async def suggest(self, mood: Mood | str) -> ApiResult[list[Movie]]:
        """Return up to ``count`` distinct movies from a random page of *mood*'s genre.

        Raises:
            RequestError: If the mood has no resolvable genre.
        """
        genre_name_for(mood)
        mapping = await self._genres.mapping()
        if not mapping.ok:
            return ApiResult(error=mapping.error, api_status=mapping.api_status)
        genre_id = genre_id_in(mapping.result or [], mood)

        page = self._rng.randint(1, MAX_SUGGESTION_PAGE)
        previews = await self._api.get_genre_movies(genre_id, page)
        if previews.ok and previews.result is not None:
            total_pages = previews.result.total_pages
            if not previews.result.results and 0 < total_pages < page:
                page = self._rng.randint(1, total_pages)
                previews = await self._api.get_genre_movies(genre_id, page)
        if not previews.ok:
            return ApiResult(error=previews.error, api_status=previews.api_status)

        candidates = previews.result.results if previews.result else []
        picked = self._rng.sample(candidates, min(self._count, len(candidates)))
        logger.debug("Suggesting %d movies from genre %d page %d", len(picked), genre_id, page)

        details = await asyncio.gather(*(self._api.get_movie(preview.id) for preview in picked))
        for detail in details:
            if not detail.ok:
                return ApiResult(error=detail.error, api_status=detail.api_status)
        return ApiResult(result=[detail.result for detail in details if detail.result is not None])
