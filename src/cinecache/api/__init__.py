"""Typed API layer for cinecache.

* :class:`ApiResult` -- result envelope (value, or error plus optional API status).
* :func:`build_result` -- parse a transport outcome into an envelope.
* :class:`TmdbApi` -- typed methods of the movie-metadata API.
* :class:`CachedApi` -- cache-then-fetch on top of :class:`~cinecache.cache.TypedCache`.
* :class:`GenreService`, :class:`MovieSuggester` -- mood to genre mapping and suggestions.
"""

from cinecache.api.cached import CachedApi
from cinecache.api.moods import GenreService, MovieSuggester
from cinecache.api.result import ApiResult, build_result
from cinecache.api.wrapper import TmdbApi

__all__ = [
    "ApiResult",
    "CachedApi",
    "GenreService",
    "MovieSuggester",
    "TmdbApi",
    "build_result",
]
