"""Cache-then-fetch composition of :class:`~cinecache.cache.TypedCache` and API calls.

:class:`CachedApi` implements the usual data flow: look the key up in the
typed cache; on a miss, expiry, or unreadable entry call the API; store a
successful result back before returning it. With ``serve_stale=True`` an
expired cached value is returned (flagged ``stale``) when the fresh call
fails.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from cinecache.api.result import ApiResult
from cinecache.cache.typed import TypedCache
from cinecache.exceptions import ParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CachedApi:
    """Serve API results from the typed cache when fresh.

    Args:
        cache: Typed cache holding previous results.

    Example::

        cached = CachedApi(typed_cache)
        genres = await cached.get("genres", GenreList, 24 * 60, api.get_genres)
    """

    def __init__(self, cache: TypedCache) -> None:
        self._cache = cache

    async def get(
        self,
        key: str,
        type_: type[T],
        freshness_minutes: float,
        fetch: Callable[[], Awaitable[ApiResult[T]]],
        serve_stale: bool = False,
        refresh: bool = False,
    ) -> ApiResult[T]:
        """Return the value cached under *key*, fetching and storing it when needed.

        Args:
            key: Cache key of the resource.
            type_: Type the cached payload deserialises into.
            freshness_minutes: Maximum age of a usable cache entry.
            fetch: Coroutine function performing the API call.
            serve_stale: Fall back to an expired entry when *fetch* fails.
            refresh: Skip the cache lookup and always call *fetch*.

        Raises:
            StorageError: If a fetched result cannot be written to the cache.
        """
        if not refresh:
            try:
                cached = await self._cache.load(key, type_, freshness_minutes)
            except ParseError as exc:
                logger.warning("Discarding unreadable cache entry '%s': %s", key, exc)
                cached = None
            if cached is not None:
                logger.debug("Serving '%s' from cache", key)
                return ApiResult(result=cached)

        result = await fetch()
        if result.ok and result.result is not None:
            await self._cache.store(key, result.result)
            return result

        if not result.ok and serve_stale:
            stale = await self._load_stale(key, type_)
            if stale is not None:
                logger.info("Serving stale '%s' after failed call: %s", key, result.error)
                return ApiResult(result=stale, stale=True)
        return result

    async def invalidate(self, key: str) -> bool:
        """Drop the cached value for *key*."""
        return await self._cache.clear(key)

    async def _load_stale(self, key: str, type_: type[T]) -> Optional[T]:
        try:
            return await self._cache.load_stale(key, type_)
        except ParseError:
            return None
