"""Typed wrapper around the movie-metadata API.

:class:`TmdbApi` builds method URLs (API root, method path, API key, and
optional parameters), sends them through an injected
:class:`~cinecache.client.base.ApiClient` with the configured cache level,
timeout, and security flag, and returns every outcome as an
:class:`~cinecache.api.result.ApiResult`.

No method raises for transport or parse problems; anything unexpected that
escapes the transport is also captured into the envelope.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, TypeVar
from urllib.parse import urlencode

from cinecache.api.result import ApiResult, build_result
from cinecache.client.base import ApiClient, NetworkResult
from cinecache.exceptions import RequestError
from cinecache.models import (
    ApiConfiguration,
    GenreList,
    Movie,
    MoviePreviewList,
    Settings,
)
from cinecache.serialization import Serializer

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIGURATION_METHOD = "configuration"
GENRE_LIST_METHOD = "genre/movie/list"
GENRE_MOVIES_METHOD = "genre/{id}/movies"
SEARCH_MOVIE_METHOD = "search/movie"
MOVIE_METHOD = "movie/{id}"
ORIGINAL_IMAGE_SIZE = "original"


class TmdbApi:
    """Typed access to the remote API.

    Args:
        client: Transport used for every call.
        settings: API location/key and request defaults.
        serializer: Optional serializer for parsing responses.
    """

    def __init__(
        self,
        client: ApiClient,
        settings: Optional[Settings] = None,
        serializer: Optional[Serializer] = None,
    ) -> None:
        self._client = client
        self._settings = settings or Settings()
        self._serializer = serializer

    def api_url(self, method: str, params: Optional[dict[str, Any]] = None) -> str:
        """Return the URL of *method* including the API key and *params*.

        ``None`` parameter values are skipped.
        """
        api = self._settings.api
        root = api.secure_api_url if self._settings.request.secure else api.api_url
        query: dict[str, Any] = {api.api_key_param: api.api_key}
        if api.language:
            query["language"] = api.language
        for name, value in (params or {}).items():
            if value is not None:
                query[name] = value
        return f"{root.rstrip('/')}/{method.lstrip('/')}?{urlencode(query)}"

    async def call(
        self,
        method: str,
        type_: type[T],
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
        request_method: Optional[str] = None,
    ) -> ApiResult[T]:
        """Call an API *method* and parse the response as *type_*."""
        url = self.api_url(method, params)
        request = self._settings.request
        try:
            outcome = await self._client.fetch_json(
                url,
                body=body,
                method=request_method,
                cache_level=request.cache_level,
                timeout=request.timeout,
                secure=request.secure,
            )
        except Exception as exc:
            logger.warning("Unexpected failure calling %s: %s", method, exc)
            return ApiResult(error=exc)

        if outcome.error is not None:
            logger.debug("Call to %s failed: %s", method, outcome.error)
        return build_result(outcome, type_, self._serializer)

    async def get_configuration(self) -> ApiResult[ApiConfiguration]:
        """Return the API configuration (image base URLs and sizes)."""
        return await self.call(CONFIGURATION_METHOD, ApiConfiguration)

    async def get_genres(self) -> ApiResult[GenreList]:
        """Return the list of movie genres."""
        return await self.call(GENRE_LIST_METHOD, GenreList)

    async def get_genre_movies(self, genre_id: int, page: Optional[int] = None) -> ApiResult[MoviePreviewList]:
        """Return one page of movies in the genre *genre_id*."""
        return await self.call(
            GENRE_MOVIES_METHOD.format(id=genre_id), MoviePreviewList, {"page": page},
        )

    async def search_movies(
        self,
        query: str,
        year: Optional[int] = None,
        page: Optional[int] = None,
    ) -> ApiResult[MoviePreviewList]:
        """Search movies by title."""
        return await self.call(
            SEARCH_MOVIE_METHOD, MoviePreviewList, {"query": query, "year": year, "page": page},
        )

    async def get_movie(self, movie_id: int) -> ApiResult[Movie]:
        """Return the details of the movie *movie_id*."""
        return await self.call(MOVIE_METHOD.format(id=movie_id), Movie)

    # ------------------------------------------------------------------ #
    # Images
    # ------------------------------------------------------------------ #

    def image_url(
        self,
        file_path: str,
        configuration: ApiConfiguration,
        size: Optional[str] = None,
    ) -> str:
        """Return the URL of the image *file_path* in *size* (original size by default).

        Raises:
            RequestError: If *configuration* carries no image base URL.
        """
        images = configuration.images
        base = images.secure_base_url if self._settings.request.secure else images.base_url
        if not base:
            raise RequestError("API configuration has no image base URL")
        return f"{base.rstrip('/')}/{size or ORIGINAL_IMAGE_SIZE}/{file_path.lstrip('/')}"

    async def download_image(
        self,
        file_path: str,
        configuration: ApiConfiguration,
        destination: str | Path,
        size: Optional[str] = None,
    ) -> ApiResult[Path]:
        """Download an image into *destination* and return the stored path."""
        request = self._settings.request

        async def download() -> NetworkResult:
            return await self._client.download_to_file(
                self.image_url(file_path, configuration, size),
                destination,
                cache_level=request.cache_level,
                timeout=request.timeout,
                secure=request.secure,
            )

        outcome = await self._transfer(file_path, download)
        return ApiResult(result=getattr(outcome, "file_path", None), error=outcome.error)

    async def get_image(
        self,
        file_path: str,
        configuration: ApiConfiguration,
        size: Optional[str] = None,
    ) -> ApiResult[bytes]:
        """Fetch an image and return its bytes."""
        request = self._settings.request

        async def fetch() -> NetworkResult:
            return await self._client.fetch_bytes(
                self.image_url(file_path, configuration, size),
                cache_level=request.cache_level,
                timeout=request.timeout,
                secure=request.secure,
            )

        outcome = await self._transfer(file_path, fetch)
        return ApiResult(result=getattr(outcome, "content", None), error=outcome.error)

    async def _transfer(self, file_path: str, send) -> NetworkResult:
        try:
            outcome = await send()
        except RequestError as exc:
            return NetworkResult(error=exc)
        except Exception as exc:
            logger.warning("Unexpected failure fetching image %s: %s", file_path, exc)
            return NetworkResult(error=exc)
        if outcome.error is not None:
            logger.debug("Image %s failed: %s", file_path, outcome.error)
        return outcome
