"""Asynchronous :class:`~cinecache.client.base.ApiClient` backed by :mod:`httpx`.

This module provides :class:`HttpxApiClient`, the default transport. It
wraps :class:`httpx.AsyncClient` and layers on:

- **Cache levels** -- every :class:`~cinecache.models.CacheLevel` is mapped
  onto an optional :class:`~cinecache.client.http_cache.HttpResponseCache`,
  including ETag revalidation with ``If-None-Match``.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ... scaled by ``retry_delay``).
- **Uniform outcomes** -- network errors, timeouts, and non-2xx statuses
  are returned as ``error`` on the outcome object, never raised.
- **Off-loop disk access** -- response cache reads and writes run in a
  worker thread through :func:`asyncio.to_thread`.

Example::

    async with HttpxApiClient(settings.request, http_cache=cache) as client:
        outcome = await client.fetch_json("https://api.example.com/3/genre/movie/list")
        if outcome.ok:
            print(outcome.json)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from cinecache.client.base import (
    ApiCallResult,
    ApiClient,
    FileDownloadResult,
    FileStreamResult,
    default_method,
)
from cinecache.client.http_cache import CachedResponse, HttpResponseCache
from cinecache.config import atomic_write_bytes
from cinecache.exceptions import (
    CacheNotFoundError,
    CinecacheError,
    HttpStatusError,
    StorageError,
    TimeoutError_,
    TransportError,
)
from cinecache.models import CacheLevel, RequestConfig
from cinecache.serialization import default_serializer

logger = logging.getLogger(__name__)

# Levels allowed to answer from a stored response.
_READ_LEVELS = {
    CacheLevel.DEFAULT,
    CacheLevel.CACHE_ONLY,
    CacheLevel.CACHE_IF_AVAILABLE,
    CacheLevel.REVALIDATE,
}
# Levels allowed to store a fresh network response.
_WRITE_LEVELS = {
    CacheLevel.DEFAULT,
    CacheLevel.CACHE_IF_AVAILABLE,
    CacheLevel.REVALIDATE,
    CacheLevel.RELOAD,
}
_NO_CACHE_LEVELS = {
    CacheLevel.BYPASS_CACHE,
    CacheLevel.RELOAD,
    CacheLevel.NO_CACHE_NO_STORE,
}


class HttpxApiClient(ApiClient):
    """HTTP transport for API calls.

    Must be used as an async context manager so that the underlying
    :class:`httpx.AsyncClient` is properly opened and closed.

    Args:
        config: Request settings (timeout, retries, SSL verify, default
            cache level). Defaults to :class:`~cinecache.models.RequestConfig`.
        http_cache: Optional response cache used to honour cache levels.
            Without one, every level except ``CACHE_ONLY`` hits the network.
        transport: Optional httpx transport (e.g. :class:`httpx.MockTransport`).
        retry_delay: Base delay in seconds between retries.
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        http_cache: Optional[HttpResponseCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay: float = 1.0,
    ) -> None:
        self._config = config or RequestConfig()
        self._http_cache = http_cache
        self._transport = transport
        self._retry_delay = retry_delay
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> HttpxApiClient:
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # ApiClient implementation
    # ------------------------------------------------------------------ #

    async def fetch_json(
        self,
        url: str,
        body: Any = None,
        method: Optional[str] = None,
        cache_level: Optional[CacheLevel] = None,
        timeout: Optional[float] = None,
        secure: bool = False,
    ) -> ApiCallResult:
        method = default_method(body, method)
        url = _secure_url(url, secure)
        result = ApiCallResult(source_url=url)

        headers = {"Accept": "application/json"}
        content: Optional[bytes] = None
        try:
            if body is not None:
                content = _encode_body(body)
                headers["Content-Type"] = "application/json"
            response, from_cache = await self._send(
                method, url, headers, content, self._level(cache_level), timeout,
            )
        except CinecacheError as exc:
            result.error = exc
            return result

        result.status_code = response.status_code
        result.from_cache = from_cache
        if response.status_code >= 400:
            result.json = response.text or None
            result.error = _status_error(response, url)
            return result

        result.json = response.text
        result.etag = response.headers.get("etag")
        return result

    async def download_to_file(
        self,
        url: str,
        destination: str | Path,
        cache_level: Optional[CacheLevel] = None,
        timeout: Optional[float] = None,
        secure: bool = False,
    ) -> FileDownloadResult:
        url = _secure_url(url, secure)
        result = FileDownloadResult(source_url=url)
        try:
            response, _ = await self._send(
                "GET", url, {}, None, self._level(cache_level), timeout,
            )
            if response.status_code >= 400:
                result.error = _status_error(response, url)
                return result
            path = Path(destination)
            await asyncio.to_thread(atomic_write_bytes, path, response.content)
        except CinecacheError as exc:
            result.error = exc
            return result
        except OSError as exc:
            result.error = StorageError(f"Cannot write {destination}: {exc}")
            return result
        result.file_path = path
        return result

    async def fetch_bytes(
        self,
        url: str,
        cache_level: Optional[CacheLevel] = None,
        timeout: Optional[float] = None,
        secure: bool = False,
    ) -> FileStreamResult:
        url = _secure_url(url, secure)
        result = FileStreamResult(source_url=url)
        try:
            response, _ = await self._send(
                "GET", url, {}, None, self._level(cache_level), timeout,
            )
        except CinecacheError as exc:
            result.error = exc
            return result
        if response.status_code >= 400:
            result.error = _status_error(response, url)
            return result
        result.content = response.content
        return result

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _level(self, cache_level: Optional[CacheLevel]) -> CacheLevel:
        return self._config.cache_level if cache_level is None else CacheLevel(cache_level)

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: Optional[bytes],
        level: CacheLevel,
        timeout: Optional[float],
    ) -> tuple[httpx.Response, bool]:
        """Apply *level* to the response cache and the network call.

        Returns:
            The response and whether it was served from the cache.

        Raises:
            CacheNotFoundError: ``CACHE_ONLY`` with nothing cached.
            TransportError: On network failures after all retries.
        """
        cache = self._http_cache if method == "GET" else None

        if cache is not None and level == CacheLevel.NO_CACHE_NO_STORE:
            await asyncio.to_thread(cache.invalidate, method, url)

        cached: Optional[CachedResponse] = None
        if cache is not None and level in _READ_LEVELS:
            cached = await asyncio.to_thread(cache.get, method, url)

        if level == CacheLevel.CACHE_ONLY:
            if cached is None:
                raise CacheNotFoundError(f"No cached response for {url}")
            logger.debug("Serving %s from cache (cache only)", url)
            return _cached_response(cached, method, url), True

        if cached is not None and cache is not None:
            if level == CacheLevel.CACHE_IF_AVAILABLE or (
                level == CacheLevel.DEFAULT and cached.is_fresh(cache.now())
            ):
                logger.debug("Serving %s from cache", url)
                return _cached_response(cached, method, url), True

        request_headers = dict(headers)
        if cached is not None and cached.etag:
            request_headers["If-None-Match"] = cached.etag
        if level in _NO_CACHE_LEVELS:
            request_headers["Cache-Control"] = "no-cache"
            request_headers["Pragma"] = "no-cache"

        response = await self._execute_with_retry(method, url, request_headers, content, timeout)

        if response.status_code == 304 and cached is not None and cache is not None:
            logger.debug("Cached copy of %s revalidated", url)
            await asyncio.to_thread(cache.touch, method, url)
            return _cached_response(cached, method, url), True

        if cache is not None and level in _WRITE_LEVELS:
            await asyncio.to_thread(
                cache.set, method, url, response.status_code, response.content, response.headers,
            )
        return response, False

    async def _execute_with_retry(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: Optional[bytes],
        timeout: Optional[float],
    ) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        max_retries = self._config.max_retries
        kwargs: dict[str, Any] = {"method": method, "url": url, "headers": headers}
        if content is not None:
            kwargs["content"] = content
        if timeout is not None:
            kwargs["timeout"] = timeout

        for attempt in range(max_retries + 1):
            try:
                response = await self._client.request(**kwargs)
            except httpx.TimeoutException as exc:
                if attempt < max_retries:
                    await self._backoff(attempt, f"Timeout: {exc}")
                    continue
                raise TimeoutError_(f"Request to {url} timed out: {exc}", url) from exc
            except httpx.HTTPError as exc:
                if attempt < max_retries:
                    await self._backoff(attempt, f"Connection error: {exc}")
                    continue
                raise TransportError(
                    f"Connection failed after {max_retries + 1} attempts: {exc}", url
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                await self._backoff(attempt, f"Server error {response.status_code}")
                continue
            return response

        raise TransportError("Request failed after all retries", url)  # pragma: no cover

    async def _backoff(self, attempt: int, reason: str) -> None:
        delay = self._retry_delay * 2 ** attempt
        logger.warning(
            "%s, retrying in %.1fs (attempt %d/%d)",
            reason, delay, attempt + 1, self._config.max_retries,
        )
        await asyncio.sleep(delay)


def _secure_url(url: str, secure: bool) -> str:
    if secure and url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def _encode_body(body: Any) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, BaseModel):
        return body.model_dump_json(exclude_none=True).encode("utf-8")
    return default_serializer().serialize(body).encode("utf-8")


def _cached_response(cached: CachedResponse, method: str, url: str) -> httpx.Response:
    headers = {"etag": cached.etag} if cached.etag else {}
    return httpx.Response(
        status_code=cached.status_code,
        headers=headers,
        content=cached.content,
        request=httpx.Request(method, url),
    )


def _status_error(response: httpx.Response, url: str) -> HttpStatusError:
    reason = response.reason_phrase or ""
    message = f"HTTP {response.status_code} {reason}".strip()
    return HttpStatusError(message, url, response.status_code)
