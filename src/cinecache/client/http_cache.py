"""Disk-based HTTP response cache consulted by the transport.

Uses :mod:`diskcache` to persist successful GET responses so that
:class:`~cinecache.client.httpx_client.HttpxApiClient` can honour
:class:`~cinecache.models.CacheLevel` directives. This is the network-level
cache; it is independent of the typed application cache in
:mod:`cinecache.cache`.

Entries never expire inside diskcache itself: stale entries must remain
available for ``CACHE_IF_AVAILABLE`` and for ETag revalidation. Freshness
is computed on read from the stored timestamp and the response's
``Cache-Control: max-age`` (or the configured TTL when absent).

Cache keys are SHA-256 hashes of ``METHOD|URL``.
"""

from __future__ import annotations

import hashlib
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import diskcache

from cinecache.models import CacheConfig

_MAX_AGE = re.compile(r"max-age=(\d+)")


@dataclass
class CachedResponse:
    """A stored HTTP response."""

    status_code: int
    content: bytes
    etag: Optional[str]
    stored_at: float
    max_age: int

    def is_fresh(self, now: float) -> bool:
        """Whether the response is younger than its ``max_age``."""
        return now - self.stored_at <= self.max_age


class HttpResponseCache:
    """Disk-backed cache for HTTP GET responses.

    Args:
        cache_dir: Root directory for the cache. An ``http/`` subdirectory
            is created inside it.
        config: Cache configuration (``http_cache_enabled`` and
            ``http_ttl_seconds``).
        clock: Returns the current POSIX time; injectable for tests.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        config: CacheConfig,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._config = config
        self._cache_dir = Path(cache_dir)
        self._clock = clock or time.time
        self._cache: Optional[diskcache.Cache] = None
        if config.http_cache_enabled:
            self._cache = diskcache.Cache(str(self._cache_dir / "http"))

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def now(self) -> float:
        return self._clock()

    def get(self, method: str, url: str) -> Optional[CachedResponse]:
        """Look up the stored response for *url*, fresh or not.

        Returns:
            The :class:`CachedResponse`, or ``None`` on a miss, for
            non-GET methods, or when caching is disabled.
        """
        if self._cache is None or method.upper() != "GET":
            return None
        data = self._cache.get(self._make_key(method, url))
        if data is None:
            return None
        return CachedResponse(**data)

    def set(
        self,
        method: str,
        url: str,
        status_code: int,
        content: bytes,
        headers: Mapping[str, str],
    ) -> None:
        """Store a response.

        Only 2xx GET responses are stored, and responses marked
        ``Cache-Control: no-store`` are skipped.
        """
        if self._cache is None or method.upper() != "GET":
            return
        if not (200 <= status_code < 300):
            return
        cache_control = headers.get("cache-control", "").lower()
        if "no-store" in cache_control:
            return
        match = _MAX_AGE.search(cache_control)
        max_age = int(match.group(1)) if match else self._config.http_ttl_seconds

        data: dict[str, Any] = {
            "status_code": status_code,
            "content": content,
            "etag": headers.get("etag"),
            "stored_at": self._clock(),
            "max_age": max_age,
        }
        self._cache.set(self._make_key(method, url), data)

    def touch(self, method: str, url: str) -> None:
        """Reset the stored timestamp of *url* after a successful revalidation."""
        if self._cache is None:
            return
        key = self._make_key(method, url)
        data = self._cache.get(key)
        if data is not None:
            data["stored_at"] = self._clock()
            self._cache.set(key, data)

    def invalidate(self, method: str, url: str) -> None:
        """Remove the entry for *url*, if any."""
        if self._cache is None:
            return
        self._cache.delete(self._make_key(method, url))

    def clear(self) -> None:
        """Remove all entries from the cache."""
        if self._cache is not None:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics (``enabled``, and ``size``/``directory`` when enabled)."""
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._cache_dir / "http"),
            "ttl_seconds": self._config.http_ttl_seconds,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()

    def _make_key(self, method: str, url: str) -> str:
        raw = f"{method.upper()}|{url}"
        return hashlib.sha256(raw.encode()).hexdigest()
