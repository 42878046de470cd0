"""Transport-agnostic contract for calling a remote JSON API.

:class:`ApiClient` is the capability every transport implements. Its
methods never raise for network or HTTP failures; instead each returns a
:class:`NetworkResult` subclass whose ``error`` is populated and whose
payload is left empty. ``source_url`` is always set so failures can be
diagnosed.

Outcome types:
    :class:`ApiCallResult` -- JSON text (and ``ETag``) of a request.
    :class:`FileDownloadResult` -- local path of a downloaded file.
    :class:`FileStreamResult` -- raw bytes of a fetched resource.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from cinecache.models import CacheLevel


@dataclass
class NetworkResult:
    """Fields shared by all transport outcomes.

    Attributes:
        source_url: URL of the requested resource, set on success and failure.
        error: The failure (a :class:`~cinecache.exceptions.TransportError`
            or :class:`~cinecache.exceptions.CacheNotFoundError`), or ``None``.
    """

    source_url: str = ""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        """``True`` when the call completed without error."""
        return self.error is None


@dataclass
class ApiCallResult(NetworkResult):
    """Outcome of :meth:`ApiClient.fetch_json`.

    ``json`` holds the response body on success. On an HTTP error status
    it holds the error body (if any) so that a structured status can be
    parsed from it; it is ``None`` for network failures.
    """

    json: Optional[str] = None
    etag: Optional[str] = None
    status_code: Optional[int] = None
    from_cache: bool = False


@dataclass
class FileDownloadResult(NetworkResult):
    """Outcome of :meth:`ApiClient.download_to_file`.

    ``file_path`` is only set if the file was downloaded and stored.
    """

    file_path: Optional[Path] = None


@dataclass
class FileStreamResult(NetworkResult):
    """Outcome of :meth:`ApiClient.fetch_bytes`."""

    content: Optional[bytes] = None


class ApiClient(abc.ABC):
    """Abstract transport used to talk to the remote API.

    Every parameter after the URL is optional: ``cache_level`` is a hint
    the transport may honour, ``timeout`` is in seconds, and ``secure``
    asks for an HTTPS connection.
    """

    @abc.abstractmethod
    async def fetch_json(
        self,
        url: str,
        body: Any = None,
        method: Optional[str] = None,
        cache_level: Optional[CacheLevel] = None,
        timeout: Optional[float] = None,
        secure: bool = False,
    ) -> ApiCallResult:
        """Request *url* and return the JSON response text.

        Args:
            url: Absolute URL of the API method.
            body: Optional request body (Pydantic model, JSON-compatible
                value, or pre-encoded string). Sent as ``application/json``.
            method: HTTP method; defaults to ``GET`` without a body and
                ``POST`` with one.
            cache_level: Transport cache directive.
            timeout: Per-call timeout in seconds.
            secure: Use HTTPS.
        """

    @abc.abstractmethod
    async def download_to_file(
        self,
        url: str,
        destination: str | Path,
        cache_level: Optional[CacheLevel] = None,
        timeout: Optional[float] = None,
        secure: bool = False,
    ) -> FileDownloadResult:
        """Download *url* into the local file *destination*."""

    @abc.abstractmethod
    async def fetch_bytes(
        self,
        url: str,
        cache_level: Optional[CacheLevel] = None,
        timeout: Optional[float] = None,
        secure: bool = False,
    ) -> FileStreamResult:
        """Fetch *url* and return its body as bytes."""


def default_method(body: Any, method: Optional[str]) -> str:
    """Resolve the HTTP method: explicit value, else ``POST`` with a body, ``GET`` without."""
    if method:
        return method.upper()
    return "GET" if body is None else "POST"
