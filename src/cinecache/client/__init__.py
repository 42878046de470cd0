"""Remote call abstraction for cinecache.

Provides the transport contract and its default implementation:

Classes:
    :class:`ApiClient` -- abstract transport; every call returns an outcome
        object instead of raising.
    :class:`HttpxApiClient` -- non-blocking transport backed by
        :class:`httpx.AsyncClient`.
    :class:`HttpResponseCache` -- diskcache-backed HTTP response cache used
        to honour :class:`~cinecache.models.CacheLevel` hints.

Example::

    from cinecache.client import HttpxApiClient

    async with HttpxApiClient(settings.request) as client:
        outcome = await client.fetch_bytes(poster_url)
"""

from cinecache.client.base import (
    ApiCallResult,
    ApiClient,
    FileDownloadResult,
    FileStreamResult,
    NetworkResult,
)
from cinecache.client.http_cache import HttpResponseCache
from cinecache.client.httpx_client import HttpxApiClient
from cinecache.models import CacheLevel

__all__ = [
    "ApiCallResult",
    "ApiClient",
    "CacheLevel",
    "FileDownloadResult",
    "FileStreamResult",
    "HttpResponseCache",
    "HttpxApiClient",
    "NetworkResult",
]
