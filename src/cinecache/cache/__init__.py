"""Disk-based typed caching for cinecache.

This package provides two layers:

* :class:`CacheEntryStore` -- raw bytes per key in ``Cache_<key>_Data.json``
  files, with mtime-based freshness checks.
* :class:`TypedCache` -- async typed load/store/clear that (de)serialises
  values through an injected :class:`~cinecache.serialization.Serializer`.

The transport-level HTTP response cache lives separately in
:mod:`cinecache.client.http_cache`.
"""

from cinecache.cache.store import CacheEntryStore
from cinecache.cache.typed import TypedCache

__all__ = ["CacheEntryStore", "TypedCache"]
