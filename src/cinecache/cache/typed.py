"""Typed load/store/clear on top of :class:`~cinecache.cache.store.CacheEntryStore`.

Values pass through an injected :class:`~cinecache.serialization.Serializer`
on their way to and from disk, and freshness is decided per call by the
caller rather than per key.

Every operation is a coroutine that runs its disk I/O in a worker thread
via :func:`asyncio.to_thread`. A caller that awaits :meth:`TypedCache.store`
before calling :meth:`TypedCache.load` on the same key is guaranteed to
read what it stored; concurrent writers to one key are last-writer-wins.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, TypeVar

from cinecache.cache.store import CacheEntryStore
from cinecache.models import CacheStatus
from cinecache.serialization import Serializer, default_serializer

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Freshness window used by :meth:`TypedCache.clear` to check that the entry exists.
CLEAR_CHECK_MINUTES = 1


class TypedCache:
    """Generic typed cache façade.

    Args:
        store: The raw entry store.
        serializer: JSON serialiser; defaults to
            :func:`~cinecache.serialization.default_serializer`.

    Example::

        cache = TypedCache(CacheEntryStore(cache_dir))
        await cache.store("genres", genre_list)
        genres = await cache.load("genres", GenreList, freshness_minutes=60)
    """

    def __init__(
        self,
        store: CacheEntryStore,
        serializer: Optional[Serializer] = None,
    ) -> None:
        self._store = store
        self._serializer = serializer or default_serializer()

    @property
    def entries(self) -> CacheEntryStore:
        """The underlying raw entry store."""
        return self._store

    async def status(self, key: str, freshness_minutes: float) -> CacheStatus:
        """Return the availability/expiry of *key* without reading its payload."""
        return await asyncio.to_thread(self._store.check_availability, key, freshness_minutes)

    async def load(self, key: str, type_: type[T], freshness_minutes: float) -> Optional[T]:
        """Load the value stored under *key* as *type_*.

        Returns:
            The value, or ``None`` when the entry is missing or older than
            *freshness_minutes*.

        Raises:
            ParseError: If the stored payload does not deserialise into
                *type_* (corrupt or legacy entry).
            StorageError: On filesystem failures.
        """
        status = await self.status(key, freshness_minutes)
        if not status.available:
            logger.debug("Cache miss for '%s'", key)
            return None
        if status.expired:
            logger.debug("Cache entry '%s' expired (%.1f min old)", key, status.age_minutes or 0.0)
            return None
        return await self._read(key, type_)

    async def load_stale(self, key: str, type_: type[T]) -> Optional[T]:
        """Load the value stored under *key* regardless of its age.

        Returns ``None`` only when nothing is stored.
        """
        status = await self.status(key, float("inf"))
        if not status.available:
            return None
        return await self._read(key, type_)

    async def store(self, key: str, value: object) -> Path:
        """Serialise *value* and write it under *key*, replacing any prior entry.

        Returns:
            The path of the written cache file.

        Raises:
            SerializationError: If *value* cannot be serialised.
            StorageError: If the entry cannot be written.
        """
        text = self._serializer.serialize(value)
        return await asyncio.to_thread(self._store.write_raw, key, text.encode("utf-8"))

    async def clear(self, key: str) -> bool:
        """Delete the entry stored under *key*.

        Returns:
            ``True`` if an entry was removed, ``False`` if none existed.
        """
        status = await self.status(key, CLEAR_CHECK_MINUTES)
        if not status.available:
            return False
        return await asyncio.to_thread(self._store.delete, key)

    async def _read(self, key: str, type_: type[T]) -> T:
        raw = await asyncio.to_thread(self._store.read_raw, key)
        return self._serializer.deserialize(raw, type_)
