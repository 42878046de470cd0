"""File-per-key storage of raw cache payloads.

Each key maps to one file named ``Cache_<key>_Data.json`` inside the cache
directory. The file's modification time is the entry's last-write
timestamp, and freshness is measured in minutes against it.

Keys are sanitised before they reach the filesystem: characters outside
``[A-Za-z0-9._-]`` become ``_`` and, when anything was replaced, a short
SHA-1 digest of the raw key is appended so two different raw keys never
share a file.

Writes go through :func:`~cinecache.config.atomic_write_bytes`, so a
concurrent reader sees either the previous payload or the new one, never a
partial file.
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from cinecache.config import atomic_write_bytes
from cinecache.exceptions import CacheNotFoundError, StorageError
from cinecache.models import CacheStatus

logger = logging.getLogger(__name__)

CACHE_FILE_PREFIX = "Cache_"
CACHE_FILE_SUFFIX = "_Data.json"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class CacheEntryStore:
    """Maps string keys to JSON blobs on disk with mtime-based freshness.

    Args:
        directory: Directory holding the cache files. Created lazily on
            the first write.
        clock: Returns the current time as a POSIX timestamp. Tests inject
            a fake clock to simulate elapsed time.

    Example::

        store = CacheEntryStore(tmp_path)
        store.write_raw("genres", b'[{"id": 1, "name": "Action"}]')
        status = store.check_availability("genres", 60)
        assert status.available and not status.expired
    """

    def __init__(
        self,
        directory: str | Path,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._directory = Path(directory)
        self._clock = clock or time.time

    @property
    def directory(self) -> Path:
        """The directory holding the cache files."""
        return self._directory

    def path_for(self, key: str) -> Path:
        """Return the file path for *key*.

        Raises:
            ValueError: If *key* is empty.
        """
        return self._directory / f"{CACHE_FILE_PREFIX}{_safe_key(key)}{CACHE_FILE_SUFFIX}"

    def check_availability(self, key: str, freshness_minutes: float) -> CacheStatus:
        """Report whether *key* is stored and whether it outlived *freshness_minutes*.

        A missing entry yields ``available=False``; it is never an error.

        Raises:
            StorageError: If the file exists but its metadata cannot be read.
        """
        path = self.path_for(key)
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return CacheStatus(key=key, available=False)
        except OSError as exc:
            raise StorageError(f"Cannot stat cache entry {path}: {exc}") from exc

        age_minutes = max(self._clock() - mtime, 0.0) / 60.0
        # Whole elapsed minutes, so a window of 0 still covers the minute of the write.
        return CacheStatus(
            key=key,
            available=True,
            expired=math.floor(age_minutes) > freshness_minutes,
            path=path,
            last_modified=datetime.fromtimestamp(mtime, tz=timezone.utc),
            age_minutes=age_minutes,
        )

    def read_raw(self, key: str) -> bytes:
        """Return the stored payload for *key*.

        Raises:
            CacheNotFoundError: If nothing is stored under *key*.
            StorageError: On any other filesystem failure.
        """
        path = self.path_for(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError as exc:
            raise CacheNotFoundError(f"No cache entry for key '{key}'") from exc
        except OSError as exc:
            raise StorageError(f"Cannot read cache entry {path}: {exc}") from exc

    def write_raw(self, key: str, payload: bytes) -> Path:
        """Create or replace the entry for *key* and return its path.

        Raises:
            StorageError: If the entry cannot be written.
        """
        path = self.path_for(key)
        try:
            atomic_write_bytes(path, payload)
        except OSError as exc:
            raise StorageError(f"Cannot write cache entry {path}: {exc}") from exc
        logger.debug("Stored %d bytes under cache key '%s'", len(payload), key)
        return path

    def delete(self, key: str) -> bool:
        """Remove the entry for *key*.

        Returns:
            ``True`` if a file was removed, ``False`` if none existed.

        Raises:
            StorageError: If the file exists but cannot be removed.
        """
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Cannot delete cache entry {path}: {exc}") from exc
        logger.debug("Deleted cache key '%s'", key)
        return True

    def keys(self) -> list[str]:
        """Return the (sanitised) keys of all stored entries, sorted."""
        if not self._directory.is_dir():
            return []
        found = []
        for path in self._directory.glob(f"{CACHE_FILE_PREFIX}*{CACHE_FILE_SUFFIX}"):
            if path.is_file():
                found.append(path.name[len(CACHE_FILE_PREFIX):-len(CACHE_FILE_SUFFIX)])
        return sorted(found)

    def clear_all(self) -> int:
        """Delete every stored entry and return how many were removed."""
        return sum(1 for key in self.keys() if self.delete(key))


def _safe_key(key: str) -> str:
    """Map *key* to a filesystem-safe file name fragment."""
    if not key:
        raise ValueError("Cache key must not be empty")
    safe = _UNSAFE_CHARS.sub("_", key)
    if safe != key:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]
        safe = f"{safe}-{digest}"
    return safe
