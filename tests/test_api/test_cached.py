"""Tests for CachedApi -- cache-then-fetch with optional stale fallback."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from cinecache.api import ApiResult, CachedApi
from cinecache.cache import CacheEntryStore, TypedCache
from cinecache.exceptions import StorageError, TransportError
from cinecache.models import Genre, GenreList

ACTION = GenreList(genres=[Genre(id=28, name="Action")])
DRAMA = GenreList(genres=[Genre(id=18, name="Drama")])


class CountingFetch:
    def __init__(self, result: ApiResult) -> None:
        self.result = result
        self.calls = 0

    async def __call__(self) -> ApiResult:
        self.calls += 1
        return self.result


@pytest.fixture()
def typed(tmp_path: Path, clock) -> TypedCache:
    return TypedCache(CacheEntryStore(tmp_path / "cache", clock=clock))


def _expire(typed: TypedCache, key: str, clock, minutes: float) -> None:
    path = typed.entries.path_for(key)
    os.utime(path, (clock.now, clock.now))
    clock.advance(minutes)


class TestCacheThenFetch:
    def test_miss_fetches_and_stores(self, typed: TypedCache) -> None:
        fetch = CountingFetch(ApiResult(result=ACTION))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))

        assert result.result == ACTION
        assert fetch.calls == 1
        assert asyncio.run(typed.load("Genres", GenreList, 60)) == ACTION

    def test_hit_skips_fetch(self, typed: TypedCache) -> None:
        asyncio.run(typed.store("Genres", ACTION))
        fetch = CountingFetch(ApiResult(result=DRAMA))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))

        assert result.result == ACTION
        assert not result.stale
        assert fetch.calls == 0

    def test_expired_entry_refetched(self, typed: TypedCache, clock) -> None:
        asyncio.run(typed.store("Genres", ACTION))
        _expire(typed, "Genres", clock, 61)
        fetch = CountingFetch(ApiResult(result=DRAMA))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))

        assert result.result == DRAMA
        assert fetch.calls == 1

    def test_refresh_ignores_cache(self, typed: TypedCache) -> None:
        asyncio.run(typed.store("Genres", ACTION))
        fetch = CountingFetch(ApiResult(result=DRAMA))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch, refresh=True))

        assert result.result == DRAMA
        assert asyncio.run(typed.load("Genres", GenreList, 60)) == DRAMA

    def test_corrupt_entry_treated_as_miss(self, typed: TypedCache) -> None:
        typed.entries.write_raw("Genres", b"{broken")
        fetch = CountingFetch(ApiResult(result=ACTION))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))

        assert result.result == ACTION
        assert asyncio.run(typed.load("Genres", GenreList, 60)) == ACTION

    def test_storage_error_propagates(self, typed: TypedCache, monkeypatch: pytest.MonkeyPatch) -> None:
        def _fail(key, payload):
            raise StorageError("disk full")

        monkeypatch.setattr(typed.entries, "write_raw", _fail)
        fetch = CountingFetch(ApiResult(result=ACTION))
        with pytest.raises(StorageError):
            asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))


class TestFailures:
    def test_failure_is_returned(self, typed: TypedCache) -> None:
        error = TransportError("refused", "http://x")
        fetch = CountingFetch(ApiResult(error=error))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))

        assert result.error is error
        assert typed.entries.keys() == []

    def test_failure_does_not_serve_stale_by_default(self, typed: TypedCache, clock) -> None:
        asyncio.run(typed.store("Genres", ACTION))
        _expire(typed, "Genres", clock, 120)
        fetch = CountingFetch(ApiResult(error=TransportError("refused")))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))

        assert result.result is None
        assert not result.ok

    def test_serve_stale_on_failure(self, typed: TypedCache, clock) -> None:
        asyncio.run(typed.store("Genres", ACTION))
        _expire(typed, "Genres", clock, 120)
        fetch = CountingFetch(ApiResult(error=TransportError("refused")))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch, serve_stale=True))

        assert result.ok
        assert result.stale
        assert result.result == ACTION

    def test_serve_stale_without_entry(self, typed: TypedCache) -> None:
        error = TransportError("refused")
        fetch = CountingFetch(ApiResult(error=error))
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch, serve_stale=True))

        assert result.error is error
        assert not result.stale

    def test_empty_success_not_stored(self, typed: TypedCache) -> None:
        fetch = CountingFetch(ApiResult())
        result = asyncio.run(CachedApi(typed).get("Genres", GenreList, 60, fetch))

        assert result.ok and result.result is None
        assert typed.entries.keys() == []


def test_invalidate(typed: TypedCache) -> None:
    asyncio.run(typed.store("Genres", ACTION))
    assert asyncio.run(CachedApi(typed).invalidate("Genres")) is True
    assert asyncio.run(CachedApi(typed).invalidate("Genres")) is False
