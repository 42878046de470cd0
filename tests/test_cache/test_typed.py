"""Tests for TypedCache -- typed load/store/clear over the entry store."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from cinecache.cache import CacheEntryStore, TypedCache
from cinecache.exceptions import ParseError, SerializationError
from cinecache.models import Genre, GenreList


@pytest.fixture()
def cache(tmp_path: Path, clock) -> TypedCache:
    return TypedCache(CacheEntryStore(tmp_path / "cache", clock=clock))


def _stamp(cache: TypedCache, key: str, when: float) -> None:
    path = cache.entries.path_for(key)
    os.utime(path, (when, when))


class TestStoreAndLoad:
    def test_store_then_load_returns_equal_value(self, cache: TypedCache) -> None:
        genres = [Genre(id=1, name="Action")]

        async def run():
            await cache.store("genres", genres)
            return await cache.load("genres", list[Genre], 60)

        assert asyncio.run(run()) == genres

    def test_store_returns_path(self, cache: TypedCache) -> None:
        path = asyncio.run(cache.store("genres", GenreList()))
        assert path == cache.entries.path_for("genres")
        assert path.is_file()

    def test_payload_is_utf8_json(self, cache: TypedCache) -> None:
        asyncio.run(cache.store("genres", [{"id": 1, "name": "Comédie"}]))
        text = cache.entries.path_for("genres").read_text(encoding="utf-8")
        assert text == '[{"id":1,"name":"Comédie"}]'

    def test_plain_json_values(self, cache: TypedCache) -> None:
        async def run():
            await cache.store("ids", {"a": [1, 2, 3]})
            return await cache.load("ids", dict[str, list[int]], 60)

        assert asyncio.run(run()) == {"a": [1, 2, 3]}

    def test_store_replaces_previous_value(self, cache: TypedCache) -> None:
        async def run():
            await cache.store("genres", [Genre(id=1, name="Action")])
            await cache.store("genres", [Genre(id=2, name="Drama")])
            return await cache.load("genres", list[Genre], 60)

        assert asyncio.run(run()) == [Genre(id=2, name="Drama")]

    def test_unserialisable_value(self, cache: TypedCache) -> None:
        with pytest.raises(SerializationError):
            asyncio.run(cache.store("bad", object()))


class TestScenarios:
    def test_store_and_load_within_window(self, cache: TypedCache) -> None:
        value = [{"id": 1, "name": "Action"}]

        async def run():
            await cache.store("genres", value)
            return await cache.load("genres", list[dict], 60)

        assert asyncio.run(run()) == value

    def test_zero_window_load_right_after_store(self, tmp_path: Path) -> None:
        cache = TypedCache(CacheEntryStore(tmp_path / "cache"))
        value = [{"id": 1, "name": "Action"}]

        async def run():
            await cache.store("genres", value)
            return await cache.load("genres", list[dict], 0)

        assert asyncio.run(run()) == value

    def test_load_after_window_returns_none(self, cache: TypedCache, clock) -> None:
        asyncio.run(cache.store("genres", [{"id": 1, "name": "Action"}]))
        _stamp(cache, "genres", clock.now)
        clock.advance(61)

        assert asyncio.run(cache.load("genres", list[dict], 60)) is None
        status = asyncio.run(cache.status("genres", 60))
        assert status.available is True
        assert status.expired is True


class TestMissingAndCorrupt:
    def test_never_stored(self, cache: TypedCache) -> None:
        assert asyncio.run(cache.load("missing", GenreList, 60)) is None
        assert asyncio.run(cache.status("missing", 60)).available is False

    def test_corrupt_payload_raises_parse_error(self, cache: TypedCache) -> None:
        cache.entries.write_raw("genres", b"{not json")
        with pytest.raises(ParseError):
            asyncio.run(cache.load("genres", GenreList, 60))

    def test_schema_mismatch_raises_parse_error(self, cache: TypedCache) -> None:
        cache.entries.write_raw("genres", b'{"genres": "nope"}')
        with pytest.raises(ParseError):
            asyncio.run(cache.load("genres", GenreList, 60))

    def test_expired_corrupt_payload_is_just_a_miss(self, cache: TypedCache, clock) -> None:
        cache.entries.write_raw("genres", b"{not json")
        _stamp(cache, "genres", clock.now)
        clock.advance(120)
        assert asyncio.run(cache.load("genres", GenreList, 60)) is None


class TestLoadStale:
    def test_returns_expired_value(self, cache: TypedCache, clock) -> None:
        asyncio.run(cache.store("genres", GenreList(genres=[Genre(id=1, name="Action")])))
        _stamp(cache, "genres", clock.now)
        clock.advance(10_000)

        stale = asyncio.run(cache.load_stale("genres", GenreList))
        assert stale is not None
        assert stale.genres[0].name == "Action"

    def test_missing(self, cache: TypedCache) -> None:
        assert asyncio.run(cache.load_stale("missing", GenreList)) is None


class TestClear:
    def test_clear_removes_entry(self, cache: TypedCache) -> None:
        async def run():
            await cache.store("genres", [])
            removed = await cache.clear("genres")
            status = await cache.status("genres", 60)
            return removed, status

        removed, status = asyncio.run(run())
        assert removed is True
        assert status.available is False

    def test_clear_never_stored_is_noop(self, cache: TypedCache) -> None:
        assert asyncio.run(cache.clear("missing")) is False

    def test_clear_expired_entry(self, cache: TypedCache, clock) -> None:
        asyncio.run(cache.store("genres", []))
        _stamp(cache, "genres", clock.now)
        clock.advance(500)
        assert asyncio.run(cache.clear("genres")) is True


class TestInjectedSerializer:
    def test_failing_serializer_surfaces_on_load(self, tmp_path: Path) -> None:
        class BrokenSerializer:
            def serialize(self, value):
                return "{}"

            def deserialize(self, text, type_):
                raise ParseError("broken")

        cache = TypedCache(CacheEntryStore(tmp_path), serializer=BrokenSerializer())

        async def run():
            await cache.store("k", {"a": 1})
            return await cache.load("k", dict, 60)

        with pytest.raises(ParseError, match="broken"):
            asyncio.run(run())
