"""Tests for the diskcache-backed HTTP response cache."""

from __future__ import annotations

import pytest

from cinecache.client import HttpResponseCache
from cinecache.models import CacheConfig

URL = "https://api.example.com/genre/movie/list?api_key=k"


@pytest.fixture()
def cache(tmp_path, clock):
    c = HttpResponseCache(tmp_path, CacheConfig(http_ttl_seconds=300), clock=clock)
    yield c
    c.close()


@pytest.fixture()
def disabled_cache(tmp_path):
    c = HttpResponseCache(tmp_path, CacheConfig(http_cache_enabled=False))
    yield c
    c.close()


# ------------------------------------------------------------------ #
# Core get/set behaviour
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_set_and_get(self, cache: HttpResponseCache) -> None:
        cache.set("GET", URL, 200, b'{"genres": []}', {"etag": '"v1"'})
        cached = cache.get("GET", URL)
        assert cached is not None
        assert cached.status_code == 200
        assert cached.content == b'{"genres": []}'
        assert cached.etag == '"v1"'

    def test_miss_returns_none(self, cache: HttpResponseCache) -> None:
        assert cache.get("GET", URL) is None

    def test_directory_layout(self, cache: HttpResponseCache, tmp_path) -> None:
        cache.set("GET", URL, 200, b"{}", {})
        assert (tmp_path / "http").is_dir()


class TestFiltering:
    def test_post_not_stored(self, cache: HttpResponseCache) -> None:
        cache.set("POST", URL, 200, b"{}", {})
        assert cache.get("GET", URL) is None

    def test_post_never_read(self, cache: HttpResponseCache) -> None:
        cache.set("GET", URL, 200, b"{}", {})
        assert cache.get("POST", URL) is None

    @pytest.mark.parametrize("status", [301, 404, 500])
    def test_non_2xx_not_stored(self, cache: HttpResponseCache, status: int) -> None:
        cache.set("GET", URL, status, b"{}", {})
        assert cache.get("GET", URL) is None

    def test_no_store_respected(self, cache: HttpResponseCache) -> None:
        cache.set("GET", URL, 200, b"{}", {"cache-control": "private, no-store"})
        assert cache.get("GET", URL) is None


class TestFreshness:
    def test_default_ttl(self, cache: HttpResponseCache, clock) -> None:
        cache.set("GET", URL, 200, b"{}", {})
        clock.advance(4)
        assert cache.get("GET", URL).is_fresh(cache.now())
        clock.advance(2)
        assert not cache.get("GET", URL).is_fresh(cache.now())

    def test_max_age_header(self, cache: HttpResponseCache, clock) -> None:
        cache.set("GET", URL, 200, b"{}", {"cache-control": "public, max-age=60"})
        assert cache.get("GET", URL).max_age == 60
        clock.advance(2)
        assert not cache.get("GET", URL).is_fresh(cache.now())

    def test_stale_entries_are_kept(self, cache: HttpResponseCache, clock) -> None:
        cache.set("GET", URL, 200, b"{}", {})
        clock.advance(60 * 24)
        assert cache.get("GET", URL) is not None

    def test_touch_renews(self, cache: HttpResponseCache, clock) -> None:
        cache.set("GET", URL, 200, b"{}", {})
        clock.advance(10)
        cache.touch("GET", URL)
        assert cache.get("GET", URL).is_fresh(cache.now())


class TestInvalidation:
    def test_invalidate(self, cache: HttpResponseCache) -> None:
        cache.set("GET", URL, 200, b"{}", {})
        cache.invalidate("GET", URL)
        assert cache.get("GET", URL) is None

    def test_clear(self, cache: HttpResponseCache) -> None:
        cache.set("GET", URL, 200, b"{}", {})
        cache.set("GET", URL + "&page=2", 200, b"{}", {})
        cache.clear()
        assert cache.stats()["size"] == 0


class TestDisabled:
    def test_disabled_cache_is_inert(self, disabled_cache: HttpResponseCache) -> None:
        disabled_cache.set("GET", URL, 200, b"{}", {})
        assert disabled_cache.get("GET", URL) is None
        assert disabled_cache.enabled is False
        assert disabled_cache.stats() == {"enabled": False}
