"""Tests for cinecache.config -- XDG paths, atomic writes, settings, env overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cinecache.config import (
    atomic_write_bytes,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    get_typed_cache_dir,
    load_settings,
    resolve_settings,
    save_settings,
)
from cinecache.exceptions import ConfigError
from cinecache.models import CacheLevel, Settings


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cinecache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "cinecache"
        assert result.is_dir()

    def test_custom_xdg_dirs(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "cinecache"
        assert get_cache_dir() == isolated_config / "cache" / "cinecache"
        assert get_data_dir() == isolated_config / "data" / "cinecache"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cinecache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".cinecache"
        assert get_cache_dir() == tmp_path / ".cinecache" / "cache"
        assert get_data_dir() == tmp_path / ".cinecache" / "data"


class TestTypedCacheDir:
    def test_default_under_data_dir(self, isolated_config: Path) -> None:
        assert get_typed_cache_dir() == isolated_config / "data" / "cinecache" / "cache"

    def test_settings_directory(self, isolated_config: Path) -> None:
        settings = Settings()
        settings.cache.directory = str(isolated_config / "elsewhere")
        assert get_typed_cache_dir(settings) == isolated_config / "elsewhere"

    def test_env_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CINECACHE_CACHE_DIR", str(isolated_config / "env"))
        settings = Settings()
        settings.cache.directory = str(isolated_config / "elsewhere")
        assert get_typed_cache_dir(settings) == isolated_config / "env"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_and_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "file.json"
        atomic_write_bytes(target, b"{}")
        assert target.read_bytes() == b"{}"

    def test_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        atomic_write_bytes(target, b"1")
        atomic_write_bytes(target, b"2")
        assert target.read_bytes() == b"2"
        assert list(tmp_path.iterdir()) == [target]

    def test_failure_cleans_temp_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "file.json"

        def _fail(*args, **kwargs):
            raise OSError("rename failed")

        monkeypatch.setattr("cinecache.config.os.replace", _fail)
        with pytest.raises(OSError, match="rename failed"):
            atomic_write_bytes(target, b"data")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Settings persistence
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings == Settings()
        assert settings.api.api_url == "http://api.themoviedb.org/3"
        assert settings.request.cache_level == CacheLevel.DEFAULT

    def test_save_and_load(self, isolated_config: Path) -> None:
        settings = Settings()
        settings.api.api_key = "abc"
        settings.request.cache_level = CacheLevel.RELOAD
        settings.cache.default_freshness_minutes = 5
        save_settings(settings)

        loaded = load_settings()
        assert loaded.api.api_key == "abc"
        assert loaded.request.cache_level == CacheLevel.RELOAD
        assert loaded.cache.default_freshness_minutes == 5

    def test_file_is_json(self, isolated_config: Path) -> None:
        save_settings(Settings())
        data = json.loads((get_config_dir() / "config.json").read_text())
        assert data["request"]["cache_level"] == 0

    def test_invalid_json(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{nope")
        with pytest.raises(ConfigError):
            load_settings()

    def test_invalid_values(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text('{"request": {"cache_level": 42}}')
        with pytest.raises(ConfigError):
            load_settings()


class TestResolveSettings:
    def test_env_overrides(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        stored = Settings()
        stored.api.api_key = "stored"
        save_settings(stored)

        monkeypatch.setenv("CINECACHE_API_KEY", "from-env")
        monkeypatch.setenv("CINECACHE_API_URL", "http://localhost:9000/3")
        monkeypatch.setenv("CINECACHE_CACHE_DIR", str(isolated_config / "c"))

        settings = resolve_settings()
        assert settings.api.api_key == "from-env"
        assert settings.api.api_url == "http://localhost:9000/3"
        assert settings.api.secure_api_url == "http://localhost:9000/3"
        assert settings.cache.directory == str(isolated_config / "c")

    def test_env_not_persisted(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CINECACHE_API_KEY", "from-env")
        resolve_settings()
        assert load_settings().api.api_key == ""
