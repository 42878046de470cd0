"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for cinecache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.cinecache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Settings** -- A single :class:`~cinecache.models.Settings` JSON file
  storing the API location, request defaults, and cache settings.
* **Environment overrides** -- :func:`resolve_settings` layers
  ``CINECACHE_*`` environment variables over the stored settings.
* **Atomic writes** -- :func:`atomic_write_bytes` writes through a temp
  file in the target directory and renames it into place, so a reader
  never observes a partially written file. The typed cache uses the same
  helper for every entry it stores.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from cinecache.exceptions import ConfigError
from cinecache.models import Settings

_APP_NAME = "cinecache"
_CONFIG_FILENAME = "config.json"

ENV_API_KEY = "CINECACHE_API_KEY"
ENV_API_URL = "CINECACHE_API_URL"
ENV_CACHE_DIR = "CINECACHE_CACHE_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/cinecache/`` (default ``~/.config/cinecache/``).
    On macOS/Windows: ``~/.cinecache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the transport cache directory, creating it if necessary.

    Holds the HTTP response cache only; its contents can be deleted at any
    time.

    On Linux/BSD: ``$XDG_CACHE_HOME/cinecache/`` (default ``~/.cache/cinecache/``).
    On macOS/Windows: ``~/.cinecache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the private data directory (typed cache, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/cinecache/`` (default ``~/.local/share/cinecache/``).
    On macOS/Windows: ``~/.cinecache/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_typed_cache_dir(settings: Optional[Settings] = None) -> Path:
    """Return the directory holding ``Cache_<key>_Data.json`` entries.

    Precedence: ``CINECACHE_CACHE_DIR``, then ``settings.cache.directory``,
    then ``<data_dir>/cache``.
    """
    env_value = os.environ.get(ENV_CACHE_DIR, "")
    if env_value:
        return Path(env_value)
    if settings is not None and settings.cache.directory:
        return Path(settings.cache.directory)
    return get_data_dir() / "cache"


# --- Atomic file writes ---


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On success the
    temp file is renamed over *path*; on any failure the temp file is
    cleaned up and the original exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


def _settings_path() -> Path:
    """Path to the settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load the stored settings from the XDG config directory.

    Returns:
        The deserialised :class:`~cinecache.models.Settings`. If the file
        does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _settings_path()
    if not path.is_file():
        return Settings()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist the settings atomically to disk."""
    data = settings.model_dump(mode="json")
    text = json.dumps(data, indent=2) + "\n"
    atomic_write_bytes(_settings_path(), text.encode("utf-8"))


def resolve_settings() -> Settings:
    """Load settings and apply environment variable overrides.

    Precedence (high to low):
        1. Environment variables (``CINECACHE_API_KEY``, ``CINECACHE_API_URL``,
           ``CINECACHE_CACHE_DIR``)
        2. User config (``~/.config/cinecache/config.json``)
        3. Defaults
    """
    settings = load_settings()

    api_key = os.environ.get(ENV_API_KEY)
    if api_key:
        settings.api.api_key = api_key

    api_url = os.environ.get(ENV_API_URL)
    if api_url:
        settings.api.api_url = api_url
        settings.api.secure_api_url = api_url

    cache_dir = os.environ.get(ENV_CACHE_DIR)
    if cache_dir:
        settings.cache.directory = cache_dir

    return settings
