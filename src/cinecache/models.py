"""Canonical Pydantic models shared across all cinecache modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ApiConfig`, :class:`RequestConfig`, :class:`CacheConfig`,
    :class:`OutputConfig`, and :class:`Settings`.

**Cache models** -- reported by the cache layer:
    :class:`CacheLevel` (transport cache hint) and :class:`CacheStatus`.

**API payload models** -- the subset of the remote JSON schema the library
consumes: :class:`StatusResponse`, :class:`Genre`, :class:`GenreList`,
:class:`MoviePreview`, :class:`MoviePreviewList`, :class:`Movie`,
:class:`ImageConfiguration`, :class:`ApiConfiguration`,
:class:`RouletteRequest`, and :class:`RouletteResponse`.

**Mood models** -- the mood to genre mapping: :class:`Mood` and
:class:`MoodGenre`.

Payload models ignore unknown JSON keys so that additions to the remote
schema never break deserialisation.
"""

from __future__ import annotations

import enum
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field


# --- Cache ---


class CacheLevel(int, enum.Enum):
    """Transport-level cache directive for a single HTTP call.

    Consumed purely as a hint by an :class:`~cinecache.client.base.ApiClient`
    implementation. These values govern the HTTP response cache of the
    transport, not the application's typed cache in :mod:`cinecache.cache`.
    """

    DEFAULT = 0
    """Use the cached copy while it is fresh, otherwise fetch."""

    BYPASS_CACHE = 1
    """Always use the network; never read, write, or evict cache entries."""

    CACHE_ONLY = 2
    """Serve only from cache; fail with a not-found error when absent."""

    CACHE_IF_AVAILABLE = 3
    """Prefer any cached copy regardless of age, fall back to the network."""

    REVALIDATE = 4
    """Ask the server whether the cached copy is unchanged (ETag) before using it."""

    RELOAD = 5
    """Force a network fetch, but store the result in the cache."""

    NO_CACHE_NO_STORE = 6
    """Never read or write the cache, and evict any existing copy."""


class CacheStatus(BaseModel):
    """Availability and freshness of a single cache entry.

    ``available=False`` means no entry exists under the key (a normal
    outcome, not an error). ``expired`` is only meaningful when the entry
    is available.
    """

    key: str
    available: bool = False
    expired: bool = False
    path: Optional[Path] = None
    last_modified: Optional[datetime] = None
    age_minutes: Optional[float] = None

    @property
    def is_fresh(self) -> bool:
        """``True`` when the entry exists and is within its freshness window."""
        return self.available and not self.expired


# --- Configuration ---


class ApiConfig(BaseModel):
    """Location and credentials of the remote movie-metadata API."""

    api_url: str = Field(
        default="http://api.themoviedb.org/3", description="Plain-HTTP API root"
    )
    secure_api_url: str = Field(
        default="https://api.themoviedb.org/3", description="HTTPS API root"
    )
    api_key: str = Field(default="", description="API key sent with every call")
    api_key_param: str = Field(
        default="api_key", description="Query parameter carrying the API key"
    )
    language: Optional[str] = Field(
        default=None, description="ISO 639-1 code sent as the language parameter"
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=0, description="Max retry attempts on 5xx / network errors")
    secure: bool = Field(default=False, description="Use HTTPS for API calls")
    cache_level: CacheLevel = Field(
        default=CacheLevel.DEFAULT, description="Transport cache level for API calls"
    )


class CacheConfig(BaseModel):
    """Typed cache and transport cache settings stored in :class:`Settings`."""

    directory: Optional[str] = Field(
        default=None, description="Typed cache directory (defaults to <data_dir>/cache)"
    )
    default_freshness_minutes: int = Field(
        default=60, description="Freshness window used when a caller does not pass one"
    )
    http_cache_enabled: bool = Field(
        default=True, description="Enable the transport HTTP response cache"
    )
    http_ttl_seconds: int = Field(
        default=300, description="Freshness of HTTP cache entries without max-age"
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`Settings`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class Settings(BaseModel):
    """User-wide configuration persisted at ``~/.config/cinecache/config.json``.

    Loaded and saved by :func:`~cinecache.config.load_settings` and
    :func:`~cinecache.config.save_settings`. Environment variables override
    individual fields; see :func:`~cinecache.config.resolve_settings`.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- API payloads ---


class TmdbModel(BaseModel):
    """Base class for payloads returned by the movie-metadata API.

    ``etag`` is not part of the JSON body; it is filled in from the HTTP
    ``ETag`` header of the response that produced the object.
    """

    model_config = ConfigDict(extra="ignore")

    etag: Optional[str] = None


class StatusResponse(TmdbModel):
    """Structured status payload returned by the API on failures and writes."""

    status_code: int
    status_message: str = ""


class Genre(TmdbModel):
    """A single movie genre."""

    id: int
    name: str


class GenreList(TmdbModel):
    """Response of the ``genre/list`` method."""

    genres: list[Genre] = Field(default_factory=list)


class MoviePreview(TmdbModel):
    """Compact movie entry as returned in search and discovery pages."""

    id: int
    title: Optional[str] = None
    original_title: Optional[str] = None
    release_date: Optional[str] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    popularity: Optional[float] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    adult: bool = False


class MoviePreviewList(TmdbModel):
    """One page of :class:`MoviePreview` results."""

    page: int = 1
    results: list[MoviePreview] = Field(default_factory=list)
    total_pages: int = 0
    total_results: int = 0


class Movie(MoviePreview):
    """Full movie details returned by the ``movie/{id}`` method."""

    imdb_id: Optional[str] = None
    runtime: Optional[int] = None
    status: Optional[str] = None
    tagline: Optional[str] = None
    homepage: Optional[str] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    genres: list[Genre] = Field(default_factory=list)


class ImageConfiguration(BaseModel):
    """Image base URLs and available sizes."""

    model_config = ConfigDict(extra="ignore")

    base_url: Optional[str] = None
    secure_base_url: Optional[str] = None
    poster_sizes: list[str] = Field(default_factory=list)
    backdrop_sizes: list[str] = Field(default_factory=list)
    profile_sizes: list[str] = Field(default_factory=list)


class ApiConfiguration(TmdbModel):
    """Response of the ``configuration`` method."""

    images: ImageConfiguration = Field(default_factory=ImageConfiguration)
    change_keys: list[str] = Field(default_factory=list)


# --- Moods ---


class Mood(str, enum.Enum):
    """How the user feels; each mood maps onto one movie genre."""

    ANGER = "anger"
    ENVY = "envy"
    HAPPY = "happy"
    LOVE = "love"
    SAD = "sad"
    SURPRISE = "surprise"
    AFRAID = "afraid"
    ANXIOUS = "anxious"
    EXCITED = "excited"


class MoodGenre(BaseModel):
    """One mood, the genre name it maps to, and that genre's API id once resolved."""

    mood: Mood
    genre: str
    genre_id: Optional[int] = None


# --- Roulette search ---


ROULETTE_API_URL = "http://netflixroulette.net/api/api.php?"


class RouletteRequest(BaseModel):
    """Query parameters of a single roulette title search."""

    title: str
    year: Optional[int] = None

    @property
    def api_url(self) -> str:
        """The request URL, with ``year`` omitted when unset or zero."""
        params: dict[str, object] = {"title": self.title}
        if self.year:
            params["year"] = self.year
        return ROULETTE_API_URL + urlencode(params)


class RouletteResponse(BaseModel):
    """A single title returned by the roulette search service.

    ``error`` is set on synthetic responses published when the request
    failed.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    unit: Optional[int] = None
    show_id: Optional[int] = None
    show_title: Optional[str] = None
    release_year: Optional[str] = None
    rating: Optional[str] = None
    category: Optional[str] = None
    show_cast: Optional[str] = None
    director: Optional[str] = None
    summary: Optional[str] = None
    poster: Optional[str] = None
    mediatype: Optional[int] = None
    runtime: Optional[str] = None
    error: bool = False
