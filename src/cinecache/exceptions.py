"""Exception hierarchy for cinecache.

All exceptions inherit from :class:`CinecacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cinecache.exit_codes`.
The top-level error handler in :func:`cinecache.app.main` catches
``CinecacheError`` and exits with the appropriate code.

Cache misses and expired entries are *not* exceptions: they are reported
through :class:`~cinecache.models.CacheStatus` and ``None`` return values.
Transport and parse failures are normally carried inside an
:class:`~cinecache.api.result.ApiResult` rather than raised.

Subclass hierarchy::

    CinecacheError (exit 1)
    +-- ConfigError             (exit 1)
    +-- RequestError            (exit 2)
    +-- StorageError            (exit 8)
    |   +-- CacheNotFoundError  (exit 4)
    +-- SerializationError      (exit 7)
    |   +-- ParseError          (exit 7)
    +-- TransportError          (exit 6)
    |   +-- TimeoutError_       (exit 6)
    |   +-- HttpStatusError     (exit 3 / 4 / 5)
    +-- ApiError                (exit 5)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from cinecache.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_PARSE_ERROR,
    EXIT_SERVER_ERROR,
    EXIT_STORAGE_ERROR,
)

if TYPE_CHECKING:
    from cinecache.models import StatusResponse


class CinecacheError(Exception):
    """Base exception for all cinecache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(CinecacheError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class RequestError(CinecacheError):
    """Raised when an outgoing request cannot be built from its parameters."""

    exit_code = EXIT_INVALID_USAGE


class StorageError(CinecacheError):
    """Raised on local filesystem failures other than a missing entry (permissions, disk full)."""

    exit_code = EXIT_STORAGE_ERROR


class CacheNotFoundError(StorageError):
    """Raised when a cache entry is read without being present.

    Also used by the transport when a ``CACHE_ONLY`` request has nothing
    cached for the URL.
    """

    exit_code = EXIT_NOT_FOUND


class SerializationError(CinecacheError):
    """Raised when a value cannot be serialised to JSON."""

    exit_code = EXIT_PARSE_ERROR


class ParseError(SerializationError):
    """Raised when a payload cannot be deserialised into the expected type.

    Distinct from :class:`TransportError` so callers can tell a client-side
    schema mismatch from a server problem.
    """

    exit_code = EXIT_PARSE_ERROR


class TransportError(CinecacheError):
    """Raised (or reported) on network failures, timeouts, and non-2xx responses.

    Args:
        message: Human-readable error description.
        source_url: The URL of the request that failed.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, source_url: str = "", exit_code: int | None = None):
        super().__init__(message, exit_code)
        self.source_url = source_url


class TimeoutError_(TransportError):
    """Raised when a request exceeds its timeout.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class HttpStatusError(TransportError):
    """Raised when the remote API answers with a non-success HTTP status."""

    def __init__(self, message: str, source_url: str = "", status_code: int = 0):
        if status_code in (401, 403):
            code = EXIT_AUTH_FAILURE
        elif status_code == 404:
            code = EXIT_NOT_FOUND
        else:
            code = EXIT_SERVER_ERROR
        super().__init__(message, source_url, exit_code=code)
        self.status_code = status_code


class ApiError(CinecacheError):
    """Raised by :meth:`~cinecache.api.result.ApiResult.unwrap_or_raise` for failed calls.

    Args:
        cause: The transport or parse error recorded in the result.
        api_status: The structured status returned by the API, if any.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, cause: Exception, api_status: Optional[StatusResponse] = None):
        message = f"API call failed: {cause}"
        if api_status is not None:
            message = f"{message} ({api_status.status_code}: {api_status.status_message})"
        exit_code = getattr(cause, "exit_code", None)
        super().__init__(message, exit_code)
        self.cause = cause
        self.api_status = api_status
