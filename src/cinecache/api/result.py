"""Typed result envelope for API calls.

:class:`ApiResult` binds either a parsed domain object or an error (plus
the API's structured status, when one could be read from the error body).
It is the only thing callers above this layer see: they never inspect raw
JSON or transport-specific exceptions.

:func:`build_result` turns a transport outcome into an envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from cinecache.client.base import ApiCallResult
from cinecache.exceptions import ApiError, ParseError
from cinecache.models import StatusResponse
from cinecache.serialization import Serializer, default_serializer

T = TypeVar("T")


@dataclass
class ApiResult(Generic[T]):
    """Result of a typed API call.

    Attributes:
        result: The parsed value, or ``None`` if the call failed.
        error: The transport or parse error, or ``None``.
        api_status: The status returned by the API. Only set when the call
            failed at the transport level *and* the error body parsed as a
            :class:`~cinecache.models.StatusResponse`.
        stale: ``True`` when ``result`` is an expired cached value served
            because a fresh call failed.
    """

    result: Optional[T] = None
    error: Optional[Exception] = None
    api_status: Optional[StatusResponse] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        """``True`` when no error was recorded."""
        return self.error is None

    def unwrap(self) -> Optional[T]:
        """Return the result, or ``None`` if the call failed."""
        return self.result if self.error is None else None

    def unwrap_or_raise(self) -> Optional[T]:
        """Return the result, raising :class:`~cinecache.exceptions.ApiError` on failure."""
        if self.error is not None:
            raise ApiError(self.error, self.api_status) from self.error
        return self.result


def build_result(
    outcome: ApiCallResult,
    type_: type[T],
    serializer: Optional[Serializer] = None,
) -> ApiResult[T]:
    """Parse a transport outcome into an :class:`ApiResult`.

    * transport failure -- ``error`` is the transport error; the raw body is
      tried as a :class:`~cinecache.models.StatusResponse` for ``api_status``;
    * empty body on success -- an empty result with no error;
    * parse failure -- ``error`` is a :class:`~cinecache.exceptions.ParseError`;
    * otherwise -- ``result`` is the parsed value, with the response ETag
      copied onto it when it has an ``etag`` field.
    """
    serializer = serializer or default_serializer()

    if outcome.error is not None:
        return ApiResult(
            error=outcome.error,
            api_status=_parse_status(outcome.json, serializer),
        )

    if not outcome.json:
        return ApiResult()

    try:
        value = serializer.deserialize(outcome.json, type_)
    except ParseError as exc:
        return ApiResult(error=exc)

    if outcome.etag and hasattr(value, "etag"):
        value.etag = outcome.etag  # type: ignore[attr-defined]
    return ApiResult(result=value)


def _parse_status(text: Optional[str], serializer: Serializer) -> Optional[StatusResponse]:
    if not text:
        return None
    try:
        return serializer.deserialize(text, StatusResponse)
    except ParseError:
        return None
