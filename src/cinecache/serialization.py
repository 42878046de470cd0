"""JSON serialisation capability injected into the cache and result layers.

:class:`Serializer` is the protocol both :class:`~cinecache.cache.TypedCache`
and :func:`~cinecache.api.result.build_result` depend on. Tests substitute
deterministic or failing implementations; production code uses
:class:`PydanticSerializer`, which handles Pydantic models, dataclasses,
and plain JSON values through :class:`pydantic.TypeAdapter`.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar

import pydantic_core
from pydantic import TypeAdapter, ValidationError

from cinecache.exceptions import ParseError, SerializationError

T = TypeVar("T")


class Serializer(Protocol):
    """Text serialisation used for cache payloads and API responses."""

    def serialize(self, value: Any) -> str:
        """Return the JSON text of *value*.

        Raises:
            SerializationError: If *value* cannot be represented as JSON.
        """
        ...

    def deserialize(self, text: str | bytes, type_: type[T]) -> T:
        """Parse *text* into an instance of *type_*.

        Raises:
            ParseError: If *text* is not valid JSON or does not match *type_*.
        """
        ...


class PydanticSerializer:
    """:class:`Serializer` backed by Pydantic.

    ``TypeAdapter`` instances are built once per target type and reused.
    """

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def serialize(self, value: Any) -> str:
        try:
            return pydantic_core.to_json(value).decode("utf-8")
        except pydantic_core.PydanticSerializationError as exc:
            raise SerializationError(f"Cannot serialise {type(value).__name__}: {exc}") from exc

    def deserialize(self, text: str | bytes, type_: type[T]) -> T:
        adapter = self._adapter(type_)
        try:
            return adapter.validate_json(text)
        except ValidationError as exc:
            raise ParseError(f"Cannot parse payload as {_type_name(type_)}: {exc}") from exc

    def _adapter(self, type_: Any) -> TypeAdapter[Any]:
        adapter = self._adapters.get(type_)
        if adapter is None:
            adapter = TypeAdapter(type_)
            self._adapters[type_] = adapter
        return adapter


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or str(type_)


_default: PydanticSerializer | None = None


def default_serializer() -> PydanticSerializer:
    """Return the shared :class:`PydanticSerializer` instance."""
    global _default
    if _default is None:
        _default = PydanticSerializer()
    return _default
