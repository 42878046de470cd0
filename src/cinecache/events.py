"""In-process publish/subscribe bus for completion notifications.

Subscribers register a handler for a message type; :meth:`EventBus.publish`
delivers a message to every handler registered for its type (or a base
class of it) in registration order. Handlers may be plain functions or
coroutine functions. A failing handler is logged and does not prevent
delivery to the remaining handlers.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class EventBus:
    """Dispatch messages to the handlers subscribed to their type."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = {}

    def subscribe(self, type_: type, handler: Handler) -> None:
        """Register *handler* for messages of *type_* (and its subclasses).

        Subscribing the same handler twice for one type is a no-op.
        """
        handlers = self._handlers.setdefault(type_, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, type_: type, handler: Handler) -> bool:
        """Remove *handler* from *type_*. Returns ``False`` if it was not registered."""
        handlers = self._handlers.get(type_, [])
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        if not handlers:
            del self._handlers[type_]
        return True

    def handlers_for(self, message: Any) -> list[Handler]:
        """Return the handlers that receive *message*, in delivery order."""
        matched: list[Handler] = []
        for type_, handlers in self._handlers.items():
            if isinstance(message, type_):
                matched.extend(h for h in handlers if h not in matched)
        return matched

    async def publish(self, message: Any) -> int:
        """Deliver *message* to every matching handler.

        Returns:
            The number of handlers that completed without raising.
        """
        delivered = 0
        for handler in self.handlers_for(message):
            try:
                result = handler(message)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.warning(
                    "Handler %r failed for %s: %s",
                    handler, type(message).__name__, exc,
                )
                continue
            delivered += 1
        return delivered
