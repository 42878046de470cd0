"""Fire-and-forget title search with completion notification.

:class:`RouletteClient` issues one uncached fetch per
:meth:`~RouletteClient.create_request` call and publishes exactly one
:class:`RouletteNotification` on the :class:`~cinecache.events.EventBus`
when the fetch finishes. Overlapping requests are independent: nothing is
de-duplicated or cancelled, so subscribers may see notifications in a
different order than the requests were created.

Example::

    bus = EventBus()
    bus.subscribe(RouletteNotification, show)
    roulette = RouletteClient(client, bus)
    await roulette.create_request("The Matrix", year=1999)
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import ValidationError

from cinecache.client.base import ApiCallResult, ApiClient
from cinecache.events import EventBus
from cinecache.exceptions import ParseError, RequestError, TransportError
from cinecache.models import CacheLevel, RouletteRequest, RouletteResponse
from cinecache.serialization import Serializer, default_serializer

logger = logging.getLogger(__name__)


class RequestState(enum.Enum):
    """Lifecycle of the client's requests as seen from outside.

    ``IN_FLIGHT`` while any fetch is running, ``COMPLETED`` while a finished
    request is being announced, ``IDLE`` otherwise.
    """

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"


@dataclass
class RouletteNotification:
    """Published once per finished request.

    ``response.error`` is ``True`` and ``error`` is set when the request
    failed or its body could not be parsed.
    """

    request: RouletteRequest
    response: RouletteResponse
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RouletteClient:
    """Issue roulette searches and announce their results.

    Args:
        client: Transport used for the fetch.
        bus: Bus the notifications are published on.
        drop_malformed: Publish nothing when a successful response has an
            empty or unparseable body, instead of an error notification.
        serializer: Optional serializer for parsing responses.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        client: ApiClient,
        bus: EventBus,
        drop_malformed: bool = False,
        serializer: Optional[Serializer] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client
        self._bus = bus
        self._drop_malformed = drop_malformed
        self._serializer = serializer or default_serializer()
        self._timeout = timeout
        self._pending: set[asyncio.Task] = set()
        self._announcing = 0
        self._completed = 0

    @property
    def in_flight(self) -> int:
        """Number of requests whose fetch has not finished yet."""
        return len(self._pending)

    @property
    def completed(self) -> int:
        """Number of requests that have finished, announced or dropped."""
        return self._completed

    @property
    def state(self) -> RequestState:
        if self._pending:
            return RequestState.IN_FLIGHT
        if self._announcing:
            return RequestState.COMPLETED
        return RequestState.IDLE

    def create_request(
        self,
        query: Union[str, RouletteRequest],
        year: Optional[int] = None,
    ) -> asyncio.Task:
        """Start a search and return the task running it.

        Must be called from a running event loop. The task resolves to the
        published :class:`RouletteNotification`, or ``None`` when a
        malformed response was dropped.

        Raises:
            RequestError: If no request can be built from *query* and *year*.
        """
        request = self._build_request(query, year)
        task = asyncio.create_task(self._run(request))
        self._pending.add(task)
        task.add_done_callback(self._finish)
        logger.debug("Roulette request started: %s", request.api_url)
        return task

    def _finish(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        self._completed += 1

    def _build_request(
        self,
        query: Union[str, RouletteRequest],
        year: Optional[int],
    ) -> RouletteRequest:
        if isinstance(query, RouletteRequest):
            request = query if year is None else query.model_copy(update={"year": year})
        else:
            try:
                request = RouletteRequest(title=query, year=year)
            except ValidationError as exc:
                raise RequestError(f"Invalid roulette request: {exc}") from exc
        if not request.title or not request.title.strip():
            raise RequestError("Roulette request needs a title")
        return request

    async def _run(self, request: RouletteRequest) -> Optional[RouletteNotification]:
        url = request.api_url
        try:
            outcome = await self._client.fetch_json(
                url, cache_level=CacheLevel.BYPASS_CACHE, timeout=self._timeout,
            )
        except Exception as exc:
            outcome = ApiCallResult(source_url=url, error=TransportError(str(exc), url))
        finally:
            self._pending.discard(asyncio.current_task())

        notification = self._notification(request, outcome)
        if notification is None:
            logger.debug("Dropping malformed roulette response from %s", url)
            return None
        self._announcing += 1
        try:
            await self._bus.publish(notification)
        finally:
            self._announcing -= 1
        return notification

    def _notification(
        self,
        request: RouletteRequest,
        outcome: ApiCallResult,
    ) -> Optional[RouletteNotification]:
        if outcome.error is not None:
            logger.info("Roulette request failed: %s", outcome.error)
            return _failed(request, outcome.error)

        if not outcome.json:
            if self._drop_malformed:
                return None
            return _failed(request, ParseError(f"Empty response from {outcome.source_url}"))

        try:
            response = self._serializer.deserialize(outcome.json, RouletteResponse)
        except ParseError as exc:
            if self._drop_malformed:
                return None
            return _failed(request, exc)
        return RouletteNotification(request=request, response=response)


def _failed(request: RouletteRequest, error: Exception) -> RouletteNotification:
    return RouletteNotification(
        request=request, response=RouletteResponse(error=True), error=error,
    )
