from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from gopixel.config import TrackingContext
from gopixel.constants import HEADER_CLIENT_LICENCE, HEADER_VISITOR_ID
from gopixel.errors import TransportError
from gopixel.events import Event
from gopixel.meta import get_meta_http_headers

logger = logging.getLogger(__name__)


def serialize_events(
    events: Sequence[Event], context: TrackingContext
) -> List[Dict[str, Any]]:
    """
    Turn events into the JSON array body, injecting the alteration context.
    """
    alteration = context.alteration_dict()
    serialized = []

    for event in events:
        data = event.to_transport()
        if alteration is not None:
            data["alteration"] = alteration
        serialized.append(data)

    return serialized


def build_headers(context: TrackingContext) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        HEADER_VISITOR_ID: context.visitor,
        HEADER_CLIENT_LICENCE: context.client,
    }
    headers.update(get_meta_http_headers())
    return headers


class EventClient:
    """
    Sends batches of events to the collection endpoint.

     - only one request can be in flight at a time
     - a batch is sent as a single POST, with no size limit
     - failures are raised as TransportError, never retried here
    """

    def __init__(
        self,
        endpoint: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            endpoint: URL events are posted to
            http_client: Client to use. When omitted one is created on first
                send, and closed by aclose()
            timeout: Timeout of the created client, None for no timeout
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.http_client = http_client
        self._owns_client = http_client is None

        # reference to the pending request, used as the single-flight lock
        self._request: Optional[asyncio.Task] = None

    def is_free(self) -> bool:
        return self._request is None

    def _release_lock(self) -> None:
        self._request = None

    async def send_events(
        self, events: Sequence[Event], context: TrackingContext
    ) -> bool:
        """
        Send a batch of events.

        Returns:
            bool: True when the endpoint accepted the batch, False when nothing
            was sent (empty batch, or another request is in flight).

        Raises:
            TransportError: On a non-2xx response or a network failure.
        """
        if not events:
            logger.debug("No events to send.")
            return False

        if self._request is not None:
            logger.warning("Sender is busy with another request.")
            return False

        body = serialize_events(events, context)
        headers = build_headers(context)

        request = asyncio.ensure_future(self._post(body, headers))
        request.add_done_callback(self._retrieve_outcome)
        self._request = request

        # Cancelling the caller does not abort the request: it keeps the
        # slot until it settles.
        return await asyncio.shield(request)

    async def _post(self, body: List[Dict[str, Any]], headers: Dict[str, str]) -> bool:
        try:
            if self.http_client is None:
                self.http_client = httpx.AsyncClient(timeout=self.timeout)

            try:
                response = await self.http_client.post(
                    self.endpoint, json=body, headers=headers
                )
            except httpx.HTTPError as e:
                raise TransportError(str(e) or e.__class__.__name__) from e

            if not response.is_success:
                logger.error(
                    "Failed to save events: %s %s",
                    response.status_code,
                    response.reason_phrase,
                )
                raise TransportError(
                    response.reason_phrase or "unexpected response",
                    status_code=response.status_code,
                )

            logger.debug("Sent %s events to %s", len(body), self.endpoint)
            return True
        finally:
            self._release_lock()

    def _retrieve_outcome(self, request: asyncio.Task) -> None:
        # A request cancelled before it ran never reached its finally block
        if self._request is request:
            self._release_lock()

        # Marks the exception as retrieved when the caller stopped waiting
        if not request.cancelled() and request.exception() is not None:
            logger.debug("Request settled with error: %s", request.exception())

    async def wait_idle(self) -> None:
        """
        Wait for the in-flight request, if any, to settle. Never raises.
        """
        request = self._request
        if request is not None:
            await asyncio.wait({request})

    async def aclose(self) -> None:
        """
        Close the HTTP client if it was created here. Injected clients are
        left to their owner.
        """
        if self._owns_client and self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
            logger.debug("HTTP client closed")
