import asyncio
import json
from typing import List

import httpx
import pytest

from gopixel.config import AlterationContext, TrackingContext
from gopixel.errors import TransportError
from gopixel.events import Event, Payload
from gopixel.transport import EventClient, build_headers, serialize_events

from tests.helpers import ENDPOINT, mock_http_client


@pytest.mark.unit
class TestSerialization:
    """
    Test the request body and headers built for a batch.
    """

    def test_serialize_events_without_alteration(self, context: TrackingContext) -> None:
        events = [Event("page_load", Payload().set("title", "Home")), Event("click")]

        body = serialize_events(events, context)

        assert [item["type"] for item in body] == ["page_load", "click"]
        assert body[0]["payload"] == {"title": "Home"}
        assert all("alteration" not in item for item in body)

    def test_serialize_events_injects_alteration(self) -> None:
        context = TrackingContext(
            client="licence-123",
            visitor="visitor-456",
            alteration=AlterationContext(page="page-1", alter="variant-b"),
        )

        body = serialize_events([Event("page_load")], context)

        assert body[0]["alteration"] == {"page": "page-1", "alter": "variant-b"}

    def test_build_headers(self, context: TrackingContext) -> None:
        headers = build_headers(context)

        assert headers["X-GoPixel-Id"] == "visitor-456"
        assert headers["X-GoPixel-Licence"] == "licence-123"
        assert headers["Content-Type"] == "application/json"
        assert headers["User-Agent"].startswith("gopixel/")
        assert "GoPixel-Client-Id" in headers


@pytest.mark.unit
class TestEventClient:
    """
    Test the single-flight HTTP sender.
    """

    def test_successful_send(self, context: TrackingContext) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202)

        async def scenario():
            client = EventClient(ENDPOINT, http_client=mock_http_client(handler))
            result = await client.send_events(
                [Event("page_load", Payload().set("title", "Home"))], context
            )
            return result, client.is_free()

        result, free = asyncio.run(scenario())

        assert result is True
        assert free is True
        assert len(requests) == 1

        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers["X-GoPixel-Id"] == "visitor-456"
        assert request.headers["X-GoPixel-Licence"] == "licence-123"

        body = json.loads(request.content)
        assert isinstance(body, list)
        assert body[0]["type"] == "page_load"
        assert body[0]["payload"] == {"title": "Home"}
        assert body[0]["created_at"].endswith("Z")

    def test_empty_batch_is_not_sent(self, context: TrackingContext) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        async def scenario():
            client = EventClient(ENDPOINT, http_client=mock_http_client(handler))
            return await client.send_events([], context)

        assert asyncio.run(scenario()) is False
        assert requests == []

    @pytest.mark.parametrize("status_code", [400, 404, 500, 503])
    def test_non_success_status_raises_and_releases(
        self, context: TrackingContext, status_code: int
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code)

        async def scenario():
            client = EventClient(ENDPOINT, http_client=mock_http_client(handler))
            with pytest.raises(TransportError) as exc_info:
                await client.send_events([Event("page_load")], context)
            return exc_info.value, client.is_free()

        error, free = asyncio.run(scenario())

        assert error.status_code == status_code
        assert free is True

    def test_network_error_raises_and_releases(self, context: TrackingContext) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def scenario():
            client = EventClient(ENDPOINT, http_client=mock_http_client(handler))
            with pytest.raises(TransportError) as exc_info:
                await client.send_events([Event("page_load")], context)
            return exc_info.value, client.is_free()

        error, free = asyncio.run(scenario())

        assert error.status_code is None
        assert isinstance(error.__cause__, httpx.ConnectError)
        assert free is True

    def test_second_send_while_in_flight_is_rejected(
        self, context: TrackingContext
    ) -> None:
        requests: List[httpx.Request] = []

        async def scenario():
            release = asyncio.Event()

            async def handler(request: httpx.Request) -> httpx.Response:
                requests.append(request)
                await release.wait()
                return httpx.Response(200)

            client = EventClient(ENDPOINT, http_client=mock_http_client(handler))
            first = asyncio.ensure_future(
                client.send_events([Event("first")], context)
            )
            await asyncio.sleep(0)
            busy = not client.is_free()

            second = await client.send_events([Event("second")], context)
            still_busy = not client.is_free()

            release.set()
            return busy, second, still_busy, await first, client.is_free()

        busy, second, still_busy, first, free = asyncio.run(scenario())

        assert busy is True
        assert second is False
        assert still_busy is True
        assert first is True
        assert free is True
        assert len(requests) == 1
        assert json.loads(requests[0].content)[0]["type"] == "first"

    def test_lock_is_released_when_caller_stops_waiting(
        self, context: TrackingContext
    ) -> None:
        async def scenario():
            release = asyncio.Event()

            async def handler(request: httpx.Request) -> httpx.Response:
                await release.wait()
                return httpx.Response(500)

            client = EventClient(ENDPOINT, http_client=mock_http_client(handler))
            caller = asyncio.ensure_future(
                client.send_events([Event("page_load")], context)
            )
            await asyncio.sleep(0)
            caller.cancel()
            await asyncio.sleep(0)

            busy_after_cancel = not client.is_free()
            release.set()
            await client.wait_idle()
            return busy_after_cancel, client.is_free()

        busy_after_cancel, free = asyncio.run(scenario())

        assert busy_after_cancel is True
        assert free is True

    def test_wait_idle_without_request(self) -> None:
        client = EventClient(ENDPOINT)

        asyncio.run(client.wait_idle())

        assert client.is_free()

    def test_owned_client_is_created_and_closed(self) -> None:
        async def scenario():
            client = EventClient(ENDPOINT, timeout=5.0)
            client.http_client = mock_http_client(lambda request: httpx.Response(200))
            await client.aclose()
            return client.http_client

        assert asyncio.run(scenario()) is None

    def test_injected_client_is_not_closed(self) -> None:
        async def scenario():
            http_client = mock_http_client(lambda request: httpx.Response(200))
            client = EventClient(ENDPOINT, http_client=http_client)
            await client.aclose()
            return http_client.is_closed

        assert asyncio.run(scenario()) is False
