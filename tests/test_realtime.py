"""Tests for live pod log streaming over WebSocket."""

import asyncio
from unittest.mock import AsyncMock

import pytest
import websockets
from websockets.datastructures import Headers
from websockets.http11 import Response

from kontroler_sdk import (
    AsyncKontroler,
    AuthenticationError,
    ConnectError,
    LogEventType,
    StreamError,
)
from kontroler_sdk.realtime import build_ws_url
from tests.helpers import BASE_URL, COOKIE_NAME, PASSWORD, USERNAME, FakeWebSocket

POD_UID = "3f2a9c1e-pod"


async def collect(stream) -> list[str]:
    return [chunk async for chunk in stream]


@pytest.fixture
def connect(monkeypatch):
    """Replace websockets.connect; set ``return_value`` or ``side_effect``."""
    mock = AsyncMock()
    monkeypatch.setattr(websockets, "connect", mock)
    return mock


class TestBuildWsUrl:
    """Tests for build_ws_url."""

    @pytest.mark.parametrize(
        "base_url, expected",
        [
            ("http://localhost:8080", "ws://localhost:8080/ws/logs?pod=p1"),
            ("https://kontroler.example.com", "wss://kontroler.example.com/ws/logs?pod=p1"),
            ("https://kontroler.example.com/api", "wss://kontroler.example.com/ws/logs?pod=p1"),
        ],
    )
    def test_scheme_and_path(self, base_url, expected):
        assert build_ws_url(base_url, "p1") == expected

    def test_pod_is_query_encoded(self):
        assert build_ws_url("http://h", "a b&c") == "ws://h/ws/logs?pod=a+b%26c"


class TestStreamPodLogs:
    """Tests for AsyncKontroler.stream_pod_logs."""

    @pytest.mark.asyncio
    async def test_handshake_carries_session_cookie(self, async_client, connect):
        """Test the upgrade request targets the pod and sends the cookie."""
        connect.return_value = FakeWebSocket([], drop=False)

        stream = await async_client.stream_pod_logs(POD_UID)
        await stream.aclose()

        connect.assert_awaited_once_with(
            f"ws://kontroler.test/ws/logs?pod={POD_UID}",
            additional_headers={"Cookie": f"{COOKIE_NAME}=token-1"},
            open_timeout=45.0,
            close_timeout=5.0,
        )

    @pytest.mark.asyncio
    async def test_frames_then_drop(self, async_client, connect):
        """Test each frame is one chunk and a drop is one StreamError."""
        ws = FakeWebSocket(["line 1\n", "line 2\n"], drop=True)
        connect.return_value = ws

        stream = await async_client.stream_pod_logs(POD_UID)
        events = [event async for event in stream.events()]

        assert [e.data for e in events[:-1]] == ["line 1\n", "line 2\n"]
        assert events[-1].type == LogEventType.ERROR
        assert isinstance(events[-1].error, StreamError)
        assert [e.is_terminal for e in events].count(True) == 1
        assert ws.close_calls >= 1

    @pytest.mark.asyncio
    async def test_close_ends_without_error(self, async_client, connect):
        """Test closing an idle live stream produces no error."""
        ws = FakeWebSocket(["first\n"], drop=False)
        connect.return_value = ws

        stream = await async_client.stream_pod_logs(POD_UID)
        first = await stream.__anext__()
        await stream.aclose()

        assert first == "first\n"
        assert stream.done
        assert stream.error is None
        assert ws.close_calls >= 1

    @pytest.mark.asyncio
    async def test_cancel_event_releases_idle_stream(self, async_client, connect):
        """Test setting the token ends a quiet stream and closes the socket."""
        ws = FakeWebSocket(["first\n"], drop=False)
        connect.return_value = ws
        cancel = asyncio.Event()

        stream = await async_client.stream_pod_logs(POD_UID, cancel_event=cancel)
        first = await stream.__anext__()
        cancel.set()
        rest = await asyncio.wait_for(collect(stream), timeout=2)

        assert first == "first\n"
        assert rest == []
        assert stream.error is None
        assert ws.close_calls >= 1

    @pytest.mark.asyncio
    async def test_binary_frames_are_decoded(self, async_client, connect):
        """Test binary frames are delivered as text."""
        connect.return_value = FakeWebSocket([b"bin\xff"], drop=True)

        stream = await async_client.stream_pod_logs(POD_UID)
        chunks = [chunk async for chunk in stream]

        assert chunks == ["bin\ufffd"]

    @pytest.mark.asyncio
    async def test_requires_login(self, connect):
        """Test a client without a session cookie never dials."""
        client = AsyncKontroler(
            url=BASE_URL,
            username=USERNAME,
            password=PASSWORD,
            auth_cookie_name=COOKIE_NAME,
        )
        try:
            with pytest.raises(AuthenticationError, match="no authentication cookie"):
                await client.stream_pod_logs(POD_UID)
        finally:
            await client.close()

        connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_handshake(self, async_client, connect):
        """Test a 401 upgrade response is an AuthenticationError."""
        response = Response(401, "Unauthorized", Headers(), b"")
        connect.side_effect = websockets.exceptions.InvalidStatus(response)

        with pytest.raises(AuthenticationError) as exc_info:
            await async_client.stream_pod_logs(POD_UID)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unreachable_server(self, async_client, connect):
        """Test network failures while dialing are ConnectError."""
        connect.side_effect = OSError("connection refused")

        with pytest.raises(ConnectError, match="connection refused"):
            await async_client.stream_pod_logs(POD_UID)
