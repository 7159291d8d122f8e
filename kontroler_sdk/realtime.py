"""Live pod log streaming over WebSocket.

The server pushes a pod's log output on ``/ws/logs?pod=<uid>``. Each
inbound frame becomes exactly one chunk of a :class:`LogStream`; frames
are neither buffered nor reassembled.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlencode, urlsplit, urlunsplit

import structlog
import websockets

from .exceptions import AuthenticationError, ConnectError, StreamError
from .streaming import LogStream

WS_LOGS_PATH = "/ws/logs"
WS_HANDSHAKE_TIMEOUT = 45.0
WS_CLOSE_TIMEOUT = 5.0

logger = structlog.wrap_logger(logging.getLogger(__name__))


def build_ws_url(base_url: str, pod_uid: str) -> str:
    """Build the push log URL for a pod.

    Converts the API scheme to its WebSocket counterpart (http -> ws,
    https -> wss) and replaces path and query.
    """
    parts = urlsplit(base_url)
    scheme = {"http": "ws", "https": "wss"}.get(parts.scheme, parts.scheme)
    return urlunsplit(
        (scheme, parts.netloc, WS_LOGS_PATH, urlencode({"pod": pod_uid}), "")
    )


async def open_live_log_stream(
    base_url: str,
    cookie_header: str | None,
    pod_uid: str,
    cancel_event: asyncio.Event | None = None,
) -> LogStream:
    """Connect to the push log endpoint and start relaying frames.

    Args:
        base_url: HTTP(S) base URL of the Kontroler API.
        cookie_header: Session cookie sent with the upgrade request.
        pod_uid: UID of the pod whose logs to follow.
        cancel_event: Optional external cancellation token.

    Returns:
        A started LogStream.

    Raises:
        AuthenticationError: If there is no session cookie, or the server
            rejects it during the handshake.
        ConnectError: If the connection or handshake fails.
    """
    if not cookie_header:
        raise AuthenticationError("no authentication cookie found")

    url = build_ws_url(base_url, pod_uid)
    try:
        ws = await websockets.connect(
            url,
            additional_headers={"Cookie": cookie_header},
            open_timeout=WS_HANDSHAKE_TIMEOUT,
            close_timeout=WS_CLOSE_TIMEOUT,
        )
    except websockets.exceptions.InvalidStatus as e:
        status = e.response.status_code
        if status in (401, 403):
            raise AuthenticationError(
                f"websocket handshake rejected for pod {pod_uid}", status_code=status
            ) from e
        raise ConnectError(f"connecting to websocket: {e}") from e
    except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
        raise ConnectError(f"connecting to websocket: {e}") from e

    logger.debug("live_log_connected", pod=pod_uid, url=url)
    stream = LogStream(f"pod:{pod_uid}", cancel_event=cancel_event)
    stream.add_closer(ws.close)
    return stream.start(lambda s: _relay_frames(ws, s))


async def _relay_frames(ws, stream: LogStream) -> None:
    """Publish each inbound frame as one chunk until cancel or read failure.

    Each read races the cancellation token, so setting it releases a
    stream whose pod has gone quiet.
    """
    cancelled = asyncio.ensure_future(stream.cancel_event.wait())
    try:
        while not stream.cancelled:
            receive = asyncio.ensure_future(ws.recv())
            await asyncio.wait(
                {receive, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
            if not receive.done():
                receive.cancel()
                logger.debug("live_log_cancelled", stream=stream.name)
                return

            try:
                frame = receive.result()
            except websockets.exceptions.ConnectionClosed as e:
                if stream.cancelled:
                    return
                raise StreamError(f"reading websocket message: {e}") from e

            if isinstance(frame, bytes):
                frame = frame.decode("utf-8", errors="replace")
            await stream.emit(frame)
    finally:
        cancelled.cancel()
        await ws.close()
