"""Shared constants and fakes for Kontroler SDK tests."""

from __future__ import annotations

import asyncio

from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

BASE_URL = "http://kontroler.test"
COOKIE_NAME = "kontroler_session"
LOGIN_URL = f"{BASE_URL}/api/v1/auth/login"
USERNAME = "admin"
PASSWORD = "secret"


def raw_logs_url(run_id: int, pod_name: str) -> str:
    return f"{BASE_URL}/api/v1/logs/run/{run_id}/pod/{pod_name}"


def add_login(httpx_mock, token: str | None = "token-1", status_code: int = 200) -> None:
    """Register a login response setting the session cookie (or not)."""
    headers = {"Set-Cookie": f"{COOKIE_NAME}={token}; Path=/"} if token else {}
    httpx_mock.add_response(
        method="POST",
        url=LOGIN_URL,
        status_code=status_code,
        headers=headers,
        json={"status": "ok"},
    )


def login_requests(httpx_mock) -> list:
    return [r for r in httpx_mock.get_requests() if str(r.url) == LOGIN_URL]


class FakeWebSocket:
    """Stands in for a websockets client connection.

    Serves ``frames`` in order. Afterwards either fails like a dropped
    connection (``drop=True``) or blocks until ``close()`` is called.
    """

    def __init__(self, frames: list[str | bytes], drop: bool = True) -> None:
        self.frames = list(frames)
        self.drop = drop
        self.close_calls = 0
        self._closed = asyncio.Event()

    async def recv(self) -> str | bytes:
        if self.frames:
            return self.frames.pop(0)
        if self.drop:
            raise ConnectionClosedError(None, None)
        await self._closed.wait()
        raise ConnectionClosedOK(None, None)

    async def close(self) -> None:
        self.close_calls += 1
        self._closed.set()
