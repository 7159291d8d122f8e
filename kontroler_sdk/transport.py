"""Session-cookie authentication with transparent re-login.

:class:`SessionAuth` is installed as the ``auth`` of the SDK's httpx
clients, so it sees every outbound request before it is sent and every
response after it is received. It attaches the session cookie and, when
the server answers ``401 Unauthorized``, logs in again and resends the
request exactly once.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import AsyncGenerator, Generator

import httpx
import structlog

from .exceptions import HTTPStatusError, KontrolerError
from .session import SessionCredential, SessionManager

logger = structlog.wrap_logger(logging.getLogger(__name__))


class SessionAuth(httpx.Auth):
    """httpx auth flow holding the shared session credential.

    Per request the flow is a small state machine::

        sent -> ok
        sent -> unauthorized -> re-login -> resent -> ok | unauthorized

    The ``retried`` marker lives in the request's own flow, so a second
    ``401`` is handed back to the caller instead of triggering another
    login.

    The credential is the only state shared between requests. Reads
    (attach to a request) and writes (after re-login) are serialized by a
    ``threading.RLock`` in the sync flow and an ``asyncio.Lock`` in the
    async flow.
    """

    def __init__(
        self,
        session: SessionManager,
        credential: SessionCredential | None = None,
    ) -> None:
        self._session = session
        self._credential = credential
        self._sync_lock = threading.RLock()
        self._async_lock = asyncio.Lock()

    def set_credential(self, credential: SessionCredential) -> None:
        with self._sync_lock:
            self._credential = credential

    async def aset_credential(self, credential: SessionCredential) -> None:
        async with self._async_lock:
            self._credential = credential

    def cookie_header(self) -> str | None:
        """Current credential as a ``Cookie`` header value, if logged in."""
        with self._sync_lock:
            return self._credential.header_value() if self._credential else None

    async def acookie_header(self) -> str | None:
        async with self._async_lock:
            return self._credential.header_value() if self._credential else None

    def _attach(self, request: httpx.Request) -> None:
        if self._credential is not None:
            request.headers["Cookie"] = self._credential.header_value()

    def _refreshed_credential(
        self, unauthorized: httpx.Response, login_response: httpx.Response
    ) -> SessionCredential:
        """Extract the new credential, or surface the original 401."""
        try:
            credential = self._session.credential_from_response(login_response)
        except KontrolerError as e:
            logger.warning(
                "session_relogin_failed",
                url=str(unauthorized.request.url),
                error=str(e),
            )
            raise HTTPStatusError(
                "unauthorized",
                status_code=unauthorized.status_code,
                url=str(unauthorized.request.url),
            ) from e

        logger.info("session_relogin", url=str(unauthorized.request.url))
        return credential

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        retried = False
        while True:
            with self._sync_lock:
                self._attach(request)
            response = yield request

            if response.status_code != httpx.codes.UNAUTHORIZED or retried:
                return

            retried = True
            login_response = yield self._session.build_login_request()
            credential = self._refreshed_credential(response, login_response)
            with self._sync_lock:
                self._credential = credential

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        retried = False
        while True:
            async with self._async_lock:
                self._attach(request)
            response = yield request

            if response.status_code != httpx.codes.UNAUTHORIZED or retried:
                return

            retried = True
            login_response = yield self._session.build_login_request()
            credential = self._refreshed_credential(response, login_response)
            async with self._async_lock:
                self._credential = credential
