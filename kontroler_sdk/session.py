"""Login handshake for the Kontroler API.

Exchanges a username and password for the session cookie that every
other call needs. The same request/extract pair serves the initial login
and every re-login performed by :class:`~kontroler_sdk.transport.SessionAuth`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
import structlog

from .exceptions import (
    AuthenticationError,
    ConnectError,
    HTTPStatusError,
    TimeoutException,
)

LOGIN_PATH = "/api/v1/auth/login"

logger = structlog.wrap_logger(logging.getLogger(__name__))


@dataclass(frozen=True)
class SessionCredential:
    """An authentication cookie returned by the login endpoint."""

    name: str
    value: str = ""

    def header_value(self) -> str:
        """Render as a ``Cookie`` header value."""
        return f"{self.name}={self.value}"

    def __repr__(self) -> str:
        return f"SessionCredential(name={self.name!r}, value='***')"


class SessionManager:
    """Builds login requests and extracts the session cookie from responses."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        cookie_name: str,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.cookie_name = cookie_name

    @property
    def login_url(self) -> str:
        return f"{self.base_url}{LOGIN_PATH}"

    def build_login_request(self) -> httpx.Request:
        """Build the login request.

        Built as a bare request so it can be yielded from an auth flow as
        well as sent directly.
        """
        return httpx.Request(
            "POST",
            self.login_url,
            json={"username": self.username, "password": self.password},
        )

    def credential_from_response(self, response: httpx.Response) -> SessionCredential:
        """Extract the configured session cookie from a login response.

        Raises:
            AuthenticationError: If the login was rejected or the cookie is absent.
            HTTPStatusError: If the login endpoint returned another non-2xx status.
        """
        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(
                f"login rejected for user {self.username}", status_code=status
            )
        if not response.is_success:
            raise HTTPStatusError(
                "login failed", status_code=status, url=str(response.url)
            )

        value = response.cookies.get(self.cookie_name)
        if value is None:
            raise AuthenticationError(f"{self.cookie_name} cookie not found")
        return SessionCredential(name=self.cookie_name, value=value)

    def login(self, client: httpx.Client) -> SessionCredential:
        """Log in with a synchronous client.

        ``auth=None`` keeps the request out of the client's own auth flow.
        """
        try:
            response = client.send(self.build_login_request(), auth=None)
        except httpx.ConnectError as e:
            raise ConnectError(f"Failed to connect: {e}") from e
        except httpx.TimeoutException as e:
            raise TimeoutException(f"Request timed out: {e}") from e

        credential = self.credential_from_response(response)
        logger.debug("session_login", user=self.username, url=self.login_url)
        return credential

    async def alogin(self, client: httpx.AsyncClient) -> SessionCredential:
        """Log in with an asynchronous client."""
        try:
            response = await client.send(self.build_login_request(), auth=None)
        except httpx.ConnectError as e:
            raise ConnectError(f"Failed to connect: {e}") from e
        except httpx.TimeoutException as e:
            raise TimeoutException(f"Request timed out: {e}") from e

        credential = self.credential_from_response(response)
        logger.debug("session_login", user=self.username, url=self.login_url)
        return credential
