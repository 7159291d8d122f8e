"""Tests for the login handshake."""

import json

import httpx
import pytest

from kontroler_sdk import (
    AuthenticationError,
    ConnectError,
    HTTPStatusError,
    Kontroler,
    SessionCredential,
    SessionManager,
)
from tests.helpers import (
    BASE_URL,
    COOKIE_NAME,
    LOGIN_URL,
    PASSWORD,
    USERNAME,
    add_login,
)


@pytest.fixture
def session():
    return SessionManager(BASE_URL, USERNAME, PASSWORD, COOKIE_NAME)


class TestSessionManager:
    """Tests for SessionManager."""

    def test_login_returns_configured_cookie(self, session, httpx_mock):
        """Test that the named cookie is captured from the login response."""
        add_login(httpx_mock, token="abc123")

        with httpx.Client() as http:
            credential = session.login(http)

        assert credential == SessionCredential(name=COOKIE_NAME, value="abc123")
        assert credential.header_value() == f"{COOKIE_NAME}=abc123"

    def test_login_posts_json_credentials(self, session, httpx_mock):
        """Test login payload and endpoint."""
        add_login(httpx_mock)

        with httpx.Client() as http:
            session.login(http)

        request = httpx_mock.get_request()
        assert request.method == "POST"
        assert str(request.url) == LOGIN_URL
        assert json.loads(request.content) == {
            "username": USERNAME,
            "password": PASSWORD,
        }

    def test_missing_cookie_names_cookie_in_error(self, session, httpx_mock):
        """Test that a response without the cookie raises AuthenticationError."""
        add_login(httpx_mock, token=None)

        with httpx.Client() as http:
            with pytest.raises(AuthenticationError, match=COOKIE_NAME):
                session.login(http)

    def test_other_cookie_is_ignored(self, session, httpx_mock):
        """Test that only the configured cookie name counts."""
        httpx_mock.add_response(
            method="POST",
            url=LOGIN_URL,
            headers={"Set-Cookie": "other=value; Path=/"},
        )

        with httpx.Client() as http:
            with pytest.raises(AuthenticationError, match="cookie not found"):
                session.login(http)

    def test_rejected_login(self, session, httpx_mock):
        """Test that a 401 from the login endpoint is an AuthenticationError."""
        httpx_mock.add_response(method="POST", url=LOGIN_URL, status_code=401)

        with httpx.Client() as http:
            with pytest.raises(AuthenticationError) as exc_info:
                session.login(http)

        assert exc_info.value.status_code == 401

    def test_server_error_on_login(self, session, httpx_mock):
        """Test that other login failures keep their status code."""
        httpx_mock.add_response(method="POST", url=LOGIN_URL, status_code=503)

        with httpx.Client() as http:
            with pytest.raises(HTTPStatusError) as exc_info:
                session.login(http)

        assert exc_info.value.status_code == 503
        assert exc_info.value.url == LOGIN_URL

    def test_connection_failure_propagates(self, session, httpx_mock):
        """Test that transport errors are raised, not swallowed."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        with httpx.Client() as http:
            with pytest.raises(ConnectError, match="connection refused"):
                session.login(http)

    def test_login_is_repeatable(self, session, httpx_mock):
        """Test that the same manager serves initial login and re-login."""
        add_login(httpx_mock, token="first")
        add_login(httpx_mock, token="second")

        with httpx.Client() as http:
            first = session.login(http)
            second = session.login(http)

        assert first.value == "first"
        assert second.value == "second"

    @pytest.mark.asyncio
    async def test_async_login(self, session, httpx_mock):
        """Test login with an async client."""
        add_login(httpx_mock, token="async-token")

        async with httpx.AsyncClient() as http:
            credential = await session.alogin(http)

        assert credential.value == "async-token"

    def test_credential_repr_hides_value(self):
        """Test that the cookie value is not leaked in reprs."""
        credential = SessionCredential(name=COOKIE_NAME, value="s3cr3t")
        assert "s3cr3t" not in repr(credential)


class TestClientLogin:
    """Tests for login during client construction."""

    def test_client_construction_fails_without_cookie(self, httpx_mock):
        """Test that a missing cookie at construction names the cookie."""
        add_login(httpx_mock, token=None)

        with pytest.raises(AuthenticationError) as exc_info:
            Kontroler(
                url=BASE_URL,
                username=USERNAME,
                password=PASSWORD,
                auth_cookie_name=COOKIE_NAME,
            )

        assert COOKIE_NAME in str(exc_info.value)
