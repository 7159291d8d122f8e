"""Shared fixtures for Kontroler SDK tests."""

import pytest
import pytest_asyncio

from kontroler_sdk import AsyncKontroler, Kontroler
from tests.helpers import BASE_URL, COOKIE_NAME, PASSWORD, USERNAME, add_login


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep KONTROLER_* variables from the developer's shell out of tests."""
    for name in (
        "KONTROLER_URL",
        "KONTROLER_USERNAME",
        "KONTROLER_PASSWORD",
        "KONTROLER_AUTH_COOKIE_NAME",
        "KONTROLER_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def client(httpx_mock):
    """Create a logged-in test client."""
    add_login(httpx_mock)
    client = Kontroler(
        url=BASE_URL,
        username=USERNAME,
        password=PASSWORD,
        auth_cookie_name=COOKIE_NAME,
    )
    yield client
    client.close()


@pytest_asyncio.fixture
async def async_client(httpx_mock):
    """Create a logged-in async test client."""
    add_login(httpx_mock)
    async with AsyncKontroler(
        url=BASE_URL,
        username=USERNAME,
        password=PASSWORD,
        auth_cookie_name=COOKIE_NAME,
    ) as client:
        yield client
