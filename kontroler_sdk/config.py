"""Client configuration.

Values come from constructor arguments or ``KONTROLER_*`` environment
variables (``KONTROLER_URL``, ``KONTROLER_USERNAME``, ``KONTROLER_PASSWORD``,
``KONTROLER_AUTH_COOKIE_NAME``, ``KONTROLER_TIMEOUT``).
"""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ValidationError

DEFAULT_URL = "http://localhost:8080"


class ClientConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KONTROLER_",
        extra="ignore",
    )

    url: str = Field(
        default=DEFAULT_URL,
        description="Base URL of the Kontroler API, e.g. https://kontroler.example.com",
    )
    username: str = Field(description="Login username")
    password: str = Field(description="Login password", repr=False)
    auth_cookie_name: str = Field(
        description="Name of the session cookie set by the login endpoint",
    )
    timeout: float | None = Field(
        default=None,
        description="Per-request timeout in seconds; None disables it",
    )

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("timeout must be positive")
        return value


def resolve_config(config: ClientConfig | None = None, **overrides: Any) -> ClientConfig:
    """Merge explicit keyword values over a config (or the environment).

    Keyword values that are None are ignored.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        if config is None:
            return ClientConfig(**values)
        if not values:
            return config
        return ClientConfig(**{**config.model_dump(), **values})
    except pydantic.ValidationError as e:
        raise ValidationError(f"invalid client configuration: {e}") from e
