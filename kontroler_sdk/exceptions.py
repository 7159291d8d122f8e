"""Exception classes for the Kontroler SDK.

Every error raised by the clients derives from KontrolerError. HTTP
failures carry the status code and request URL; session, decoding and
log stream failures each have their own subclass.
"""

from __future__ import annotations


class KontrolerError(Exception):
    """Base exception for all SDK errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code if applicable.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class ConnectError(KontrolerError):
    """Network or connection error."""

    def __init__(self, message: str = "Connection failed") -> None:
        super().__init__(message)


class TimeoutException(KontrolerError):
    """Request or operation timeout."""

    def __init__(self, message: str = "Operation timed out") -> None:
        super().__init__(message)


class AuthenticationError(KontrolerError):
    """Session credential missing or login rejected."""

    def __init__(
        self, message: str = "Authentication failed", status_code: int | None = None
    ) -> None:
        super().__init__(message, status_code=status_code)


class HTTPStatusError(KontrolerError):
    """Non-2xx response from the server.

    Attributes:
        url: URL of the request that failed.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message, status_code=status_code)
        self.url = url

    def __str__(self) -> str:
        return f"{self.url}: HTTP {self.status_code}: {self.message}"


class NotFoundError(HTTPStatusError):
    """Resource not found (404)."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message, status_code=404, url=url)


class ValidationError(KontrolerError):
    """Invalid DAG or task definition, detected before sending."""


class SerializationError(KontrolerError):
    """Response body or header could not be decoded."""


class ContentRangeError(SerializationError):
    """Malformed Content-Range header on a raw log response."""


class StreamError(KontrolerError):
    """Read failure after a log stream has started delivering."""


class CancellationError(KontrolerError):
    """Log stream terminated by the caller."""

    def __init__(self, message: str = "Log stream cancelled") -> None:
        super().__init__(message)
