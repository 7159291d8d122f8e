"""Raw pod logs over HTTP byte-range requests.

``GET /api/v1/logs/run/{run_id}/pod/{pod_name}`` serves a pod's stored
log. With ``Range: bytes=<offset>-`` the server answers:

- 206 with the bytes from ``offset`` and ``Content-Range: <start>-<end>/<total>``
- 200 with the full body (no range, or a server ignoring it)
- 204 when nothing past ``offset`` has been written yet

:func:`pull_raw_logs` drives that endpoint in a loop, advancing a byte
cursor, to produce the same :class:`LogStream` as the live WebSocket
stream.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterator

import httpx
import structlog

from .exceptions import (
    CancellationError,
    ContentRangeError,
    SerializationError,
    StreamError,
)
from .streaming import LogStream

if TYPE_CHECKING:
    from .client import AsyncKontroler

RAW_LOGS_PATH = "/api/v1/logs/run/{run_id}/pod/{pod_name}"
RAW_LOG_POLL_INTERVAL = 1.0  # seconds between polls while no content is available
RAW_LOG_READ_SIZE = 32 * 1024

# Byte offsets address the stored log, so the body must not be compressed
RAW_LOG_HEADERS = {"Accept-Encoding": "identity"}

logger = structlog.wrap_logger(logging.getLogger(__name__))


def parse_content_range(value: str) -> int:
    """Return the total size from a ``Content-Range`` header.

    Accepts ``<start>-<end>/<total>`` with or without the ``bytes`` unit.

    Raises:
        ContentRangeError: If the header has no numeric total.
    """
    parts = value.split("/")
    if len(parts) != 2:
        raise ContentRangeError(f"invalid Content-Range format: {value!r}")
    try:
        total = int(parts[1].strip())
    except ValueError as e:
        raise ContentRangeError(f"invalid Content-Range total: {value!r}") from e
    if total < 0:
        raise ContentRangeError(f"invalid Content-Range total: {value!r}")
    return total


def range_headers(byte_range: str | None) -> dict[str, str]:
    """Request headers for a raw log read starting at ``byte_range``."""
    headers = dict(RAW_LOG_HEADERS)
    if byte_range is not None:
        headers["Range"] = f"bytes={byte_range}"
    return headers


def check_identity_encoding(response: httpx.Response) -> None:
    """Reject a body the server compressed despite ``Accept-Encoding: identity``.

    Raises:
        SerializationError: If ``Content-Encoding`` is anything but identity.
    """
    encoding = response.headers.get("Content-Encoding", "identity").strip().lower()
    if encoding != "identity":
        raise SerializationError(
            f"unexpected Content-Encoding {encoding!r} from {response.request.url}"
        )


def total_size(response: httpx.Response) -> int | None:
    """Total log size reported by a 200/206 response.

    Prefers the ``Content-Range`` total. A full response without it falls
    back to ``Content-Length``; None when neither header is present.
    """
    content_range = response.headers.get("Content-Range")
    if content_range:
        return parse_content_range(content_range)
    content_length = response.headers.get("Content-Length")
    if content_length is None:
        return None
    try:
        return int(content_length)
    except ValueError as e:
        raise ContentRangeError(f"invalid Content-Length: {content_length!r}") from e


class RawLogStatus(str, Enum):
    """Outcome of a single raw log request."""

    DATA = "data"
    NO_CONTENT = "no_content"


@dataclass
class RawLogs:
    """Result of one raw log request.

    With ``DATA`` status the body is still open; read it with
    ``iter_bytes``/``aiter_bytes`` (or ``read``/``aread``) and close it,
    or use the result as a (async) context manager.
    """

    status: RawLogStatus
    total_size: int | None = None
    response: httpx.Response | None = field(default=None, repr=False)

    @property
    def has_data(self) -> bool:
        return self.status == RawLogStatus.DATA

    def iter_bytes(self, chunk_size: int = RAW_LOG_READ_SIZE) -> Iterator[bytes]:
        if self.response is None:
            return
        yield from self.response.iter_raw(chunk_size)

    async def aiter_bytes(
        self, chunk_size: int = RAW_LOG_READ_SIZE
    ) -> AsyncIterator[bytes]:
        if self.response is None:
            return
        async for block in self.response.aiter_raw(chunk_size):
            yield block

    def read(self) -> bytes:
        return self.response.read() if self.response is not None else b""

    async def aread(self) -> bytes:
        return await self.response.aread() if self.response is not None else b""

    def close(self) -> None:
        if self.response is not None:
            self.response.close()

    async def aclose(self) -> None:
        if self.response is not None:
            await self.response.aclose()

    def __enter__(self) -> RawLogs:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    async def __aenter__(self) -> RawLogs:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


async def pull_raw_logs(
    client: AsyncKontroler, run_id: int, pod_name: str, stream: LogStream
) -> None:
    """Producer for a resumable log stream.

    Requests ``bytes=<cursor>-`` until the cursor reaches the reported
    total, backing off while the server has nothing new.
    """
    cursor = 0
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    while True:
        if stream.cancelled:
            raise CancellationError()

        raw = await client.get_raw_logs(run_id, pod_name, byte_range=f"{cursor}-")
        if not raw.has_data:
            await _wait_for_content(run_id, pod_name, cursor)
            continue

        start = cursor
        async with raw:
            async for block in raw.aiter_bytes(RAW_LOG_READ_SIZE):
                cursor += len(block)
                text = decoder.decode(block)
                if text:
                    await stream.emit(text)
                if stream.cancelled:
                    raise CancellationError()

        if raw.total_size is None:
            break
        if cursor > raw.total_size:
            raise StreamError(
                f"received {cursor} bytes of a {raw.total_size} byte log "
                f"for run {run_id} pod {pod_name}"
            )
        if cursor == raw.total_size:
            break
        if cursor == start:
            # Ranged response with an empty body: nothing new yet
            await _wait_for_content(run_id, pod_name, cursor)

    tail = decoder.decode(b"", final=True)
    if tail:
        await stream.emit(tail)


async def _wait_for_content(run_id: int, pod_name: str, cursor: int) -> None:
    logger.debug("raw_log_poll_wait", run_id=run_id, pod=pod_name, offset=cursor)
    await asyncio.sleep(RAW_LOG_POLL_INTERVAL)
