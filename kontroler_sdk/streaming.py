"""Consumer side of the SDK's log streams.

Both the live (WebSocket) and the resumable (byte-range polling) streams
hand their output to a :class:`LogStream`, so callers can switch between
the two without changing how they consume logs.

A stream owns one background task (the producer) and a rendezvous queue
of size one: the producer blocks until the consumer takes each chunk, so
nothing is dropped and nothing piles up. The stream exposes two
channels:

- chunks, by iterating the stream (``async for chunk in stream``), and
- at most one terminal error, read from ``stream.error`` once iteration
  has ended.

``events()`` presents the same data as a tagged sequence of
:class:`LogEvent` values ending with exactly one ``ERROR`` or ``END``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable

import structlog

from .exceptions import KontrolerError, StreamError

logger = structlog.wrap_logger(logging.getLogger(__name__))

Producer = Callable[["LogStream"], Awaitable[None]]
Closer = Callable[[], Awaitable[Any]]


class LogEventType(str, Enum):
    """Kinds of items delivered by a log stream."""

    CHUNK = "chunk"
    ERROR = "error"
    END = "end"


@dataclass(frozen=True)
class LogEvent:
    """One item of a log stream: a chunk, the terminal error, or the end."""

    type: LogEventType
    data: str | None = None
    error: KontrolerError | None = None

    @property
    def is_terminal(self) -> bool:
        return self.type != LogEventType.CHUNK


class LogStream:
    """An unbounded, cancellable stream of log text chunks.

    Example:
        ```python
        async with await client.stream_raw_logs(run_id, pod_name) as stream:
            async for chunk in stream:
                print(chunk, end="")
        if stream.error:
            raise stream.error
        ```
    """

    def __init__(
        self, name: str, cancel_event: asyncio.Event | None = None
    ) -> None:
        """Initialize the stream.

        Args:
            name: Label used in log events (pod UID or run/pod pair).
            cancel_event: External cancellation token. Setting it stops the
                producer at its next loop head.
        """
        self.name = name
        self.cancel_event = cancel_event or asyncio.Event()
        self._queue: asyncio.Queue[LogEvent] = asyncio.Queue(maxsize=1)
        self._task: asyncio.Task[None] | None = None
        self._closers: list[Closer] = []
        self._terminal: LogEvent | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    @property
    def done(self) -> bool:
        """True once the terminal event has been consumed."""
        return self._terminal is not None

    @property
    def error(self) -> KontrolerError | None:
        """The terminal error, or None for a clean end or silent cancel."""
        return self._terminal.error if self._terminal else None

    # -- producer side -------------------------------------------------------

    def add_closer(self, closer: Closer) -> None:
        """Register a coroutine releasing a network resource on ``aclose()``."""
        self._closers.append(closer)

    def start(self, producer: Producer) -> LogStream:
        """Run ``producer(self)`` as the stream's background task."""
        if self._task is not None:
            raise RuntimeError(f"log stream {self.name} already started")
        self._task = asyncio.create_task(self._run(producer))
        return self

    async def emit(self, chunk: str) -> None:
        """Hand one chunk to the consumer, waiting until it is taken."""
        await self._queue.put(LogEvent(LogEventType.CHUNK, data=chunk))

    async def _run(self, producer: Producer) -> None:
        logger.debug("log_stream_started", stream=self.name)
        terminal = LogEvent(LogEventType.END)
        try:
            await producer(self)
        except KontrolerError as e:
            terminal = LogEvent(LogEventType.ERROR, error=e)
        except Exception as e:
            error = StreamError(f"log stream {self.name} failed: {e}")
            error.__cause__ = e
            terminal = LogEvent(LogEventType.ERROR, error=error)

        if terminal.error is not None and not self.cancelled:
            logger.warning(
                "log_stream_failed", stream=self.name, error=str(terminal.error)
            )
        logger.debug(
            "log_stream_finished",
            stream=self.name,
            outcome=terminal.type.value,
            cancelled=self.cancelled,
        )
        await self._queue.put(terminal)

    # -- consumer side -------------------------------------------------------

    async def next_event(self) -> LogEvent:
        """Wait for the next event; returns the terminal event repeatedly."""
        if self._terminal is not None:
            return self._terminal
        event = await self._queue.get()
        if event.is_terminal:
            self._terminal = event
        return event

    def __aiter__(self) -> LogStream:
        return self

    async def __anext__(self) -> str:
        event = await self.next_event()
        if event.type == LogEventType.CHUNK:
            assert event.data is not None
            return event.data
        raise StopAsyncIteration

    async def events(self) -> AsyncIterator[LogEvent]:
        """Iterate chunks and the terminal event as tagged values."""
        while True:
            event = await self.next_event()
            yield event
            if event.is_terminal:
                return

    def cancel(self) -> None:
        """Signal the producer to stop at its next loop head."""
        self.cancel_event.set()

    async def aclose(self) -> None:
        """Cancel, release network resources and wait for the producer.

        Pending chunks are discarded so a producer blocked on the handoff
        can reach its cancellation check.
        """
        self.cancel()
        for closer in self._closers:
            await closer()
        if self._task is None:
            return
        while self._terminal is None:
            await self.next_event()
        await self._task

    async def __aenter__(self) -> LogStream:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
