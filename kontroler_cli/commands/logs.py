"""Logs commands for streaming pod output."""

from __future__ import annotations

import asyncio
from typing import Annotated, Awaitable, Callable

import typer
from kontroler_sdk import AsyncKontroler, KontrolerError, LogStream

from kontroler_cli.main import state
from kontroler_cli.output import error_console, write_chunk

app = typer.Typer(help="Stream pod logs.")

StreamOpener = Callable[[AsyncKontroler], Awaitable[LogStream]]


async def _consume(open_stream: StreamOpener) -> KontrolerError | None:
    """Log in, open a stream and print it; returns the stream's terminal error."""
    async with AsyncKontroler(config=state.client_config()) as client:
        stream = await open_stream(client)
        async with stream:
            async for chunk in stream:
                write_chunk(chunk)
        return stream.error


def _run(open_stream: StreamOpener) -> None:
    try:
        error = asyncio.run(_consume(open_stream))
    except KeyboardInterrupt:
        # Graceful shutdown
        error_console.print("\n[Stopped]")
        return
    except KontrolerError as e:
        error_console.print(f"[red]Error:[/red] Failed to open log stream: {e}")
        raise typer.Exit(code=1) from e

    if error is not None:
        error_console.print(f"\n[red]Error:[/red] Log stream ended: {error}")
        raise typer.Exit(code=1)


@app.command("live")
def live_logs(
    pod_uid: Annotated[
        str,
        typer.Argument(help="UID of the pod to follow."),
    ],
) -> None:
    """Follow a running pod's log over WebSocket.

    Runs until the server closes the connection or Ctrl+C.

    Examples:

        kontroler logs live 0f6a3c1e-9b4d-4c55-8a1e-2d7b8e5f4a10
    """
    _run(lambda client: client.stream_pod_logs(pod_uid))


@app.command("raw")
def raw_logs(
    run_id: Annotated[
        int,
        typer.Argument(help="Run ID."),
    ],
    pod_name: Annotated[
        str,
        typer.Argument(help="Name of the pod."),
    ],
) -> None:
    """Print a pod's stored log, polling until all of it has been written.

    Uses byte-range requests, so it keeps working across reconnects.

    Examples:

        kontroler logs raw 42 etl-nightly-extract-7f9c
    """
    _run(lambda client: client.stream_raw_logs(run_id, pod_name))
