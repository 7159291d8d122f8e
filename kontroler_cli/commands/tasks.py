"""Task command for inspecting task runs."""

from __future__ import annotations

from typing import Annotated

import typer
from kontroler_sdk import KontrolerError

from kontroler_cli.main import state
from kontroler_cli.output import error_console, output_task_details

app = typer.Typer(help="Inspect task runs.")


@app.command("get")
def get_task(
    run_id: Annotated[
        int,
        typer.Argument(help="Run ID."),
    ],
    task_id: Annotated[
        int,
        typer.Argument(help="Task ID within the run."),
    ],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show a task run and its pods.

    Pod names and UIDs shown here are what the logs commands take.

    Examples:

        kontroler task get 42 7
    """
    try:
        task = state.client.get_task_details(run_id, task_id)
    except KontrolerError as e:
        error_console.print(f"[red]Error:[/red] Failed to get task: {e}")
        raise typer.Exit(code=1) from e

    output_task_details(task, as_json=as_json)
