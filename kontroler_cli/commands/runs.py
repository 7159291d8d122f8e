"""Run commands for starting and inspecting DAG runs."""

from __future__ import annotations

from typing import Annotated

import typer
from kontroler_sdk import DagRunCreate, KontrolerError

from kontroler_cli.main import state
from kontroler_cli.output import (
    console,
    error_console,
    output_dag_run,
    output_dag_run_details,
)

app = typer.Typer(help="Start and inspect DAG runs.")


def parse_params(params: list[str]) -> dict[str, str]:
    """Turn KEY=VALUE options into a parameter mapping."""
    result: dict[str, str] = {}
    for item in params:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {item!r}")
        result[key] = value
    return result


@app.command("create")
def create_run(
    dag_name: Annotated[
        str,
        typer.Argument(help="Name of the DAG to run."),
    ],
    run_name: Annotated[
        str,
        typer.Option("--run-name", help="Name for this run."),
    ],
    namespace: Annotated[
        str,
        typer.Option(help="Kubernetes namespace."),
    ] = "default",
    param: Annotated[
        list[str] | None,
        typer.Option("--param", help="Run parameter as KEY=VALUE (repeatable)."),
    ] = None,
) -> None:
    """Start a run of a DAG.

    Examples:

        kontroler run create etl --run-name etl-nightly

        kontroler run create etl --run-name etl-backfill --param date=2024-01-01
    """
    run = DagRunCreate(
        name=dag_name,
        run_name=run_name,
        namespace=namespace,
        parameters=parse_params(param or []),
    )

    try:
        result = state.client.create_dag_run(run)
    except KontrolerError as e:
        error_console.print(f"[red]Error:[/red] Failed to create run: {e}")
        raise typer.Exit(code=1) from e

    console.print(f"Run created: {result.run_id}")


@app.command("get")
def get_run(
    run_id: Annotated[
        int,
        typer.Argument(help="Run ID."),
    ],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show run status and its tasks.

    Examples:

        kontroler run get 42

        kontroler run get 42 --json
    """
    try:
        run = state.client.get_dag_run(run_id)
    except KontrolerError as e:
        error_console.print(f"[red]Error:[/red] Failed to get run: {e}")
        raise typer.Exit(code=1) from e

    output_dag_run(run, as_json=as_json)


@app.command("details")
def get_run_details(
    run_id: Annotated[
        int,
        typer.Argument(help="Run ID."),
    ],
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show the definition a run was started with."""
    try:
        run = state.client.get_dag_run_details(run_id)
    except KontrolerError as e:
        error_console.print(f"[red]Error:[/red] Failed to get run details: {e}")
        raise typer.Exit(code=1) from e

    output_dag_run_details(run, as_json=as_json)
