"""Output formatting for Kontroler CLI.

Provides consistent output formatting for both human-readable and
machine-readable (JSON) output modes.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from kontroler_sdk import RunStatus
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from kontroler_sdk import DagRun, DagRunAll, TaskRunDetails

# Console instances for stdout and stderr
console = Console()
error_console = Console(stderr=True)

STATUS_STYLES = {
    RunStatus.SUCCESS.value: "green",
    RunStatus.RUNNING.value: "yellow",
    RunStatus.PENDING.value: "dim",
    RunStatus.FAILED.value: "red",
}


def _styled_status(status: str) -> str:
    style = STATUS_STYLES.get(status.lower(), "")
    return f"[{style}]{status}[/]" if style else status


def output_dag_run(run: DagRunAll, as_json: bool = False) -> None:
    """Display a run overview with its task table.

    Args:
        run: Run overview.
        as_json: Output as JSON if True.
    """
    if as_json:
        console.print_json(data=asdict(run))
        return

    console.print(f"Run:       {run.id}")
    if run.run_name:
        console.print(f"Name:      {run.run_name}")
    console.print(f"DAG:       {run.dag_id}")
    console.print(f"Status:    {_styled_status(run.status)}")
    console.print(f"Succeeded: {run.successful_count}")
    console.print(f"Failed:    {run.failed_count}")

    if not run.tasks:
        return

    table = Table()
    table.add_column("Task ID", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Runs after")

    parents: dict[str, list[str]] = {}
    for parent, children in run.connections.items():
        for child in children:
            parents.setdefault(child, []).append(parent)

    for task in run.tasks:
        table.add_row(
            str(task.id),
            task.name,
            _styled_status(task.status),
            ", ".join(parents.get(task.name, [])) or "-",
        )

    console.print(table)


def output_dag_run_details(run: DagRun, as_json: bool = False) -> None:
    """Display a run definition."""
    if as_json:
        console.print_json(data=asdict(run))
        return

    console.print(f"DAG:       {run.name}")
    console.print(f"Run name:  {run.run_name}")
    console.print(f"Namespace: {run.namespace}")
    for key, value in sorted(run.parameters.items()):
        console.print(f"  {key}={value}")


def output_task_details(task: TaskRunDetails, as_json: bool = False) -> None:
    """Display a task run and its pods.

    Args:
        task: Task run details.
        as_json: Output as JSON if True.
    """
    if as_json:
        console.print_json(data=asdict(task))
        return

    console.print(f"Task:     {task.id} ({task.name})")
    console.print(f"Status:   {_styled_status(task.status)}")
    if task.image:
        console.print(f"Image:    {task.image}")
    console.print(f"Attempts: {task.attempts}")

    if not task.pods:
        return

    table = Table()
    table.add_column("Pod", style="cyan")
    table.add_column("UID")
    table.add_column("Status")
    table.add_column("Exit code")

    for pod in task.pods:
        table.add_row(
            pod.name,
            pod.pod_uid,
            _styled_status(pod.status or "-"),
            "-" if pod.exit_code is None else str(pod.exit_code),
        )

    console.print(table)


def write_chunk(chunk: str) -> None:
    """Write a log chunk verbatim, without markup or highlighting."""
    console.out(chunk, end="", highlight=False)
    console.file.flush()
