"""DAG command for submitting workflow definitions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from kontroler_sdk import (
    PVC,
    Dag,
    DagParameterSpec,
    KontrolerError,
    TaskRef,
    TaskSpec,
    Webhook,
    Workspace,
)

from kontroler_cli.main import state
from kontroler_cli.output import console, error_console

app = typer.Typer(help="Manage DAG definitions.")


def _parse_task(data: dict[str, Any]) -> TaskSpec:
    task_ref = data.get("taskRef")
    return TaskSpec(
        name=data["name"],
        image=data.get("image", ""),
        command=data.get("command"),
        args=data.get("args"),
        script=data.get("script"),
        run_after=data.get("runAfter"),
        backoff_limit=data.get("backoffLimit", 0),
        retry_codes=data.get("retryCodes"),
        parameters=data.get("parameters"),
        pod_template=data.get("podTemplate"),
        task_ref=TaskRef(task_ref["name"], int(task_ref["version"])) if task_ref else None,
    )


def dag_from_dict(data: dict[str, Any]) -> Dag:
    """Build a Dag from its camelCase JSON/YAML form."""
    webhook = data.get("webhook") or {}
    workspace = data.get("workspace")
    pvc = (workspace or {}).get("pvc") or {}
    return Dag(
        name=data["name"],
        tasks=[_parse_task(t) for t in data.get("tasks") or []],
        namespace=data.get("namespace", "default"),
        schedule=data.get("schedule"),
        parameters=[
            DagParameterSpec(
                name=p["name"],
                value=str(p.get("value", "")),
                is_secret=bool(p.get("isSecret", False)),
            )
            for p in data.get("parameters") or []
        ]
        or None,
        webhook=Webhook(
            url=webhook.get("url", ""),
            verify_ssl=bool(webhook.get("verifySSL", True)),
        ),
        workspace=(
            Workspace(
                enabled=bool(workspace.get("enable", False)),
                pvc=PVC(
                    access_modes=list(pvc.get("accessModes") or []),
                    selector=pvc.get("selector"),
                    resources=pvc.get("resources"),
                    storage_class_name=pvc.get("storageClassName"),
                    volume_mode=pvc.get("volumeMode"),
                ),
            )
            if workspace
            else None
        ),
    )


def load_dag_file(path: Path) -> Dag:
    """Read a DAG definition from a YAML or JSON file."""
    text = path.read_text()
    if path.suffix == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a DAG mapping")
    return dag_from_dict(data)


@app.command("create")
def create_dag(
    file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            dir_okay=False,
            readable=True,
            help="DAG definition (YAML or JSON).",
        ),
    ],
) -> None:
    """Create a DAG from a definition file.

    The file uses the server's field names (runAfter, backoffLimit, ...).

    Examples:

        kontroler dag create etl.yaml

        kontroler dag create etl.json
    """
    try:
        dag = load_dag_file(file)
    except (KeyError, TypeError, ValueError, yaml.YAMLError) as e:
        error_console.print(f"[red]Error:[/red] Invalid DAG file {file}: {e}")
        raise typer.Exit(code=1) from e

    try:
        state.client.create_dag(dag)
    except KontrolerError as e:
        error_console.print(f"[red]Error:[/red] Failed to create DAG: {e}")
        raise typer.Exit(code=1) from e

    console.print(f"DAG created: {dag.name} ({len(dag.tasks)} tasks)")
