"""Type definitions for the Kontroler SDK.

All types use dataclasses for simplicity and automatic __eq__, __repr__.
Request types expose ``to_dict()`` producing the camelCase JSON the
server expects; empty optional fields are omitted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ValidationError

# Kubernetes DNS-1123 label, shared by DAG and task names
NAME_PATTERN = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")
NAME_MAX_LENGTH = 63


def is_valid_name(name: str) -> bool:
    """Check a DAG or task name against the server's naming rule."""
    return 1 <= len(name) <= NAME_MAX_LENGTH and bool(NAME_PATTERN.match(name))


class RunStatus(str, Enum):
    """Status of a DAG run or task run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


# -----------------------------------------------------------------------------
# DAG Definition Types
# -----------------------------------------------------------------------------


@dataclass
class DagParameterSpec:
    """A DAG-level parameter, optionally backed by a secret."""

    name: str
    value: str = ""
    is_secret: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "isSecret": self.is_secret, "value": self.value}


@dataclass
class Webhook:
    """Endpoint notified on run status changes."""

    url: str = ""
    verify_ssl: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "verifySSL": self.verify_ssl}


@dataclass
class PVC:
    """Persistent volume claim template for a DAG workspace.

    ``selector`` and ``resources`` are passed through as Kubernetes
    LabelSelector / ResourceRequirements dictionaries.
    """

    access_modes: list[str] = field(default_factory=list)
    selector: dict[str, Any] | None = None
    resources: dict[str, Any] | None = None
    storage_class_name: str | None = None
    volume_mode: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"accessModes": list(self.access_modes)}
        if self.selector is not None:
            data["selector"] = self.selector
        if self.resources:
            data["resources"] = self.resources
        if self.storage_class_name is not None:
            data["storageClassName"] = self.storage_class_name
        if self.volume_mode is not None:
            data["volumeMode"] = self.volume_mode
        return data


@dataclass
class Workspace:
    """Shared volume mounted into every task of a run."""

    enabled: bool = False
    pvc: PVC = field(default_factory=PVC)

    def to_dict(self) -> dict[str, Any]:
        return {"enable": self.enabled, "pvc": self.pvc.to_dict()}


@dataclass
class TaskRef:
    """Reference to a reusable task definition stored on the server."""

    name: str
    version: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


@dataclass
class TaskSpec:
    """A single task (node) of a DAG."""

    name: str
    image: str = ""
    command: list[str] | None = None
    args: list[str] | None = None
    script: str | None = None
    run_after: list[str] | None = None
    backoff_limit: int = 0
    retry_codes: list[int] | None = None
    parameters: list[str] | None = None
    pod_template: str | None = None
    task_ref: TaskRef | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "image": self.image,
            "backoffLimit": self.backoff_limit,
        }
        if self.command:
            data["command"] = list(self.command)
        if self.args:
            data["args"] = list(self.args)
        if self.script:
            data["script"] = self.script
        if self.run_after:
            data["runAfter"] = list(self.run_after)
        if self.retry_codes:
            data["retryCodes"] = list(self.retry_codes)
        if self.parameters:
            data["parameters"] = list(self.parameters)
        if self.pod_template:
            data["podTemplate"] = self.pod_template
        if self.task_ref is not None:
            data["taskRef"] = self.task_ref.to_dict()
        return data


@dataclass
class Dag:
    """A workflow definition submitted with ``create_dag``."""

    name: str
    tasks: list[TaskSpec] = field(default_factory=list)
    namespace: str = "default"
    schedule: str | None = None
    parameters: list[DagParameterSpec] | None = None
    webhook: Webhook = field(default_factory=Webhook)
    workspace: Workspace | None = None

    def validate(self) -> None:
        """Check DAG and task names.

        Raises:
            ValidationError: If the DAG name or any task name is invalid.
        """
        if not is_valid_name(self.name):
            raise ValidationError(f"invalid DAG name: {self.name}")
        for task in self.tasks:
            if not is_valid_name(task.name):
                raise ValidationError(f"invalid task name: {task.name}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "tasks": [task.to_dict() for task in self.tasks],
            "namespace": self.namespace,
            "webhook": self.webhook.to_dict(),
        }
        if self.schedule:
            data["schedule"] = self.schedule
        if self.parameters:
            data["parameters"] = [p.to_dict() for p in self.parameters]
        if self.workspace is not None:
            data["workspace"] = self.workspace.to_dict()
        return data


# -----------------------------------------------------------------------------
# Run Types
# -----------------------------------------------------------------------------


@dataclass
class DagRunCreate:
    """Request to start a run of an existing DAG."""

    name: str
    run_name: str
    namespace: str = "default"
    parameters: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "runName": self.run_name,
            "parameters": dict(self.parameters),
            "namespace": self.namespace,
        }


@dataclass
class CreateDagRunResult:
    """Identifier of a newly created run."""

    run_id: int


@dataclass
class DagRun:
    """Run definition as stored by the server."""

    name: str
    run_name: str
    namespace: str
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass
class TaskRunSummary:
    """One task's state inside a run overview."""

    id: int
    name: str
    status: str


@dataclass
class DagRunAll:
    """Run overview: status, counters, graph edges and task states."""

    id: int
    dag_id: int
    status: str
    run_name: str | None = None
    successful_count: int = 0
    failed_count: int = 0
    connections: dict[str, list[str]] = field(default_factory=dict)
    tasks: list[TaskRunSummary] = field(default_factory=list)


@dataclass
class PodInfo:
    """A pod executing one attempt of a task.

    ``pod_uid`` addresses the live log stream, ``name`` the raw log.
    """

    pod_uid: str
    name: str
    status: str | None = None
    exit_code: int | None = None


@dataclass
class TaskRunDetails:
    """Full state of one task within a run, including its pods."""

    id: int
    name: str
    status: str
    image: str | None = None
    command: list[str] | None = None
    args: list[str] | None = None
    parameters: list[str] | None = None
    attempts: int = 0
    pods: list[PodInfo] = field(default_factory=list)
