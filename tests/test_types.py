"""Tests for request types and name validation."""

import pytest

from kontroler_sdk import (
    PVC,
    Dag,
    DagParameterSpec,
    TaskRef,
    TaskSpec,
    ValidationError,
    Webhook,
    Workspace,
)
from kontroler_sdk.types import is_valid_name


@pytest.mark.parametrize(
    "name, valid",
    [
        ("etl", True),
        ("a", True),
        ("extract-2", True),
        ("a" * 63, True),
        ("a" * 64, False),
        ("", False),
        ("2fast", False),
        ("-lead", False),
        ("trail-", False),
        ("Upper", False),
        ("under_score", False),
        ("dot.name", False),
    ],
)
def test_is_valid_name(name, valid):
    assert is_valid_name(name) is valid


def test_validate_checks_every_task():
    dag = Dag(name="etl", tasks=[TaskSpec(name="ok"), TaskSpec(name="Not-OK")])

    with pytest.raises(ValidationError, match="invalid task name: Not-OK"):
        dag.validate()


def test_task_omits_empty_fields():
    assert TaskSpec(name="noop", image="busybox").to_dict() == {
        "name": "noop",
        "image": "busybox",
        "backoffLimit": 0,
    }


def test_task_with_reference_and_retries():
    task = TaskSpec(
        name="train",
        task_ref=TaskRef(name="trainer", version=3),
        retry_codes=[137],
        pod_template="gpu",
        script="python train.py",
    )

    data = task.to_dict()

    assert data["taskRef"] == {"name": "trainer", "version": 3}
    assert data["retryCodes"] == [137]
    assert data["podTemplate"] == "gpu"
    assert data["script"] == "python train.py"


def test_dag_full_payload():
    """Test optional DAG sections appear only when set."""
    dag = Dag(
        name="nightly",
        schedule="0 2 * * *",
        parameters=[DagParameterSpec(name="token", value="db-secret", is_secret=True)],
        webhook=Webhook(url="https://hooks.example.com/kontroler", verify_ssl=False),
        workspace=Workspace(
            enabled=True,
            pvc=PVC(
                access_modes=["ReadWriteOnce"],
                resources={"requests": {"storage": "1Gi"}},
                storage_class_name="standard",
            ),
        ),
    )

    data = dag.to_dict()

    assert data["schedule"] == "0 2 * * *"
    assert data["parameters"] == [{"name": "token", "isSecret": True, "value": "db-secret"}]
    assert data["webhook"] == {"url": "https://hooks.example.com/kontroler", "verifySSL": False}
    assert data["workspace"] == {
        "enable": True,
        "pvc": {
            "accessModes": ["ReadWriteOnce"],
            "resources": {"requests": {"storage": "1Gi"}},
            "storageClassName": "standard",
        },
    }
