"""Kontroler SDK - Python client for the Kontroler workflow orchestrator.

This SDK provides both synchronous and asynchronous clients for:
- Submitting DAG definitions and runs via REST API
- Polling run and task status
- Streaming pod logs, live over WebSocket or resumable over HTTP ranges

Quick Start:
    ```python
    from kontroler_sdk import AsyncKontroler, DagRunCreate

    async with AsyncKontroler(
        url="http://localhost:8080",
        username="admin",
        password="secret",
        auth_cookie_name="jwt",
    ) as client:
        result = await client.create_dag_run(DagRunCreate(name="etl", run_name="etl-1"))

        stream = await client.stream_raw_logs(result.run_id, "etl-1-extract-7f9c")
        async with stream:
            async for chunk in stream:
                print(chunk, end="")
    ```
"""

from ._version import __version__

# Clients
from .client import AsyncKontroler, Kontroler

# Configuration
from .config import ClientConfig

# Streaming
from .raw_logs import RawLogs, RawLogStatus, parse_content_range
from .streaming import LogEvent, LogEventType, LogStream

# Session
from .session import SessionCredential, SessionManager
from .transport import SessionAuth

# Types
from .types import (
    PVC,
    CreateDagRunResult,
    Dag,
    DagParameterSpec,
    DagRun,
    DagRunAll,
    DagRunCreate,
    PodInfo,
    RunStatus,
    TaskRef,
    TaskRunDetails,
    TaskRunSummary,
    TaskSpec,
    Webhook,
    Workspace,
)

# Exceptions
from .exceptions import (
    AuthenticationError,
    CancellationError,
    ConnectError,
    ContentRangeError,
    HTTPStatusError,
    KontrolerError,
    NotFoundError,
    SerializationError,
    StreamError,
    TimeoutException,
    ValidationError,
)

__all__ = [
    # Version
    "__version__",
    # Clients
    "Kontroler",
    "AsyncKontroler",
    "ClientConfig",
    # Session
    "SessionAuth",
    "SessionCredential",
    "SessionManager",
    # Streaming
    "LogStream",
    "LogEvent",
    "LogEventType",
    "RawLogs",
    "RawLogStatus",
    "parse_content_range",
    # Enums
    "RunStatus",
    # DAG types
    "Dag",
    "DagParameterSpec",
    "TaskSpec",
    "TaskRef",
    "Webhook",
    "Workspace",
    "PVC",
    # Run types
    "DagRunCreate",
    "CreateDagRunResult",
    "DagRun",
    "DagRunAll",
    "TaskRunSummary",
    "TaskRunDetails",
    "PodInfo",
    # Exceptions
    "KontrolerError",
    "ConnectError",
    "TimeoutException",
    "AuthenticationError",
    "HTTPStatusError",
    "NotFoundError",
    "ValidationError",
    "SerializationError",
    "ContentRangeError",
    "StreamError",
    "CancellationError",
]
