"""Kontroler API clients.

Provides both synchronous (Kontroler) and asynchronous (AsyncKontroler)
clients. Both log in when they are set up and route every request
through :class:`~kontroler_sdk.transport.SessionAuth`, which re-logs in
once when the session expires.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, NoReturn, TypeVar

import httpx

from .config import ClientConfig, resolve_config
from .exceptions import (
    ConnectError,
    HTTPStatusError,
    NotFoundError,
    SerializationError,
    TimeoutException,
)
from .raw_logs import (
    RAW_LOGS_PATH,
    RawLogs,
    RawLogStatus,
    check_identity_encoding,
    pull_raw_logs,
    range_headers,
    total_size,
)
from .realtime import open_live_log_stream
from .session import SessionManager
from .streaming import LogStream
from .transport import SessionAuth
from .types import (
    CreateDagRunResult,
    Dag,
    DagRun,
    DagRunAll,
    DagRunCreate,
    PodInfo,
    TaskRunDetails,
    TaskRunSummary,
)

T = TypeVar("T")


def _parse_create_run_result(data: dict[str, Any]) -> CreateDagRunResult:
    return CreateDagRunResult(run_id=int(data["runId"]))


def _parse_dag_run(data: dict[str, Any]) -> DagRun:
    """Parse run definition JSON into DagRun object."""
    return DagRun(
        name=data["name"],
        run_name=data.get("runName", ""),
        namespace=data.get("namespace", ""),
        parameters=dict(data.get("parameters") or {}),
    )


def _parse_dag_run_all(data: dict[str, Any]) -> DagRunAll:
    """Parse run overview JSON into DagRunAll object."""
    return DagRunAll(
        id=int(data["id"]),
        dag_id=int(data.get("dagId", 0)),
        status=data.get("status", ""),
        run_name=data.get("runName"),
        successful_count=data.get("successfulCount", 0),
        failed_count=data.get("failedCount", 0),
        connections={
            name: list(children)
            for name, children in (data.get("connections") or {}).items()
        },
        tasks=[
            TaskRunSummary(
                id=int(t["id"]),
                name=t["name"],
                status=t.get("status", ""),
            )
            for t in data.get("taskInfo") or []
        ],
    )


def _parse_task_details(data: dict[str, Any]) -> TaskRunDetails:
    """Parse task run JSON into TaskRunDetails object."""
    return TaskRunDetails(
        id=int(data["id"]),
        name=data["name"],
        status=data.get("status", ""),
        image=data.get("image"),
        command=data.get("command"),
        args=data.get("args"),
        parameters=data.get("parameters"),
        attempts=data.get("attempts", 0),
        pods=[
            PodInfo(
                pod_uid=p["podUid"],
                name=p["name"],
                status=p.get("status"),
                exit_code=p.get("exitCode"),
            )
            for p in data.get("pods") or []
        ],
    )


def _decode(response: httpx.Response, parser: Callable[[Any], T]) -> T:
    """Decode a JSON body with ``parser``, mapping failures to SerializationError."""
    url = str(response.request.url)
    try:
        data = response.json()
    except ValueError as e:
        raise SerializationError(f"malformed JSON from {url}: {e}") from e
    try:
        return parser(data)
    except (KeyError, TypeError, ValueError) as e:
        raise SerializationError(f"unexpected response from {url}: {e!r}") from e


def _handle_error(response: httpx.Response) -> NoReturn:
    """Raise appropriate exception for error responses."""
    status = response.status_code
    url = str(response.request.url)

    try:
        body = response.json()
        detail = body.get("message") or body.get("detail") or response.text
    except Exception:
        detail = response.text

    message = str(detail) if detail else "unexpected status code"
    if status == 404:
        raise NotFoundError(message, url=url)
    raise HTTPStatusError(message, status_code=status, url=url)


class Kontroler:
    """Synchronous client for the Kontroler API.

    Logs in on construction.

    Example:
        ```python
        client = Kontroler(
            url="https://kontroler.example.com",
            username="admin",
            password="secret",
            auth_cookie_name="jwt",
        )

        client.create_dag(dag)
        result = client.create_dag_run(DagRunCreate(name="etl", run_name="etl-1"))
        print(client.get_dag_run(result.run_id).status)
        ```
    """

    def __init__(
        self,
        url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        auth_cookie_name: str | None = None,
        timeout: float | None = None,
        *,
        config: ClientConfig | None = None,
    ) -> None:
        """Initialize the client and log in.

        Args:
            url: Base URL of the Kontroler API.
            username: Login username.
            password: Login password.
            auth_cookie_name: Name of the session cookie to capture.
            timeout: Per-request timeout in seconds (None for no limit).
            config: Settings to start from; keyword arguments override it.
                Without either, settings come from KONTROLER_* variables.

        Raises:
            ValidationError: If the configuration is incomplete.
            AuthenticationError: If the login is rejected.
            ConnectError: If the server cannot be reached.
        """
        self.config = resolve_config(
            config,
            url=url,
            username=username,
            password=password,
            auth_cookie_name=auth_cookie_name,
            timeout=timeout,
        )
        self.base_url = self.config.url
        self._session = SessionManager(
            self.base_url,
            self.config.username,
            self.config.password,
            self.config.auth_cookie_name,
        )
        self._auth = SessionAuth(self._session)
        self._client = httpx.Client(timeout=self.config.timeout, auth=self._auth)
        try:
            self.login()
        except Exception:
            self._client.close()
            raise

    def login(self) -> None:
        """Log in and replace the session credential."""
        self._auth.set_credential(self._session.login(self._client))

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "Kontroler":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _send(
        self, method: str, path: str, stream: bool = False, **kwargs: Any
    ) -> httpx.Response:
        request = self._client.build_request(method, f"{self.base_url}{path}", **kwargs)
        try:
            return self._client.send(request, stream=stream)
        except httpx.ConnectError as e:
            raise ConnectError(f"Failed to connect: {e}") from e
        except httpx.TimeoutException as e:
            raise TimeoutException(f"Request timed out: {e}") from e

    def create_dag(self, dag: Dag) -> None:
        """Register a DAG definition.

        Raises:
            ValidationError: If a DAG or task name is invalid.
        """
        dag.validate()
        response = self._send("POST", "/api/v1/dag/create", json=dag.to_dict())
        if not response.is_success:
            _handle_error(response)

    def create_dag_run(self, run: DagRunCreate) -> CreateDagRunResult:
        """Start a run of an existing DAG."""
        response = self._send("POST", "/api/v1/dag/run/create", json=run.to_dict())
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_create_run_result)

    def get_task_details(self, run_id: int, task_id: int) -> TaskRunDetails:
        """Get the state of one task within a run, including its pods."""
        response = self._send("GET", f"/api/v1/dag/run/task/{run_id}/{task_id}")
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_task_details)

    def get_dag_run(self, run_id: int) -> DagRunAll:
        """Get the run overview: status, counters and task states."""
        response = self._send("GET", f"/api/v1/dag/run/all/{run_id}")
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_dag_run_all)

    def get_dag_run_details(self, run_id: int) -> DagRun:
        """Get the run definition: DAG name, run name and parameters."""
        response = self._send("GET", f"/api/v1/dag/run/{run_id}")
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_dag_run)

    def get_raw_logs(
        self, run_id: int, pod_name: str, byte_range: str | None = None
    ) -> RawLogs:
        """Fetch a pod's stored log, optionally from a byte offset.

        Args:
            run_id: Run the pod belongs to.
            pod_name: Name of the pod.
            byte_range: Range spec without the unit, e.g. ``"1024-"``.

        Returns:
            RawLogs with an open body (DATA) or NO_CONTENT. Close it when done.

        Raises:
            HTTPStatusError: For any status other than 200, 204 or 206.
            ContentRangeError: If the Content-Range header is malformed.
            SerializationError: If the body arrives compressed.
        """
        headers = range_headers(byte_range)
        path = RAW_LOGS_PATH.format(run_id=run_id, pod_name=pod_name)
        response = self._send("GET", path, stream=True, headers=headers)

        if response.status_code == 204:
            response.close()
            return RawLogs(RawLogStatus.NO_CONTENT)
        if response.status_code not in (200, 206):
            response.read()
            response.close()
            _handle_error(response)

        try:
            check_identity_encoding(response)
            size = total_size(response)
        except SerializationError:
            response.close()
            raise
        return RawLogs(RawLogStatus.DATA, total_size=size, response=response)


class AsyncKontroler:
    """Asynchronous client for the Kontroler API, including log streaming.

    Logs in on ``login()`` or when entered as a context manager.

    Example:
        ```python
        async with AsyncKontroler(url=..., username=..., password=...,
                                  auth_cookie_name="jwt") as client:
            stream = await client.stream_raw_logs(run_id, "etl-1-extract-abc")
            async with stream:
                async for chunk in stream:
                    print(chunk, end="")
            if stream.error:
                raise stream.error
        ```
    """

    def __init__(
        self,
        url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        auth_cookie_name: str | None = None,
        timeout: float | None = None,
        *,
        config: ClientConfig | None = None,
    ) -> None:
        """Initialize the client. See :class:`Kontroler` for the arguments."""
        self.config = resolve_config(
            config,
            url=url,
            username=username,
            password=password,
            auth_cookie_name=auth_cookie_name,
            timeout=timeout,
        )
        self.base_url = self.config.url
        self._session = SessionManager(
            self.base_url,
            self.config.username,
            self.config.password,
            self.config.auth_cookie_name,
        )
        self._auth = SessionAuth(self._session)
        self._client = httpx.AsyncClient(timeout=self.config.timeout, auth=self._auth)

    async def login(self) -> None:
        """Log in and replace the session credential."""
        credential = await self._session.alogin(self._client)
        await self._auth.aset_credential(credential)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncKontroler":
        try:
            await self.login()
        except Exception:
            await self.close()
            raise
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _send(
        self, method: str, path: str, stream: bool = False, **kwargs: Any
    ) -> httpx.Response:
        request = self._client.build_request(method, f"{self.base_url}{path}", **kwargs)
        try:
            return await self._client.send(request, stream=stream)
        except httpx.ConnectError as e:
            raise ConnectError(f"Failed to connect: {e}") from e
        except httpx.TimeoutException as e:
            raise TimeoutException(f"Request timed out: {e}") from e

    async def create_dag(self, dag: Dag) -> None:
        """Register a DAG definition."""
        dag.validate()
        response = await self._send("POST", "/api/v1/dag/create", json=dag.to_dict())
        if not response.is_success:
            _handle_error(response)

    async def create_dag_run(self, run: DagRunCreate) -> CreateDagRunResult:
        """Start a run of an existing DAG."""
        response = await self._send(
            "POST", "/api/v1/dag/run/create", json=run.to_dict()
        )
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_create_run_result)

    async def get_task_details(self, run_id: int, task_id: int) -> TaskRunDetails:
        response = await self._send("GET", f"/api/v1/dag/run/task/{run_id}/{task_id}")
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_task_details)

    async def get_dag_run(self, run_id: int) -> DagRunAll:
        response = await self._send("GET", f"/api/v1/dag/run/all/{run_id}")
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_dag_run_all)

    async def get_dag_run_details(self, run_id: int) -> DagRun:
        response = await self._send("GET", f"/api/v1/dag/run/{run_id}")
        if not response.is_success:
            _handle_error(response)
        return _decode(response, _parse_dag_run)

    async def get_raw_logs(
        self, run_id: int, pod_name: str, byte_range: str | None = None
    ) -> RawLogs:
        """Fetch a pod's stored log. See :meth:`Kontroler.get_raw_logs`."""
        headers = range_headers(byte_range)
        path = RAW_LOGS_PATH.format(run_id=run_id, pod_name=pod_name)
        response = await self._send("GET", path, stream=True, headers=headers)

        if response.status_code == 204:
            await response.aclose()
            return RawLogs(RawLogStatus.NO_CONTENT)
        if response.status_code not in (200, 206):
            await response.aread()
            await response.aclose()
            _handle_error(response)

        try:
            check_identity_encoding(response)
            size = total_size(response)
        except SerializationError:
            await response.aclose()
            raise
        return RawLogs(RawLogStatus.DATA, total_size=size, response=response)

    async def stream_pod_logs(
        self, pod_uid: str, cancel_event: asyncio.Event | None = None
    ) -> LogStream:
        """Follow a running pod's log over WebSocket.

        Args:
            pod_uid: UID of the pod.
            cancel_event: Optional cancellation token; setting it ends the
                stream without an error.

        Returns:
            A started LogStream, one chunk per WebSocket frame.

        Raises:
            AuthenticationError: If not logged in or the handshake is rejected.
            ConnectError: If the connection cannot be established.
        """
        cookie_header = await self._auth.acookie_header()
        return await open_live_log_stream(
            self.base_url, cookie_header, pod_uid, cancel_event=cancel_event
        )

    async def stream_raw_logs(
        self,
        run_id: int,
        pod_name: str,
        cancel_event: asyncio.Event | None = None,
    ) -> LogStream:
        """Stream a pod's stored log with resumable byte-range requests.

        Args:
            run_id: Run the pod belongs to.
            pod_name: Name of the pod.
            cancel_event: Optional cancellation token; setting it ends the
                stream with a CancellationError.

        Returns:
            A started LogStream, ending once the whole log has been read.
        """
        stream = LogStream(f"run:{run_id}/pod:{pod_name}", cancel_event=cancel_event)
        return stream.start(lambda s: pull_raw_logs(self, run_id, pod_name, s))
