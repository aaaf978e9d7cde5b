"""HTTP bridge to the task backend.

Bridge boundary
---------------
``ApiClient.fetch_json(method, path, body)`` is the raw transport
capability: it returns ``(status_code, body_bytes)`` and never interprets
the payload.  The typed helpers on top of it (``list_projects``,
``list_attempts`` ...) tolerate both bare and ``{success, data}``
responses via :mod:`vkcli.core.payload`.

Transport failures surface as ``ApiTransportError`` and are fatal to the
command that triggered them.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from vkcli.core.payload import (
    decode_json,
    envelope_message,
    extract_list,
    extract_object,
    is_failure_envelope,
)
from vkcli.models.api import AttemptRef, ExecutionProcess, Project, Task

if TYPE_CHECKING:
    from vkcli.config import VkcliConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class ApiError(RuntimeError):
    """Raised when a backend request cannot be turned into a usable payload."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: bytes = b"",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ApiTransportError(ApiError):
    """Connection refused, timeout, or any other transport-level failure."""


class ApiPayloadError(ApiError):
    """Unparsable body or a ``{success: false}`` envelope."""


class ApiClient:
    """Synchronous client for the task backend.

    Parameters
    ----------
    base_url:
        API root, e.g. ``http://localhost:8096/api``.
    timeout_seconds:
        Per-request timeout.
    transport:
        Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_config(cls, cfg: VkcliConfig) -> ApiClient:
        return cls(cfg.api_base_url, timeout_seconds=cfg.http_timeout_seconds)

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Raw capability
    # ------------------------------------------------------------------

    def fetch_json(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, str] | None = None,
    ) -> tuple[int, bytes]:
        """Send one request and return ``(status_code, raw_body)``.

        Raises
        ------
        ApiTransportError
            If the request never produced a response.
        """
        content = None
        headers = None
        if body is not None:
            content = json.dumps(body).encode("utf-8")
            headers = {"Content-Type": "application/json"}
        try:
            response = self._client.request(
                method, path, params=params, content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", method, path, exc)
            raise ApiTransportError(f"{method} {path}: {exc}") from exc
        logger.debug("%s %s -> %d", method, path, response.status_code)
        return response.status_code, response.content

    def request_json(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and decode the JSON payload.

        Raises ``ApiError`` for HTTP >= 400 and ``ApiPayloadError`` for
        malformed bodies or failure envelopes.
        """
        status_code, raw = self.fetch_json(method, path, body, params=params)
        if status_code >= 400:
            detail = raw.decode("utf-8", errors="replace").strip()
            raise ApiError(
                f"status {status_code}: {detail}",
                status_code=status_code,
                body=raw,
            )
        try:
            payload = decode_json(raw)
        except ValueError as exc:
            raise ApiPayloadError(
                f"{method} {path}: malformed JSON body",
                status_code=status_code,
                body=raw,
            ) from exc
        if is_failure_envelope(payload):
            raise ApiPayloadError(
                f"{method} {path}: {envelope_message(payload)}",
                status_code=status_code,
                body=raw,
            )
        return payload

    def get_json(self, path: str, *, params: dict[str, str] | None = None) -> Any:
        return self.request_json("GET", path, params=params)

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def list_projects(self) -> list[Project]:
        payload = self.get_json("/projects")
        return [Project.model_validate(p) for p in extract_list(payload) if "id" in p]

    def list_tasks(self, project_id: str) -> list[Task]:
        payload = self.get_json("/tasks", params={"project_id": project_id})
        return [Task.model_validate(t) for t in extract_list(payload) if "id" in t]

    def get_task(self, task_id: str) -> Task:
        record = extract_object(self.get_json(f"/tasks/{task_id}"))
        if "id" not in record:
            raise ApiPayloadError(f"task {task_id} not found in response")
        return Task.model_validate(record)

    def task_status_body(self, task_id: str) -> tuple[int, bytes]:
        """Raw task detail response, for status resolution."""
        return self.fetch_json("GET", f"/tasks/{task_id}")

    def create_attempt(
        self,
        task_id: str,
        *,
        executor: str | None = None,
        base_branch: str | None = None,
    ) -> Any:
        body: dict[str, Any] = {}
        if executor:
            body["executor"] = executor
        if base_branch:
            body["base_branch"] = base_branch
        return self.request_json("POST", f"/tasks/{task_id}/attempts", body)

    def list_attempts(self, task_id: str) -> list[AttemptRef]:
        payload = self.get_json("/task-attempts", params={"task_id": task_id})
        return [
            AttemptRef.model_validate(a)
            for a in extract_list(payload)
            if a.get("id") not in (None, "")
        ]

    def get_attempt(self, attempt_id: str) -> Any:
        return self.get_json(f"/task-attempts/{attempt_id}")

    def get_branch_status(self, attempt_id: str) -> Any:
        return self.get_json(f"/task-attempts/{attempt_id}/branch-status")

    def list_execution_processes(self, attempt_id: str) -> list[ExecutionProcess]:
        payload = self.get_json(
            "/execution-processes", params={"task_attempt_id": attempt_id}
        )
        return [
            ExecutionProcess.from_payload(p)
            for p in extract_list(payload)
            if "id" in p
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ApiClient(base_url={self._base_url!r})"
