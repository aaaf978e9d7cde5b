"""Multi-endpoint status resolution and the fixed-interval watch loop.

Fallback chain for an attempt
-----------------------------
1. Attempt detail → status under a status key (or a bare status string).
2. Attempt branch-status → status under a status key (or a bare status string).
3. Owning task (id taken from the attempt detail) → task status.
4. ``UNKNOWN``.

Every hop is best-effort: transport errors, HTTP errors and malformed
bodies move the chain forward instead of aborting the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from vkcli.bridge.api_client import ApiError, ApiPayloadError
from vkcli.core.payload import (
    decode_json,
    envelope_message,
    is_failure_envelope,
    unwrap_data,
)
from vkcli.core.status_resolver import (
    UNKNOWN_STATUS,
    StatusNotFoundError,
    extract_task_id,
    resolve_keyed_status,
    resolve_status,
    resolve_status_from_body,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 3.0
DEFAULT_TERMINAL_STATUSES: frozenset[str] = frozenset(
    {"DONE", "ERROR", "FAILED", "CANCELLED"}
)


def _payload_status(payload: Any) -> str | None:
    """Status carried by an attempt or branch-status reply.

    A reply whose data is a bare string is the status itself; structured
    replies only count strings found under a status key.
    """
    data = unwrap_data(payload)
    if isinstance(data, str):
        return resolve_status(data)
    return resolve_keyed_status(payload)


class StatusBackend(Protocol):
    """The slice of ``ApiClient`` the status service needs."""

    def task_status_body(self, task_id: str) -> tuple[int, bytes]: ...

    def get_attempt(self, attempt_id: str) -> Any: ...

    def get_branch_status(self, attempt_id: str) -> Any: ...


class StatusService:
    """Resolves canonical statuses for tasks and attempts.

    Parameters
    ----------
    backend:
        An ``ApiClient`` (or anything with the same three methods).
    """

    def __init__(self, backend: StatusBackend) -> None:
        self._backend = backend

    # ------------------------------------------------------------------
    # Task
    # ------------------------------------------------------------------

    def task_status(self, task_id: str) -> str:
        """Resolve a task's status.

        Raises
        ------
        ApiError
            On transport failure or HTTP >= 400.
        ApiPayloadError
            If a 2xx body is a ``success: false`` envelope.
        StatusNotFoundError
            If the body carries no status.
        """
        status_code, body = self._backend.task_status_body(task_id)
        if status_code >= 400:
            detail = body.decode("utf-8", errors="replace").strip()
            raise ApiError(
                f"status {status_code}: {detail}",
                status_code=status_code,
                body=body,
            )
        try:
            doc = decode_json(body)
        except ValueError:
            doc = None
        if is_failure_envelope(doc):
            raise ApiPayloadError(
                f"task {task_id}: {envelope_message(doc)}",
                status_code=status_code,
                body=body,
            )
        return resolve_status_from_body(body)

    def task_status_or_unknown(self, task_id: str) -> str:
        try:
            return self.task_status(task_id)
        except (ApiError, StatusNotFoundError) as exc:
            logger.debug("Task %s status unavailable: %s", task_id, exc)
            return UNKNOWN_STATUS

    # ------------------------------------------------------------------
    # Attempt
    # ------------------------------------------------------------------

    def attempt_status(self, attempt_id: str) -> str:
        """Resolve an attempt's status, never raising."""
        task_id: str | None = None

        try:
            payload = self._backend.get_attempt(attempt_id)
        except ApiError as exc:
            logger.debug("Attempt %s detail unavailable: %s", attempt_id, exc)
        else:
            status = _payload_status(payload)
            if status:
                return status
            task_id = extract_task_id(payload)

        try:
            branch_payload = self._backend.get_branch_status(attempt_id)
        except ApiError as exc:
            logger.debug("Attempt %s branch status unavailable: %s", attempt_id, exc)
        else:
            status = _payload_status(branch_payload)
            if status:
                return status

        if task_id:
            logger.debug("Attempt %s: falling back to owning task %s", attempt_id, task_id)
            return self.task_status_or_unknown(task_id)

        return UNKNOWN_STATUS

    # ------------------------------------------------------------------
    # Target (task or attempt)
    # ------------------------------------------------------------------

    def resolve_target(self, target_id: str) -> tuple[str, str]:
        """Resolve an id that may name either a task or an attempt.

        Returns ``("task", status)`` when the task endpoint answers,
        otherwise ``("attempt", status)``.
        """
        try:
            return "task", self.task_status(target_id)
        except (ApiError, StatusNotFoundError) as exc:
            logger.info("%s is not a resolvable task (%s); trying attempt", target_id, exc)
        return "attempt", self.attempt_status(target_id)


class StatusWatcher:
    """Polls an attempt's status until it reaches a terminal value.

    Sleeps *before* every check, so the first status is reported one
    interval after the watch starts.
    """

    def __init__(
        self,
        service: StatusService,
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        terminal_statuses: Iterable[str] = DEFAULT_TERMINAL_STATUSES,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._service = service
        self._interval = interval_seconds
        self._terminal = frozenset(s.upper() for s in terminal_statuses)
        self._sleep = sleep or time.sleep

    def is_terminal(self, status: str) -> bool:
        return status in self._terminal

    def watch(
        self,
        attempt_id: str,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Block until the attempt is terminal; return the final status."""
        while True:
            self._sleep(self._interval)
            status = self._service.attempt_status(attempt_id)
            logger.debug("Attempt %s status: %s", attempt_id, status)
            if on_status is not None:
                on_status(status)
            if self.is_terminal(status):
                return status
