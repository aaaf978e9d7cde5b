"""Attempt discovery — find a freshly created attempt by polling its task.

Some attempt-creation responses do not echo the new attempt's id.  The
attempt listing for the task is then polled until it is non-empty; the
last element is taken as the newest attempt.  The backend is assumed to
list attempts in creation order, so this is a best-effort heuristic.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from vkcli.bridge.api_client import ApiError
from vkcli.models.api import AttemptRef

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_DELAY_SECONDS = 0.5


class AttemptLister(Protocol):
    def list_attempts(self, task_id: str) -> list[AttemptRef]: ...


class AttemptDiscoveryExhausted(RuntimeError):
    """Raised when no attempt became visible within the retry limit."""

    def __init__(self, task_id: str, tries: int) -> None:
        super().__init__(
            f"no attempt found for task {task_id} after {tries} tries"
        )
        self.task_id = task_id
        self.tries = tries


def discover_attempt(
    backend: AttemptLister,
    task_id: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
    sleep: Callable[[float], None] | None = None,
) -> AttemptRef:
    """Poll the attempt listing until an attempt shows up.

    Waits *delay_seconds* before every try except the first.  Transport
    errors on intermediate tries are logged and retried.

    Raises
    ------
    AttemptDiscoveryExhausted
        After *max_attempts* empty (or failed) listings.  A transport
        error on the final try is chained as the cause.
    """
    sleep = sleep or time.sleep
    last_error: ApiError | None = None

    for attempt_no in range(1, max_attempts + 1):
        if attempt_no > 1:
            sleep(delay_seconds)
        try:
            attempts = backend.list_attempts(task_id)
        except ApiError as exc:
            last_error = exc
            logger.debug(
                "Attempt discovery for %s: try %d/%d failed: %s",
                task_id,
                attempt_no,
                max_attempts,
                exc,
            )
            continue

        last_error = None
        if attempts:
            latest = attempts[-1]
            logger.info(
                "Attempt discovery for %s: found %s on try %d",
                task_id,
                latest.id,
                attempt_no,
            )
            if latest.task_id is None:
                latest = latest.model_copy(update={"task_id": task_id})
            return latest

        logger.debug(
            "Attempt discovery for %s: try %d/%d returned no attempts",
            task_id,
            attempt_no,
            max_attempts,
        )

    raise AttemptDiscoveryExhausted(task_id, max_attempts) from last_error
