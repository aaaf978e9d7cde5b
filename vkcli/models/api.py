"""Backend records — projects, tasks, attempts, execution processes.

The backend's API contract is not validated here.  Every model ignores
unknown fields and tolerates missing optional ones; ids are coerced to
strings so numeric ids survive.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class Project(_Record):
    """A project as returned by the project listing."""

    id: str
    name: str = ""


class Task(_Record):
    """A task, either from a listing or the detail endpoint."""

    id: str
    title: str = ""
    status: str = ""
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class AttemptRef(_Record):
    """Reference to a single execution run of a task.

    Held only for the duration of one command invocation.
    """

    id: str
    task_id: str | None = None


class ExecutionProcess(_Record):
    """One execution step within an attempt; owns a log entry stream."""

    id: str
    prompt: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ExecutionProcess:
        """Build from a raw process record, lifting ``executor_action.typ.prompt``."""
        prompt = ""
        action = payload.get("executor_action")
        if isinstance(action, dict):
            typ = action.get("typ")
            if isinstance(typ, dict) and isinstance(typ.get("prompt"), str):
                prompt = typ["prompt"]
        return cls(id=payload["id"], prompt=prompt)
