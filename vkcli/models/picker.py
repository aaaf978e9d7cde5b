"""Interactive picker models — states, levels, and the selection stack."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class PickerState(str, Enum):
    """States of the two-level selection loop."""

    SELECTING_PROJECT = "selecting_project"
    SELECTING_TASK = "selecting_task"
    DONE = "done"
    CANCELLED = "cancelled"


class PickerLevel(str, Enum):
    PROJECT = "project"
    TASK = "task"


# Valid state transitions, enforced by InteractivePicker.
# Terminal states (DONE, CANCELLED) have no outgoing transitions.
VALID_TRANSITIONS: dict[PickerState, set[PickerState]] = {
    PickerState.SELECTING_PROJECT: {
        PickerState.SELECTING_TASK,
        PickerState.DONE,
        PickerState.CANCELLED,
    },
    PickerState.SELECTING_TASK: {
        PickerState.SELECTING_PROJECT,  # go back
        PickerState.DONE,
        PickerState.CANCELLED,
    },
    PickerState.DONE: set(),  # terminal
    PickerState.CANCELLED: set(),  # terminal
}

TERMINAL_STATES: frozenset[PickerState] = frozenset(
    {PickerState.DONE, PickerState.CANCELLED}
)


class SelectionContext(BaseModel):
    """One level of the selection stack: what is offered and what is highlighted."""

    model_config = ConfigDict(frozen=True)

    level: PickerLevel
    items: list[Any] = []
    current_index: int = 0

    def with_index(self, index: int) -> SelectionContext:
        return self.model_copy(update={"current_index": index})


class PickerSession:
    """Stack of selection contexts; the top is the active level.

    Depth is 1 while picking a project and 2 while picking a task.
    """

    def __init__(self) -> None:
        self._stack: list[SelectionContext] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def top(self) -> SelectionContext:
        if not self._stack:
            raise IndexError("picker session is empty")
        return self._stack[-1]

    @property
    def levels(self) -> list[PickerLevel]:
        return [ctx.level for ctx in self._stack]

    def push(self, context: SelectionContext) -> None:
        self._stack.append(context)

    def pop(self) -> SelectionContext:
        if not self._stack:
            raise IndexError("picker session is empty")
        return self._stack.pop()

    def replace_top(self, context: SelectionContext) -> None:
        """Swap the active context, e.g. to record the highlighted index."""
        self.pop()
        self.push(context)

    def context_for(self, level: PickerLevel) -> SelectionContext | None:
        for ctx in reversed(self._stack):
            if ctx.level == level:
                return ctx
        return None


class PickerOutcome(BaseModel):
    """Terminal result of a picker run."""

    model_config = ConfigDict(frozen=True)

    state: PickerState
    task_id: str | None = None
    project_id: str | None = None
    notice: str | None = None
