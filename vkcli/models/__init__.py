"""vkcli data models — all Pydantic v2."""

from vkcli.models.api import AttemptRef, ExecutionProcess, Project, Task
from vkcli.models.logs import LogEntry, PatchOp, Transcript
from vkcli.models.picker import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    PickerLevel,
    PickerOutcome,
    PickerSession,
    PickerState,
    SelectionContext,
)

__all__ = [
    # api
    "Project",
    "Task",
    "AttemptRef",
    "ExecutionProcess",
    # logs
    "PatchOp",
    "LogEntry",
    "Transcript",
    # picker
    "PickerState",
    "PickerLevel",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "SelectionContext",
    "PickerSession",
    "PickerOutcome",
]
