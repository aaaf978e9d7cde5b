"""Interactive two-level picker: project, then task, then detail view.

Rendering and input are delegated to an external selector (fzf).  The
picker only sequences the rounds and keeps the selection stack:

- ``SELECTING_PROJECT`` offers ``id<TAB>name`` lines.
- ``SELECTING_TASK`` offers ``id<TAB>[status] title`` lines with an inline
  preview and a "go back" key that re-enters project selection.
- ``DONE`` and ``CANCELLED`` are terminal.  Cancellation is not an error.

The project list is fetched once per run and reused when the operator
goes back; task lists are fetched on every entry to task selection.  The
session holds the project context from construction, so its depth is 1
at the project level and 2 at the task level.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from vkcli.bridge.selector import SelectionResult
from vkcli.models.api import Project, Task
from vkcli.models.picker import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    PickerLevel,
    PickerOutcome,
    PickerSession,
    PickerState,
    SelectionContext,
)

logger = logging.getLogger(__name__)

PROJECT_PROMPT = "Project> "
TASK_PROMPT = "Task> "
DEFAULT_BACK_KEY = "ctrl-p"

NO_PROJECTS_NOTICE = "No projects found."
NO_TASKS_NOTICE = "No tasks found for this project."
CANCELLED_NOTICE = "Selection cancelled."


class Selector(Protocol):
    def select(
        self,
        prompt: str,
        lines: Sequence[str],
        extra_args: Sequence[str] = (),
    ) -> SelectionResult: ...


class PickerBackend(Protocol):
    def list_projects(self) -> list[Project]: ...

    def list_tasks(self, project_id: str) -> list[Task]: ...


class InvalidPickerTransitionError(RuntimeError):
    """Raised when the picker attempts a transition outside VALID_TRANSITIONS."""


def project_line(project: Project) -> str:
    return f"{project.id}\t{project.name}"


def task_line(task: Task) -> str:
    return f"{task.id}\t[{task.status}] {task.title}"


def format_project_header(
    projects: Sequence[Project],
    current_index: int,
    back_key: str = DEFAULT_BACK_KEY,
) -> str:
    """Header listing every project, marking the current one."""
    lines = [f"Projects ({back_key} to pick another):"]
    for i, project in enumerate(projects):
        marker = "▶ " if i == current_index else "  "
        lines.append(f"{marker}{project.name} ({project.id})")
    return "\n".join(lines)


def _index_of(items: Sequence[Project] | Sequence[Task], item_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return 0


class InteractivePicker:
    """Drives the project → task selection loop.

    Parameters
    ----------
    backend:
        Source of project and task lists (an ``ApiClient``).
    selector:
        The external selection collaborator (an ``FzfSelector``).
    detail_view:
        Called with the chosen task id before the picker reaches ``DONE``.
    preview_command:
        Shell command the selector runs for the highlighted task; ``{1}``
        expands to its id.
    back_key:
        Key binding that returns from task to project selection.
    """

    def __init__(
        self,
        backend: PickerBackend,
        selector: Selector,
        detail_view: Callable[[str], None] | None = None,
        *,
        preview_command: str | None = None,
        back_key: str = DEFAULT_BACK_KEY,
    ) -> None:
        self._backend = backend
        self._selector = selector
        self._detail_view = detail_view
        self._preview_command = preview_command
        self._back_key = back_key

        self.session = PickerSession()
        self.session.push(SelectionContext(level=PickerLevel.PROJECT))
        self.state = PickerState.SELECTING_PROJECT
        self.history: list[PickerState] = [self.state]

        self._project_id: str | None = None
        self._projects_loaded = False

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self) -> PickerOutcome:
        """Run until a terminal state and return the outcome."""
        if self.state in TERMINAL_STATES:
            raise InvalidPickerTransitionError(
                f"Picker already finished in {self.state.value}"
            )
        outcome: PickerOutcome | None = None
        while outcome is None:
            if self.state == PickerState.SELECTING_PROJECT:
                outcome = self._select_project()
            else:
                outcome = self._select_task()
        return outcome

    def _transition(self, target: PickerState) -> None:
        allowed = VALID_TRANSITIONS.get(self.state, set())
        if target not in allowed:
            raise InvalidPickerTransitionError(
                f"Cannot transition picker from {self.state.value} to {target.value}"
            )
        logger.debug("Picker: %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def _finish(
        self,
        state: PickerState,
        *,
        task_id: str | None = None,
        notice: str | None = None,
    ) -> PickerOutcome:
        self._transition(state)
        return PickerOutcome(
            state=state,
            task_id=task_id,
            project_id=self._project_id,
            notice=notice,
        )

    # ------------------------------------------------------------------
    # Project level
    # ------------------------------------------------------------------

    def _select_project(self) -> PickerOutcome | None:
        context = self.session.top
        if not self._projects_loaded:
            projects = self._backend.list_projects()
            self._projects_loaded = True
            if not projects:
                return self._finish(PickerState.DONE, notice=NO_PROJECTS_NOTICE)
            context = SelectionContext(level=PickerLevel.PROJECT, items=projects)
            self.session.replace_top(context)

        projects = context.items
        result = self._selector.select(
            PROJECT_PROMPT, [project_line(p) for p in projects]
        )
        if result.cancelled:
            return self._finish(PickerState.CANCELLED, notice=CANCELLED_NOTICE)

        self._project_id = result.selected_id
        self.session.replace_top(
            context.with_index(_index_of(projects, self._project_id))
        )
        self._transition(PickerState.SELECTING_TASK)
        return None

    # ------------------------------------------------------------------
    # Task level
    # ------------------------------------------------------------------

    def _task_selector_args(self) -> list[str]:
        project_context = self.session.context_for(PickerLevel.PROJECT)
        projects = project_context.items if project_context else []
        current = project_context.current_index if project_context else 0

        args = [
            "--delimiter", "\t",
            "--with-nth", "2",
            "--preview-window", "right:60%:wrap",
        ]
        if self._preview_command:
            args += ["--preview", self._preview_command]
        args += [
            "--expect", self._back_key,
            "--header", format_project_header(projects, current, self._back_key),
        ]
        return args

    def _select_task(self) -> PickerOutcome | None:
        project_id = self._project_id or ""
        tasks = self._backend.list_tasks(project_id)
        if not tasks:
            return self._finish(PickerState.DONE, notice=NO_TASKS_NOTICE)

        context = SelectionContext(level=PickerLevel.TASK, items=tasks)
        self.session.push(context)

        result = self._selector.select(
            TASK_PROMPT,
            [task_line(t) for t in tasks],
            self._task_selector_args(),
        )
        if result.cancelled:
            return self._finish(PickerState.CANCELLED, notice=CANCELLED_NOTICE)

        if result.key == self._back_key:
            self.session.pop()
            self._transition(PickerState.SELECTING_PROJECT)
            return None

        task_id = result.selected_id
        self.session.replace_top(context.with_index(_index_of(tasks, task_id)))
        if self._detail_view is not None:
            self._detail_view(task_id)
        return self._finish(PickerState.DONE, task_id=task_id)
