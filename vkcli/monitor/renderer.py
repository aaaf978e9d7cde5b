"""Rich terminal renderer for projects, tasks, statuses and transcripts.

Color scheme
------------
- green     : DONE
- red       : ERROR, FAILED
- yellow    : IN_PROGRESS, RUNNING
- cyan      : IN_REVIEW
- magenta   : CANCELLED
- dim       : TODO, UNKNOWN

Transcript entries render by kind; kinds outside ``TRANSCRIPT_KINDS`` are
dropped silently.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from vkcli.models.api import ExecutionProcess, Project, Task
from vkcli.models.logs import LogEntry, Transcript


# ---------------------------------------------------------------------------
# Status -> Rich style mapping
# ---------------------------------------------------------------------------

_STATUS_STYLES: dict[str, str] = {
    "DONE": "bold green",
    "ERROR": "bold red",
    "FAILED": "bold red",
    "IN_PROGRESS": "bold yellow",
    "INPROGRESS": "bold yellow",
    "RUNNING": "bold yellow",
    "IN_REVIEW": "bold cyan",
    "INREVIEW": "bold cyan",
    "CANCELLED": "bold magenta",
    "TODO": "dim",
    "UNKNOWN": "dim",
}


def status_style(status: str) -> str:
    key = status.strip().replace("-", "_").replace(" ", "_").upper()
    return _STATUS_STYLES.get(key, "")


# ---------------------------------------------------------------------------
# Transcript entry kinds -> presentation
# ---------------------------------------------------------------------------


def _aside(entry: LogEntry) -> Text:
    return Text(f"── {entry.text}", style="dim")


def _tool_use(entry: LogEntry) -> Text:
    return Text.assemble(("── > ", "cyan"), entry.text)


def _user_message(entry: LogEntry) -> Text:
    return Text.assemble("\n", ("> ", "bold blue"), (entry.text, "bold"))


def _assistant_message(entry: LogEntry) -> Text:
    return Text.assemble("\n", ("✅ Result:\n", "bold green"), entry.text)


_KIND_RENDERERS: dict[str, Callable[[LogEntry], Text]] = {
    "system_message": _aside,
    "thinking": _aside,
    "tool_use": _tool_use,
    "user_message": _user_message,
    "assistant_message": _assistant_message,
}

TRANSCRIPT_KINDS: frozenset[str] = frozenset(_KIND_RENDERERS)


def render_entry(entry: LogEntry) -> Text | None:
    """Render one entry, or ``None`` for kinds that are not displayed."""
    renderer = _KIND_RENDERERS.get(entry.kind)
    if renderer is None:
        return None
    return renderer(entry)


class MonitorRenderer:
    """Renders backend records and transcripts as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def render_projects(self, projects: Sequence[Project]) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=False)
        table.add_column("PROJECT ID", style="cyan", no_wrap=True)
        table.add_column("NAME")
        for project in projects:
            table.add_row(project.id, project.name)
        return table

    def render_tasks(self, tasks: Sequence[Task]) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=False)
        table.add_column("TASK ID", style="cyan", no_wrap=True)
        table.add_column("TITLE")
        table.add_column("STATUS")
        for task in tasks:
            table.add_row(
                task.id,
                task.title,
                Text(task.status, style=status_style(task.status)),
            )
        return table

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    def render_task_detail(self, task: Task) -> Panel:
        fields = Table.grid(padding=(0, 2))
        fields.add_column(style="bold")
        fields.add_column()
        fields.add_row("ID:", task.id)
        fields.add_row("Title:", task.title)
        fields.add_row("Status:", Text(task.status, style=status_style(task.status)))
        fields.add_row("Created At:", task.created_at or "-")
        fields.add_row("Updated At:", task.updated_at or "-")

        description = Text(task.description or "")
        body = Group(fields, Text(""), Text("Description:", style="bold"), description)
        return Panel(body, title="[bold]Task[/bold]", border_style="blue", padding=(1, 2))

    def render_transcript(self, transcript: Transcript) -> Group:
        rendered = [render_entry(entry) for entry in transcript.entries]
        return Group(*(r for r in rendered if r is not None))

    def section_divider(self, title: str) -> Rule:
        return Rule(title.strip() or "-", characters="-")

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_renderable(self, renderable: RenderableType) -> None:
        self.console.print(renderable)

    def print_status(self, kind: str, target_id: str, status: str) -> None:
        """Print ``<Kind> <id> status: <STATUS>``."""
        line = Text.assemble(
            f"{kind.capitalize()} {target_id} status: ",
            (status, status_style(status) or "bold"),
        )
        self.console.print(line)

    def print_process_header(self, process: ExecutionProcess) -> None:
        self.console.print(Text.assemble(("🔹 Process ID: ", "bold"), process.id))
        prompt = process.prompt.strip()
        if prompt:
            self.console.print(Text("🧑 User Prompt:", style="bold"))
            self.console.print(Text(prompt))
            self.console.print()

    def print_transcript(self, transcript: Transcript) -> None:
        self.console.print(self.render_transcript(transcript))

    def print_notice(self, message: str) -> None:
        self.console.print(Text(message, style="dim"))

    def print_error(self, message: object) -> None:
        self.console.print(Text.assemble(("Error: ", "bold red"), str(message)))
