"""``vkcli list PROJECT_ID`` — list the tasks of one project."""

from __future__ import annotations

import typer
from rich.console import Console

from vkcli.bridge.api_client import ApiClient, ApiError
from vkcli.config import config
from vkcli.monitor.renderer import MonitorRenderer

console = Console()


def list_cmd(
    project_id: str = typer.Argument(
        ...,
        help="The project whose tasks to list.",
    ),
) -> None:
    """List tasks for a project with their current status."""
    renderer = MonitorRenderer(console=console)
    try:
        with ApiClient.from_config(config) as client:
            tasks = client.list_tasks(project_id)
    except ApiError as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc

    if not tasks:
        renderer.print_notice("No tasks found for this project.")
        return

    renderer.print_renderable(renderer.render_tasks(tasks))
