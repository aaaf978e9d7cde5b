"""``vkcli projects`` — list projects."""

from __future__ import annotations

import typer
from rich.console import Console

from vkcli.bridge.api_client import ApiClient, ApiError
from vkcli.config import config
from vkcli.monitor.renderer import MonitorRenderer

console = Console()


def projects_cmd() -> None:
    """List all projects known to the backend."""
    renderer = MonitorRenderer(console=console)
    try:
        with ApiClient.from_config(config) as client:
            projects = client.list_projects()
    except ApiError as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc

    if not projects:
        renderer.print_notice("No projects found.")
        return

    renderer.print_renderable(renderer.render_projects(projects))
