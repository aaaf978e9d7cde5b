"""``vkcli status ID`` — resolve the status of a task or an attempt.

The id is tried as a task first.  If the task endpoint fails or returns
no status, it is treated as an attempt and resolved through the attempt
fallback chain, which ends in ``UNKNOWN`` rather than an error.
"""

from __future__ import annotations

import typer
from rich.console import Console

from vkcli.bridge.api_client import ApiClient
from vkcli.config import config
from vkcli.core.status_service import StatusService
from vkcli.monitor.renderer import MonitorRenderer

console = Console()


def status_cmd(
    target_id: str = typer.Argument(
        ...,
        metavar="TASK_ID|ATTEMPT_ID",
        help="A task id or an attempt id.",
    ),
) -> None:
    """Show the canonical status of a task or attempt."""
    renderer = MonitorRenderer(console=console)
    with ApiClient.from_config(config) as client:
        kind, status = StatusService(client).resolve_target(target_id)
    renderer.print_status(kind, target_id, status)
