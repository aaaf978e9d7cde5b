"""``vkcli pick`` — choose a project and a task with fzf, then show it.

Requires the selector binary (``fzf`` by default) on PATH.  The task list
shows a live preview of the highlighted task by running this tool's own
``show`` command; the back key returns to project selection.
"""

from __future__ import annotations

import shlex
import sys

import typer
from rich.console import Console

from vkcli.bridge.api_client import ApiClient, ApiError
from vkcli.bridge.log_socket import LogStreamConnectError
from vkcli.bridge.selector import FzfSelector, SelectorError, SelectorNotFoundError
from vkcli.cli.commands.show import show_task
from vkcli.config import config
from vkcli.core.picker import InteractivePicker
from vkcli.monitor.renderer import MonitorRenderer

console = Console()


def preview_command() -> str:
    """Shell command fzf runs for the highlighted line (``{1}`` = task id)."""
    return f"{shlex.quote(sys.executable)} -m vkcli show {{1}} --with-messages"


def pick_cmd(
    with_messages: bool = typer.Option(
        False,
        "--with-messages",
        "-m",
        help="Include execution transcripts in the final task view.",
    ),
) -> None:
    """Pick a project and a task interactively, then show the task."""
    renderer = MonitorRenderer(console=console)
    try:
        selector = FzfSelector(config.selector_binary)
    except SelectorNotFoundError as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc

    try:
        with ApiClient.from_config(config) as client:
            picker = InteractivePicker(
                client,
                selector,
                detail_view=lambda task_id: show_task(
                    client,
                    task_id,
                    with_messages=with_messages,
                    renderer=renderer,
                    cfg=config,
                ),
                preview_command=preview_command(),
                back_key=config.selector_back_key,
            )
            outcome = picker.run()
    except (ApiError, LogStreamConnectError, SelectorError) as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc

    if outcome.notice:
        renderer.print_notice(outcome.notice)
