"""``vkcli exec TASK_ID`` — start a new attempt and watch it to completion.

When the creation response does not echo the new attempt's id, the
attempt listing is polled until it appears (attempt discovery).  The
attempt is then polled at a fixed interval until its status is terminal.
"""

from __future__ import annotations

import typer
from rich.console import Console

from vkcli.bridge.api_client import ApiClient, ApiError
from vkcli.config import config
from vkcli.core.attempt_discovery import AttemptDiscoveryExhausted, discover_attempt
from vkcli.core.payload import extract_id
from vkcli.core.status_service import StatusService, StatusWatcher
from vkcli.monitor.renderer import MonitorRenderer

console = Console()


def exec_cmd(
    task_id: str = typer.Argument(
        ...,
        help="The task to start.",
    ),
    executor: str = typer.Option(
        None,
        "--executor",
        "-e",
        help="Executor profile to run the attempt with.",
    ),
    base_branch: str = typer.Option(
        None,
        "--base-branch",
        "-b",
        help="Branch the attempt starts from.",
    ),
) -> None:
    """Start a task attempt and monitor its status until it finishes."""
    renderer = MonitorRenderer(console=console)
    try:
        with ApiClient.from_config(config) as client:
            payload = client.create_attempt(
                task_id, executor=executor, base_branch=base_branch
            )
            attempt_id = extract_id(payload)
            if attempt_id is None:
                renderer.print_notice("Attempt id not in response; waiting for it to appear...")
                attempt_id = discover_attempt(
                    client,
                    task_id,
                    max_attempts=config.discovery_max_attempts,
                    delay_seconds=config.discovery_delay_seconds,
                ).id

            console.print(f"[bold green]Started attempt:[/bold green] {attempt_id}")

            watcher = StatusWatcher(
                StatusService(client),
                interval_seconds=config.status_poll_interval_seconds,
                terminal_statuses=config.terminal_statuses,
            )
            with console.status("Status: ...") as spinner:
                final = watcher.watch(
                    attempt_id,
                    on_status=lambda status: spinner.update(f"Status: {status}"),
                )
    except (ApiError, AttemptDiscoveryExhausted) as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc

    renderer.print_status("attempt", attempt_id, final)
