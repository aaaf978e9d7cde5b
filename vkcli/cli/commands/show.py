"""``vkcli show TASK_ID`` — task detail, optionally with execution transcripts.

With ``--with-messages`` the latest attempt of the task is looked up and
every execution process of that attempt is streamed to completion and
rendered as a transcript.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from vkcli.bridge.api_client import ApiClient, ApiError
from vkcli.bridge.log_socket import LogStreamConnectError, log_socket_factory
from vkcli.config import VkcliConfig, config
from vkcli.core.log_stream import reconstruct
from vkcli.monitor.renderer import MonitorRenderer

logger = logging.getLogger(__name__)

console = Console()


def show_messages(
    client: ApiClient,
    task_id: str,
    renderer: MonitorRenderer,
    cfg: VkcliConfig,
) -> None:
    """Render the transcripts of the task's latest attempt."""
    attempts = client.list_attempts(task_id)
    if not attempts:
        renderer.print_notice("No attempts found.")
        return

    latest = attempts[-1]
    renderer.console.print(f"[bold]Latest Attempt ID:[/bold] {latest.id}")
    renderer.console.print()

    processes = client.list_execution_processes(latest.id)
    if not processes:
        renderer.print_notice("(no execution processes found)")
        return

    for process in processes:
        renderer.print_process_header(process)
        factory = log_socket_factory(
            cfg.websocket_base_url,
            process.id,
            open_timeout=cfg.ws_open_timeout_seconds,
        )
        transcript = reconstruct(factory, timeout_seconds=cfg.stream_timeout)
        logger.debug("Process %s: %d transcript entries", process.id, len(transcript))
        renderer.print_transcript(transcript)
        renderer.console.print()


def show_task(
    client: ApiClient,
    task_id: str,
    *,
    with_messages: bool,
    renderer: MonitorRenderer,
    cfg: VkcliConfig,
) -> None:
    """Print a task's detail panel and, optionally, its transcripts."""
    task = client.get_task(task_id)
    renderer.print_renderable(renderer.render_task_detail(task))

    if with_messages:
        renderer.console.print()
        renderer.print_renderable(renderer.section_divider("Messages"))
        show_messages(client, task_id, renderer, cfg)


def show_cmd(
    task_id: str = typer.Argument(
        ...,
        help="The task to show.",
    ),
    with_messages: bool = typer.Option(
        False,
        "--with-messages",
        "-m",
        help="Stream and render the latest attempt's execution logs.",
    ),
) -> None:
    """Show task detail, optionally with execution transcripts."""
    renderer = MonitorRenderer(console=console)
    try:
        with ApiClient.from_config(config) as client:
            show_task(
                client,
                task_id,
                with_messages=with_messages,
                renderer=renderer,
                cfg=config,
            )
    except (ApiError, LogStreamConnectError) as exc:
        renderer.print_error(exc)
        raise typer.Exit(code=1) from exc
