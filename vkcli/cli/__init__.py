"""vkcli CLI — Typer-based command-line interface.

Provides the ``vkcli`` command with subcommands for listing projects and
tasks, showing task detail and execution transcripts, starting and
watching attempts, resolving statuses, and picking tasks interactively.

All output uses Rich for formatted terminal display.
"""
