"""vkcli: terminal client for monitoring AI-driven coding task attempts.

v0.2.0 — commands against a local task-management backend:
  - projects / list / show: browse projects, tasks and task detail
  - show --with-messages: stream execution logs over WebSocket and
    rebuild them into a readable transcript (JSON Patch reconstruction)
  - exec: start an attempt, discover its id, poll until terminal status
  - status: resolve a task or attempt status from loosely-shaped payloads
  - pick: two-level fzf picker (project -> task) with back navigation
"""

__version__ = "0.2.0"
__description__ = "Terminal client for monitoring AI-driven coding task attempts"

from vkcli.cli.app import app as cli

__all__ = ["cli", "__version__"]
