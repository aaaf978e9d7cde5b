"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a .env file and
VKCLI_* environment variables.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class VkcliConfig(BaseSettings):
    """vkcli configuration with environment variable overrides.

    Examples
    --------
    Point the tool at another backend::

        export VKCLI_API_BASE_URL=http://kanban.internal:8096/api
        export VKCLI_LOG_LEVEL=DEBUG

    Or via .env file::

        VKCLI_LOG_STREAM_TIMEOUT_SECONDS=120
        VKCLI_SELECTOR_BINARY=/opt/bin/fzf
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VKCLI_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend
    api_base_url: str = "http://localhost:8096/api"
    ws_base_url: str = ""  # derived from api_base_url when empty
    http_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "WARNING"

    # Status watch
    status_poll_interval_seconds: float = 3.0
    terminal_statuses: list[str] = ["DONE", "ERROR", "FAILED", "CANCELLED"]

    # Attempt discovery
    discovery_max_attempts: int = 10
    discovery_delay_seconds: float = 0.5

    # Log stream
    ws_open_timeout_seconds: float = 10.0
    log_stream_timeout_seconds: float = 600.0  # 0 disables the bound

    # Interactive picker
    selector_binary: str = "fzf"
    selector_back_key: str = "ctrl-p"

    @property
    def websocket_base_url(self) -> str:
        """Base URL for streaming endpoints."""
        if self.ws_base_url:
            return self.ws_base_url.rstrip("/")
        base = self.api_base_url.rstrip("/")
        if base.startswith("https://"):
            return "wss://" + base[len("https://"):]
        if base.startswith("http://"):
            return "ws://" + base[len("http://"):]
        return base

    @property
    def stream_timeout(self) -> float | None:
        """Overall log stream bound in seconds, or ``None`` for unbounded."""
        if self.log_stream_timeout_seconds <= 0:
            return None
        return self.log_stream_timeout_seconds


# Module-level singleton: import as `from vkcli.config import config`
config = VkcliConfig()
