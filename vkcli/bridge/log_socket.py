"""WebSocket bridge for normalized execution-process logs.

Wraps ``websockets.sync.client.connect`` behind a connection factory the
log stream reconstructor can open once per execution process.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from websockets.exceptions import WebSocketException
from websockets.sync.client import ClientConnection, connect

logger = logging.getLogger(__name__)

DEFAULT_OPEN_TIMEOUT_SECONDS = 10.0


class LogStreamConnectError(RuntimeError):
    """Raised when the log stream socket cannot be opened."""


def log_stream_url(ws_base_url: str, process_id: str) -> str:
    """Streaming endpoint for one execution process."""
    return f"{ws_base_url.rstrip('/')}/execution-processes/{process_id}/normalized-logs/ws"


def open_log_socket(
    url: str,
    *,
    open_timeout: float = DEFAULT_OPEN_TIMEOUT_SECONDS,
) -> ClientConnection:
    """Dial the log stream.

    Raises
    ------
    LogStreamConnectError
        On a bad URI, a refused handshake, or a network failure.
    """
    try:
        connection = connect(url, open_timeout=open_timeout, max_size=None)
    except (WebSocketException, OSError, TimeoutError) as exc:
        raise LogStreamConnectError(f"error connecting WS {url}: {exc}") from exc
    logger.debug("Opened log stream %s", url)
    return connection


def log_socket_factory(
    ws_base_url: str,
    process_id: str,
    *,
    open_timeout: float = DEFAULT_OPEN_TIMEOUT_SECONDS,
) -> Callable[[], ClientConnection]:
    """Return a zero-argument factory that dials the process's stream."""
    url = log_stream_url(ws_base_url, process_id)

    def _open() -> ClientConnection:
        return open_log_socket(url, open_timeout=open_timeout)

    return _open
