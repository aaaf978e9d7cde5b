"""Log stream reconstruction from an incremental patch stream.

The server pushes JSON frames of the form ``{"JsonPatch": [op, ...]}``
over a long-lived connection.  Each ``add``/``replace`` op on
``/entries/<N>`` writes entry *N*; the last write per index wins no
matter in which order frames for other indices arrive.  This is a
display-only consumer, not a general JSON-Patch applier: every other op
and path is ignored.

The stream ends when

- a frame contains the literal ``"finished"`` anywhere in its raw bytes,
- a read fails (the backend may simply close the socket when done), or
- the optional overall timeout elapses.

All three are normal completion.  Malformed frames are skipped.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterable
from contextlib import closing
from typing import Any, Protocol

from pydantic import ValidationError

from vkcli.core.payload import decode_json
from vkcli.models.logs import LogEntry, PatchOp, Transcript

logger = logging.getLogger(__name__)

FINISHED_MARKER = b'"finished"'
APPLIED_OPS: frozenset[str] = frozenset({"add", "replace"})

_ENTRY_PATH = re.compile(r"^/entries/(\d+)$")


class MessageConnection(Protocol):
    """A message-oriented duplex connection (e.g. a websocket)."""

    def recv(self, timeout: float | None = None) -> str | bytes: ...

    def close(self) -> None: ...


def entry_index(path: str) -> int | None:
    """Return *N* for ``/entries/<N>``, else ``None``."""
    match = _ENTRY_PATH.match(path)
    if match is None:
        return None
    return int(match.group(1))


class LogStreamReconstructor:
    """Accumulates patch frames into a sparse ``index -> LogEntry`` mapping."""

    def __init__(self) -> None:
        self._entries: dict[int, LogEntry] = {}
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def apply_op(self, op: PatchOp) -> bool:
        """Apply one op; return True if it wrote an entry."""
        if op.op not in APPLIED_OPS:
            return False
        index = entry_index(op.path)
        if index is None:
            return False
        self._entries[index] = LogEntry(
            index=index,
            kind=op.value.content.entry_type.type,
            text=op.value.content.content,
        )
        return True

    def apply_ops(self, raw_ops: Iterable[Any]) -> int:
        """Validate and apply raw op objects; malformed ones are skipped."""
        applied = 0
        for raw in raw_ops:
            try:
                op = PatchOp.model_validate(raw)
            except ValidationError:
                logger.debug("Skipping malformed patch op: %r", raw)
                continue
            if self.apply_op(op):
                applied += 1
        return applied

    def apply_message(self, message: str | bytes) -> bool:
        """Feed one raw frame.  Returns True once the stream is finished."""
        raw = message.encode("utf-8") if isinstance(message, str) else message
        if FINISHED_MARKER in raw:
            self._finished = True
            return True

        try:
            frame = decode_json(raw)
        except ValueError:
            logger.debug("Skipping unparsable frame (%d bytes)", len(raw))
            return False
        if not isinstance(frame, dict):
            logger.debug("Skipping non-object frame")
            return False
        ops = frame.get("JsonPatch")
        if not isinstance(ops, list):
            return False
        self.apply_ops(ops)
        return False

    def consume(
        self,
        connection: MessageConnection,
        *,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Read frames until finished, a read error, or the deadline."""
        deadline = None if timeout_seconds is None else clock() + timeout_seconds

        while not self._finished:
            remaining = None
            if deadline is not None:
                remaining = deadline - clock()
                if remaining <= 0:
                    logger.warning(
                        "Log stream timed out after %.1fs; showing %d entries",
                        timeout_seconds,
                        len(self._entries),
                    )
                    return
            try:
                message = connection.recv(timeout=remaining)
            except TimeoutError:
                logger.warning(
                    "Log stream timed out after %.1fs; showing %d entries",
                    timeout_seconds or 0.0,
                    len(self._entries),
                )
                return
            except Exception as exc:
                # Remote close ends the stream just like the marker does.
                logger.debug("Log stream read ended: %s", exc)
                return
            self.apply_message(message)

    def transcript(self) -> Transcript:
        """Entries sorted by index."""
        return Transcript(
            entries=[self._entries[i] for i in sorted(self._entries)]
        )


def reconstruct(
    connection_factory: Callable[[], MessageConnection],
    *,
    timeout_seconds: float | None = None,
) -> Transcript:
    """Open a connection, consume it to completion, and return the transcript.

    The connection is closed on every exit path.
    """
    reconstructor = LogStreamReconstructor()
    with closing(connection_factory()) as connection:
        reconstructor.consume(connection, timeout_seconds=timeout_seconds)
    return reconstructor.transcript()
