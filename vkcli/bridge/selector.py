"""Driver for the external fuzzy-selection process (fzf).

The selection process reads candidate lines on stdin and writes the
chosen line on stdout.  Input is fed by a writer thread while the calling
thread drains stdout; writing everything first could deadlock once both
pipe buffers fill.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from collections.abc import Sequence
from typing import IO

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# fzf: 1 = no match, 130 = interrupted with Ctrl-C / Esc.
CANCEL_EXIT_CODES: frozenset[int] = frozenset({1, 130})


class SelectorNotFoundError(RuntimeError):
    """Raised when the selection binary is not on PATH."""


class SelectorError(RuntimeError):
    """Raised when the selection process fails for a reason other than cancel."""


class SelectionResult(BaseModel):
    """What the user did in one selection round."""

    model_config = ConfigDict(frozen=True)

    selection: str = ""
    key: str = ""
    cancelled: bool = False

    @property
    def selected_id(self) -> str:
        """First tab-separated field of the chosen line."""
        return self.selection.split("\t", 1)[0]


def has_expect(args: Sequence[str]) -> bool:
    return any(a == "--expect" or a.startswith("--expect=") for a in args)


def parse_selector_output(raw: str, *, expect_used: bool) -> tuple[str, str]:
    """Split selector output into ``(selection, key)``.

    With ``--expect`` the first line is the pressed key (empty for Enter)
    and the selection is the next non-empty line.
    """
    lines = raw.replace("\r\n", "\n").split("\n")

    if expect_used:
        key = lines[0].strip() if lines else ""
        rest = [line.strip() for line in lines[1:] if line.strip()]
        return (rest[0] if rest else ""), key

    filtered = [line.strip() for line in lines if line.strip()]
    return (filtered[0] if filtered else ""), ""


def _feed_lines(stream: IO[str], lines: Sequence[str]) -> None:
    try:
        for line in lines:
            stream.write(line + "\n")
    except (BrokenPipeError, ValueError, OSError) as exc:
        # The selector may exit before consuming all input.
        logger.debug("Selector input closed early: %s", exc)
    finally:
        try:
            stream.close()
        except (BrokenPipeError, OSError):
            pass


class FzfSelector:
    """Runs one fzf round per ``select()`` call.

    Parameters
    ----------
    binary:
        Executable name or path.  Resolved on PATH at construction.
    """

    def __init__(self, binary: str = "fzf") -> None:
        resolved = shutil.which(binary)
        if resolved is None:
            raise SelectorNotFoundError(
                f"{binary} not found on PATH; install it to use the picker"
            )
        self._binary = resolved

    @property
    def binary(self) -> str:
        return self._binary

    def build_args(self, prompt: str, extra_args: Sequence[str] = ()) -> list[str]:
        return [self._binary, "--prompt", prompt, "--no-multi", *extra_args]

    def select(
        self,
        prompt: str,
        lines: Sequence[str],
        extra_args: Sequence[str] = (),
    ) -> SelectionResult:
        """Offer *lines* and wait for the user's choice."""
        args = self.build_args(prompt, extra_args)
        expect_used = has_expect(extra_args)
        logger.debug("Running selector with %d lines: %s", len(lines), args[1:])

        with subprocess.Popen(
            args,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            text=True,
        ) as proc:
            writer = threading.Thread(
                target=_feed_lines,
                args=(proc.stdin, list(lines)),
                name="selector-writer",
                daemon=True,
            )
            writer.start()
            try:
                output = proc.stdout.read()
                returncode = proc.wait()
            except BaseException:
                proc.kill()
                raise
            finally:
                writer.join()

        if returncode in CANCEL_EXIT_CODES:
            return SelectionResult(cancelled=True)
        if returncode != 0:
            raise SelectorError(f"{self._binary} exited with status {returncode}")

        selection, key = parse_selector_output(output, expect_used=expect_used)
        if not selection and not key:
            return SelectionResult(cancelled=True)
        return SelectionResult(selection=selection, key=key)
