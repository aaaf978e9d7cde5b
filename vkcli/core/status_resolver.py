"""Status resolution over schema-less JSON documents.

Backends wrap the status under different keys and nesting depths across
endpoints: a direct task object, a ``{data: ...}`` envelope, attempt
branch sub-objects, arrays of any of these.  The resolver treats the
document as a tree and searches it without prior schema knowledge.

Search order
------------
1. A string node is a candidate.
2. An object is probed for ``status``, ``branch_status``, ``branchStatus``
   in that order; the first key whose value yields a candidate wins.
3. Otherwise every remaining key/value pair is searched in document order.
4. An array is searched element by element.
5. Numbers, booleans and null yield nothing.

The search runs in two passes.  The first pass only accepts strings found
under one of the status keys, at any depth, so a status nested inside
``data`` beats an unrelated sibling string such as ``id``.  The second pass
accepts any string and catches bare scalars, arrays of strings and
unconventional keys.

A candidate that normalizes to the empty string counts as absent and the
search moves on.
"""

from __future__ import annotations

import string
from typing import Any

from vkcli.core.payload import decode_json

STATUS_KEYS: tuple[str, ...] = ("status", "branch_status", "branchStatus")

UNKNOWN_STATUS = "UNKNOWN"

_STRIP_CHARS = string.whitespace + "\"'"


class StatusNotFoundError(LookupError):
    """Raised when a response carries no usable status."""


def normalize_status(raw: str) -> str:
    """Canonicalize a status token.

    Trims surrounding whitespace and quotes, maps ``-`` and space to ``_``
    and uppercases.  Returns ``""`` when nothing is left.
    """
    text = raw.strip(_STRIP_CHARS)
    if not text:
        return ""
    return text.replace("-", "_").replace(" ", "_").upper()


def _search(node: Any, *, accept_strings: bool) -> str | None:
    if isinstance(node, str):
        if accept_strings and normalize_status(node):
            return node
        return None

    if isinstance(node, dict):
        for key in STATUS_KEYS:
            if key in node:
                found = find_status_candidate(node[key])
                if found is not None:
                    return found
        for key, value in node.items():
            if key in STATUS_KEYS:
                continue
            found = _search(value, accept_strings=accept_strings)
            if found is not None:
                return found
        return None

    if isinstance(node, list):
        for item in node:
            found = _search(item, accept_strings=accept_strings)
            if found is not None:
                return found

    return None


def find_status_candidate(doc: Any) -> str | None:
    """Return the raw (un-normalized) status string found in *doc*."""
    found = _search(doc, accept_strings=False)
    if found is None:
        found = _search(doc, accept_strings=True)
    return found


def resolve_status(doc: Any) -> str | None:
    """Resolve a canonical status from a decoded JSON document.

    Returns ``None`` when no candidate exists.
    """
    candidate = find_status_candidate(doc)
    if candidate is None:
        return None
    return normalize_status(candidate)


def resolve_keyed_status(doc: Any) -> str | None:
    """Like ``resolve_status`` but only trusts strings under a status key.

    Used where an arbitrary string (an id, a branch name) must not be
    mistaken for a status.
    """
    candidate = _search(doc, accept_strings=False)
    if candidate is None:
        return None
    return normalize_status(candidate)


def resolve_status_from_body(body: bytes | str) -> str:
    """Resolve a canonical status from a raw 2xx response body.

    Parse strategies, first success wins:

    1. JSON document → tree search.
    2. Non-JSON text → the body itself is the status (quotes trimmed).

    Raises
    ------
    StatusNotFoundError
        If the body is empty or the JSON document holds no status.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    text = text.strip()
    if not text:
        raise StatusNotFoundError("empty response body")

    try:
        doc = decode_json(text)
    except ValueError:
        status = normalize_status(text)
        if status:
            return status
        raise StatusNotFoundError("response body holds no status") from None

    status = resolve_status(doc)
    if not status:
        raise StatusNotFoundError("status not found in response")
    return status


def extract_task_id(payload: Any) -> str | None:
    """Find the owning task id in an attempt payload.

    Looks inside ``data`` first, then ``task_id``, then ``task.id``;
    arrays are searched element by element.
    """
    if isinstance(payload, dict):
        if "data" in payload:
            found = extract_task_id(payload["data"])
            if found:
                return found
        task_id = payload.get("task_id")
        if isinstance(task_id, str) and task_id:
            return task_id
        task = payload.get("task")
        if isinstance(task, dict):
            nested = task.get("id")
            if isinstance(nested, str) and nested:
                return nested
    elif isinstance(payload, list):
        for item in payload:
            found = extract_task_id(item)
            if found:
                return found
    return None

