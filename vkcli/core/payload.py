"""Response envelope helpers — tolerate bare values and ``{success, data}`` wrappers.

Backend endpoints answer either with a bare JSON value or with an envelope
of the form ``{"success": bool, "data": <value>, "message": ...}``.  The
helpers here try an ordered list of parse strategies and the first one
that applies wins.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

_ENVELOPE_KEYS = frozenset({"success", "data", "error_data", "message"})

_MISSING = object()


def decode_json(body: bytes | str) -> Any:
    """Decode a JSON body.  Raises ``ValueError`` on malformed input."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return json.loads(body)


def is_envelope(payload: Any) -> bool:
    """True for ``{success, data, ...}`` wrappers (and nothing else)."""
    return (
        isinstance(payload, dict)
        and "data" in payload
        and set(payload) <= _ENVELOPE_KEYS
    )


def is_failure_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("success") is False


def envelope_message(payload: Any) -> str:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return "request failed"


# ---------------------------------------------------------------------------
# Parse strategies
# ---------------------------------------------------------------------------


def _enveloped(payload: Any) -> Any:
    return payload["data"] if is_envelope(payload) else _MISSING


def _bare(payload: Any) -> Any:
    return payload


def _first_match(
    payload: Any,
    strategies: list[Callable[[Any], Any]],
    accept: Callable[[Any], bool],
) -> Any:
    for strategy in strategies:
        candidate = strategy(payload)
        if candidate is not _MISSING and accept(candidate):
            return candidate
    return _MISSING


def unwrap_data(payload: Any) -> Any:
    """Return the envelope's ``data`` when wrapped, else the payload itself."""
    found = _first_match(payload, [_enveloped, _bare], lambda _: True)
    return None if found is _MISSING else found


def extract_object(payload: Any) -> dict[str, Any]:
    """Return the record object of a detail response, or ``{}``."""
    found = _first_match(
        payload, [_enveloped, _bare], lambda c: isinstance(c, dict)
    )
    return {} if found is _MISSING else found


def extract_list(payload: Any) -> list[dict[str, Any]]:
    """Return the record list of a listing response, or ``[]``.

    Non-object items are dropped.
    """
    found = _first_match(
        payload, [_enveloped, _bare], lambda c: isinstance(c, list)
    )
    if found is _MISSING:
        return []
    return [item for item in found if isinstance(item, dict)]


def extract_id(payload: Any) -> str | None:
    """Return the ``id`` of a created record, bare or wrapped."""
    record = extract_object(payload)
    value = record.get("id")
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        text = str(value)
        return text or None
    return None
