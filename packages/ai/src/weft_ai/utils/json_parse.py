"""
Lenient JSON parsing for streamed tool input.
"""
from __future__ import annotations

import json
from typing import Any

_CLOSERS = {"{": "}", "[": "]"}


def parse_tool_input(text: str | None) -> Any:
    """
    Parse the accumulated tool input of a streamed tool-use block.

    Empty input becomes ``{}``. Truncated objects are closed where possible;
    anything still unparseable also becomes ``{}`` so that a malformed model
    response never aborts the turn.
    """
    if not text or not text.strip():
        return {}

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        closed = _close_truncated(text)
    return closed if closed is not None else {}


def _close_truncated(text: str) -> dict[str, Any] | None:
    """Close the strings, arrays and objects a cut-off stream left open."""
    body = text.strip()
    if not body.startswith("{"):
        return None

    pending: list[str] = []
    quoted = escaped = False
    for ch in body:
        if quoted:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                quoted = False
        elif ch == '"':
            quoted = True
        elif ch in _CLOSERS:
            pending.append(_CLOSERS[ch])
        elif pending and ch == pending[-1]:
            pending.pop()

    if quoted:
        body += '"'
    # A dangling separator cannot be closed
    body = body.rstrip().rstrip(",")

    try:
        value = json.loads(body + "".join(reversed(pending)))
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None
