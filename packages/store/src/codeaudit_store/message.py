"""Audit commit message format.

Every commit codeaudit writes to the audit repository looks like this::

    Optional free text (the reviewer's explanation), any number of lines
    ---
    commit: 0123abcd...
    profile: teamA
    reviewer: alice@example.com
    state: approved
    state_previous: locked

Everything before the first line that is exactly ``---`` is free text;
everything after it is a YAML mapping. A message without the sentinel is
free text only.
"""

from __future__ import annotations

import datetime as _dt

import yaml

SENTINEL = "---"


class MessageParseError(ValueError):
    """The structured block of an audit commit message is not a YAML mapping."""


def encode_message(details: dict, message: str | None = None) -> str:
    """Render free text plus a details mapping as an audit commit message.

    When ``message`` is not given, a ``message`` key in ``details`` is used
    as the free text instead of being serialised into the YAML block.
    Keys whose value is None are dropped.
    """
    data = {k: v for k, v in details.items() if v is not None}
    text = data.pop("message", None) if message is None else message
    data.pop("message", None)

    parts = []
    if text:
        # A bare sentinel in the free text would split the message early.
        lines = [" " + SENTINEL if line.rstrip("\r") == SENTINEL else line for line in str(text).strip().splitlines()]
        parts.append("\n".join(lines))
    parts.append(SENTINEL)
    parts.append(yaml.safe_dump(data, default_flow_style=False, sort_keys=True, allow_unicode=True).rstrip("\n"))
    return "\n".join(parts) + "\n"


def decode_message(raw: str) -> tuple[str, dict]:
    """Split a commit message into ``(free_text, structured_record)``.

    Raises MessageParseError when the block after the sentinel is not valid
    YAML or not a mapping.
    """
    lines = raw.splitlines()
    for index, line in enumerate(lines):
        if line.rstrip("\r") == SENTINEL:
            free_text = "\n".join(lines[:index]).strip()
            body = "\n".join(lines[index + 1 :])
            break
    else:
        return raw.strip(), {}

    try:
        data = yaml.safe_load(body) if body.strip() else {}
    except yaml.YAMLError as e:
        raise MessageParseError(f"invalid structured block: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MessageParseError(f"structured block is a {type(data).__name__}, expected a mapping")
    return free_text, {str(k): _normalize(v) for k, v in data.items()}


def _normalize(value):
    # Older records were written with unquoted dates, which YAML loads as date objects.
    if isinstance(value, (_dt.date, _dt.datetime)):
        return value.isoformat()
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return value
