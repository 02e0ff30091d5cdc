"""Reduce heterogeneous tool/webhook reply envelopes to plain text."""
from __future__ import annotations

import json
from typing import Any, Optional

from ..domain.errors import ToolInvocationError

EMPTY_REPLY = "(The agent returned an empty response.)"

# Checked in order after the ``content`` field.
ENVELOPE_KEYS = ("response", "message", "text", "output", "result.content", "result", "answer")


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def _lookup(envelope: dict, dotted: str) -> Any:
    current: Any = envelope
    for part in dotted.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def _join_content_list(items: list) -> str:
    parts = []
    for it in items:
        if isinstance(it, dict):
            piece = it.get("text") or it.get("content")
            parts.append(piece if isinstance(piece, str) else _stringify(piece if piece else it))
        else:
            parts.append(_stringify(it))
    return "\n".join(parts)


def _extract(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if not isinstance(value, dict):
        return _stringify(value)
    content = value.get("content")
    if isinstance(content, list) and content:
        return _join_content_list(content)
    if content:
        return _stringify(content)
    for key in ENVELOPE_KEYS:
        found = _lookup(value, key)
        if found:
            return _stringify(found)
    return _stringify(value)


def normalize_response(value: Any) -> str:
    """Return human-readable text for any reply envelope; never returns an empty string."""
    text = _extract(value)
    if text is None or not text.strip():
        return EMPTY_REPLY
    return text


def raise_for_tool_error(result: Any, tool: str) -> None:
    """Raise ``ToolInvocationError`` when an MCP tool result is flagged ``isError``."""
    if isinstance(result, dict) and result.get("isError"):
        raise ToolInvocationError(normalize_response(result), tool=tool)
