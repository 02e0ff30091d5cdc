"""
Best-effort request envelopes.

A remote agent's input-binding convention is unknown in advance, so the
query is placed under every key a webhook, tool or workflow is likely to read.
All redundant-key payloads are built here.
"""
from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ..domain.models import ChatTurn, ContextItem

TOOL_QUERY_KEYS = ("message", "query", "text", "input", "content")
WORKFLOW_QUERY_KEYS = ("message", "query", "input", "chatInput")


def join_context(context: Sequence[ContextItem]) -> str:
    return "\n\n".join(c.content for c in context if c.content)


def history_payload(history: Sequence[ChatTurn]) -> List[Dict[str, str]]:
    return [t.to_dict() for t in history]


def tool_arguments(query: str, context: Sequence[ContextItem], history: Sequence[ChatTurn] = ()) -> Dict[str, Any]:
    """Arguments for a generic ``tools/call``."""
    args: Dict[str, Any] = {key: query for key in TOOL_QUERY_KEYS}
    joined = join_context(context)
    if joined:
        args["context"] = joined
    if history:
        args["history"] = history_payload(history)
    return args


def workflow_inputs(query: str, context: Sequence[ContextItem], history: Sequence[ChatTurn] = ()) -> Dict[str, Any]:
    """Inputs for the workflow vendor's ``execute_workflow`` tool."""
    inputs: Dict[str, Any] = {key: query for key in WORKFLOW_QUERY_KEYS}
    inputs["history"] = history_payload(history)
    inputs["context"] = join_context(context)
    return inputs


def webhook_payload(query: str, context: Sequence[ContextItem], history: Sequence[ChatTurn] = ()) -> Dict[str, Any]:
    """Body for the raw webhook contract used when no tool discovery is available."""
    return {
        "query": query,
        "message": query,
        "history": history_payload(history),
        "context": [
            {"content": c.content, "score": c.score, "source": c.metadata.get("source")}
            for c in context
        ],
    }
