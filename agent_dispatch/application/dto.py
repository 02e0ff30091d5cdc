from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..domain.errors import ValidationError
from ..domain.models import AgentDescriptor, ChatTurn, RAGRequest
from ..infrastructure.config import default_min_score, default_top_k

MAX_TOP_K = 100


def _coerce_top_k(value: Any) -> int:
    try:
        k = int(value)
    except (TypeError, ValueError, OverflowError):
        return default_top_k()
    return min(MAX_TOP_K, max(1, k))


def _coerce_min_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default_min_score()
    return min(1.0, max(0.0, score))


def parse_history(raw: Any) -> List[ChatTurn]:
    """Accept ``[{role, text|content}]`` entries; anything else is skipped."""
    turns: List[ChatTurn] = []
    if not isinstance(raw, (list, tuple)):
        return turns
    for it in raw:
        if not isinstance(it, Mapping):
            continue
        text = it.get("text")
        if text is None:
            text = it.get("content")
        if not isinstance(text, str) or not text.strip():
            continue
        role = str(it.get("role") or "user").strip() or "user"
        turns.append(ChatTurn(role=role, text=text))
    return turns


def parse_agent(raw: Any) -> Optional[AgentDescriptor]:
    if not isinstance(raw, Mapping) or not raw:
        return None
    return AgentDescriptor.from_mapping(raw)


def parse_rag_request(payload: Mapping[str, Any]) -> RAGRequest:
    """Build a RAGRequest from the wire shape ``{query, collection, topK, minScore, history, agent}``.

    Raises:
        ValidationError: ``query`` is missing or blank.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    query = payload.get("query")
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("Query is required")
    collection = payload.get("collection")
    top_k = payload.get("topK", payload.get("top_k"))
    min_score = payload.get("minScore", payload.get("min_score"))
    return RAGRequest(
        query=query.strip(),
        collection=collection.strip() if isinstance(collection, str) and collection.strip() else None,
        top_k=default_top_k() if top_k is None else _coerce_top_k(top_k),
        min_score=default_min_score() if min_score is None else _coerce_min_score(min_score),
        history=tuple(parse_history(payload.get("history"))),
        agent=parse_agent(payload.get("agent")),
    )
