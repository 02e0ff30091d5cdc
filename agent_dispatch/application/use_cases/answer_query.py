"""
Answer-query use case (the orchestrator).

Sequences context retrieval, agent-kind branching, remote invocation and
fallback. Every call ends with a well-formed ``RAGResponse``; the only error
that escapes is ``ValidationError`` for a missing query.

States: Idle -> ContextRetrieved -> {LocalOnly | RemoteAttempt}
        -> {Success | RemoteFailed -> LocalFallback} -> Done
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from ...domain.errors import ValidationError
from ...domain.interfaces import ContextRetriever
from ...domain.models import (
    DEFAULT_AGENT_LABEL,
    AgentKind,
    ContextItem,
    ContextQuery,
    RAGRequest,
    RAGResponse,
)
from ...infrastructure.logging import get_logger
from ..endpoint_resolver import resolve_endpoint
from ..local_responder import LocalResponder
from ..remote_agent import RemoteAgentClient

logger = get_logger("agent_dispatch.answer_query")

ERROR_EXCERPT_CHARS = 300


def _error_excerpt(ex: Exception) -> str:
    text = str(ex).strip() or type(ex).__name__
    return text if len(text) <= ERROR_EXCERPT_CHARS else f"{text[:ERROR_EXCERPT_CHARS]}..."


def missing_endpoint_note(agent_name: str) -> str:
    return (
        f"\n\n💡 *No HTTP endpoint configured for {agent_name}. "
        "Please add a webhook URL in the connection settings.*"
    )


def fallback_note(agent_name: str, ex: Exception) -> str:
    return f"\n\n⚠️ *Could not reach {agent_name}.*\n*Error: {_error_excerpt(ex)}*"


class AnswerQueryUseCase:
    """Use-case: answer one RAG request through the configured agent, falling back locally."""

    def __init__(
        self,
        retriever: Optional[ContextRetriever] = None,
        responder: Optional[LocalResponder] = None,
        remote: Optional[RemoteAgentClient] = None,
    ) -> None:
        self._retriever = retriever
        self._responder = responder or LocalResponder()
        self._remote = remote or RemoteAgentClient()

    def execute(self, req: RAGRequest) -> RAGResponse:
        """
        Answers ``req``.

        Raises:
            ValidationError: The query is missing or blank. Nothing else escapes.
        """
        query = (req.query or "").strip()
        if not query:
            raise ValidationError("Query is required")

        context = self._retrieve(req, query)
        agent = req.agent

        if agent is None or agent.kind.answers_locally:
            text = self._responder.respond(query, context, req.history, DEFAULT_AGENT_LABEL)
            return RAGResponse(response=text, context=context, agent_used=DEFAULT_AGENT_LABEL)

        endpoint = resolve_endpoint(agent)
        if not endpoint.found:
            logger.warning("No endpoint resolved | agent=%s | kind=%s", agent.display_name, agent.kind.value)
            text = self._responder.respond(query, context, req.history, DEFAULT_AGENT_LABEL)
            return RAGResponse(
                response=text + missing_endpoint_note(agent.display_name),
                context=context,
                agent_used=DEFAULT_AGENT_LABEL,
            )

        try:
            text = self._remote.invoke(agent, endpoint, query, context, req.history)
            return RAGResponse(response=text, context=context, agent_used=agent.display_name)
        except Exception as ex:
            logger.error("Agent call failed | name=%s | kind=%s | error=%s: %s",
                         agent.display_name, agent.kind.value, type(ex).__name__, ex)
            text = self._responder.respond(query, context, req.history, agent.display_name)
            return RAGResponse(
                response=text + fallback_note(agent.display_name, ex),
                context=context,
                agent_used=f"{agent.display_name} (fallback)",
            )

    def _retrieve(self, req: RAGRequest, query: str) -> Tuple[ContextItem, ...]:
        if not req.collection or self._retriever is None:
            return ()
        try:
            items: List[ContextItem] = self._retriever.search(
                req.collection,
                ContextQuery(query_text=query, top_k=req.top_k, min_score=req.min_score),
            )
        except Exception as ex:
            logger.warning("Collection search failed | collection=%s | error=%s", req.collection, ex)
            return ()
        logger.info("Retrieved documents | collection=%s | count=%d", req.collection, len(items))
        return tuple(sorted(items, key=lambda c: c.score, reverse=True))
