from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..infrastructure.logging import get_logger
from ..infrastructure.config import generation_model
from ..infrastructure.mcp.client import McpTransport, build_headers
from ..infrastructure.ollama.client import OllamaEmbeddingService, OllamaTextGenerator
from ..infrastructure.qdrant.client import QdrantVectorStore
from ..domain.errors import ValidationError
from ..application.dto import parse_agent, parse_rag_request
from ..application.endpoint_resolver import resolve_endpoint
from ..application.local_responder import LocalResponder
from ..application.remote_agent import RemoteAgentClient
from ..application.tool_selection import select_tool
from ..application.use_cases.answer_query import AnswerQueryUseCase
from ..application.use_cases.retrieve_context import VectorSearchRetriever

logger = get_logger("agent_dispatch.api.rag")


def build_use_case() -> AnswerQueryUseCase:
    """Wire the default collaborators: Qdrant + Ollama retrieval, optional Ollama generation."""
    model = generation_model()
    generator = OllamaTextGenerator(model) if model else None
    return AnswerQueryUseCase(
        retriever=VectorSearchRetriever(OllamaEmbeddingService(), QdrantVectorStore()),
        responder=LocalResponder(generator=generator),
        remote=RemoteAgentClient(),
    )


def validation_error(message: str) -> Dict[str, Any]:
    return {"code": ValidationError.code, "message": message}


def rag_query(payload: Mapping[str, Any], use_case: Optional[AnswerQueryUseCase] = None) -> Dict[str, Any]:
    """Answer a wire RAG request; returns ``{response, context, agentUsed}`` or a validation error."""
    try:
        req = parse_rag_request(payload)
    except ValidationError as ex:
        return validation_error(str(ex))
    logger.info(
        "RAG request | collection=%s | topK=%d | minScore=%.2f | agent=%s",
        req.collection, req.top_k, req.min_score, req.agent.kind.value if req.agent else "none",
    )
    try:
        result = (use_case or build_use_case()).execute(req)
    except ValidationError as ex:
        return validation_error(str(ex))
    return result.to_dict()


def _require_agent(agent_payload: Mapping[str, Any]):
    agent = parse_agent(agent_payload)
    if agent is None:
        raise ValidationError("Agent configuration is required")
    return agent


def probe_agent(agent_payload: Mapping[str, Any], transport: Optional[McpTransport] = None) -> Dict[str, Any]:
    """Health-check the endpoint resolved from an agent configuration."""
    try:
        agent = _require_agent(agent_payload)
    except ValidationError as ex:
        return validation_error(str(ex))
    endpoint = resolve_endpoint(agent)
    if not endpoint.found:
        return {"healthy": False, "agent": agent.display_name, "error": f"No HTTP endpoint configured for {agent.display_name}"}
    result = (transport or McpTransport()).check_health(str(endpoint.url))
    return {"agent": agent.display_name, "endpoint": endpoint.url, **result.to_dict()}


def list_agent_tools(agent_payload: Mapping[str, Any], transport: Optional[McpTransport] = None) -> Dict[str, Any]:
    """Discover an agent's tools and report the selection a query would use."""
    try:
        agent = _require_agent(agent_payload)
    except ValidationError as ex:
        return validation_error(str(ex))
    endpoint = resolve_endpoint(agent)
    if not endpoint.found:
        return {"status": "error", "error": f"No HTTP endpoint configured for {agent.display_name}", "tools": []}
    tools = (transport or McpTransport()).list_tools(str(endpoint.url), build_headers(endpoint.auth))
    selection = select_tool(tools)
    return {
        "status": "ok",
        "agent": agent.display_name,
        "endpoint": endpoint.url,
        "tools": [{"name": t.name, "description": t.description} for t in tools],
        "selection": {"kind": selection.kind.value, "tool": selection.tool.name if selection.tool else None},
    }
