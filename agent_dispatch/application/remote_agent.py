from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..domain.models import AgentDescriptor, AgentKind, ChatTurn, ContextItem, ResolvedEndpoint
from ..infrastructure.logging import get_logger
from ..infrastructure.mcp.client import McpTransport, build_headers
from ..infrastructure.webhook.client import WebhookClient
from .envelopes import tool_arguments, webhook_payload
from .normalizer import normalize_response, raise_for_tool_error
from .tool_selection import SelectionKind, select_tool
from .workflows import WorkflowRunner

logger = get_logger("agent_dispatch.remote_agent")


class RemoteAgentClient:
    """Invokes a remote agent: tool discovery, selection, call, and normalization.

    Webhook agents are posted to directly. Tool-protocol agents are asked for
    their tools first; a server that advertises none is treated as a webhook.
    Errors propagate so the orchestrator can fall back.
    """

    def __init__(
        self,
        transport: Optional[McpTransport] = None,
        webhook: Optional[WebhookClient] = None,
        workflows: Optional[WorkflowRunner] = None,
    ) -> None:
        self._transport = transport or McpTransport()
        self._webhook = webhook or WebhookClient()
        self._workflows = workflows or WorkflowRunner(self._transport)

    def invoke(
        self,
        agent: AgentDescriptor,
        endpoint: ResolvedEndpoint,
        query: str,
        context: Sequence[ContextItem] = (),
        history: Sequence[ChatTurn] = (),
    ) -> str:
        url = str(endpoint.url)
        headers = build_headers(endpoint.auth)
        logger.info(
            "Calling agent | name=%s | kind=%s | url=%s | auth=%s",
            agent.display_name, agent.kind.value, url, "yes" if endpoint.auth else "no",
        )
        if agent.kind is AgentKind.WEBHOOK:
            return self._post_webhook(url, headers, query, context, history)

        tools = self._transport.list_tools(url, headers)
        selection = select_tool(tools)
        if selection.kind is SelectionKind.WORKFLOW:
            logger.info("Workflow tool pair detected | url=%s", url)
            return self._workflows.run(url, headers, tools, query, context, history)
        if selection.kind is SelectionKind.TOOL and selection.tool is not None:
            name = selection.tool.name
            logger.info("Calling tool | name=%s", name)
            result = self._transport.call_tool(url, headers, name, tool_arguments(query, context, history))
            raise_for_tool_error(result, name)
            return normalize_response(result)

        logger.info("No MCP tools found, trying webhook format | url=%s", url)
        return self._post_webhook(url, headers, query, context, history)

    def _post_webhook(
        self,
        url: str,
        headers: Mapping[str, str],
        query: str,
        context: Sequence[ContextItem],
        history: Sequence[ChatTurn],
    ) -> str:
        data = self._webhook.post(url, headers, webhook_payload(query, context, history))
        return normalize_response(data)
