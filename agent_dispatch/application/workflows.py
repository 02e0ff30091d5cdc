"""
Workflow-vendor execution flow.

Servers exposing both ``search_workflows`` and ``execute_workflow`` (n8n's MCP
server) cannot be driven through a single tool call: the flow searches for
active workflows, runs the first one with the query, and answers with the
workflow output. Failures are turned into setup guidance, never raised.
"""
from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Sequence

from ..domain.models import ChatTurn, ContextItem, ToolDescriptor, WorkflowRef
from ..infrastructure.logging import get_logger
from ..infrastructure.mcp.client import McpTransport
from .envelopes import workflow_inputs
from .normalizer import normalize_response, raise_for_tool_error
from .tool_selection import WORKFLOW_EXECUTE_TOOL, WORKFLOW_SEARCH_TOOL

logger = get_logger("agent_dispatch.workflows")

SEARCH_ARGUMENTS = {"active": True, "limit": 50}


class WorkflowListParser(ABC):
    """One strategy for reading ``{id, name}`` pairs out of a search reply."""

    @abstractmethod
    def parse(self, text: str) -> List[WorkflowRef]:
        raise NotImplementedError


class JsonArrayParser(WorkflowListParser):
    """Parses the first bracketed substring as a JSON array of workflow objects."""

    _BRACKETED = re.compile(r"\[.*\]", re.S)

    def parse(self, text: str) -> List[WorkflowRef]:
        m = self._BRACKETED.search(text)
        if not m:
            return []
        try:
            data = json.loads(m.group(0))
        except ValueError:
            return []
        if not isinstance(data, list):
            return []
        out: List[WorkflowRef] = []
        for it in data:
            if isinstance(it, dict) and it.get("id") not in (None, ""):
                wid = str(it["id"])
                out.append(WorkflowRef(id=wid, name=str(it.get("name") or wid)))
        return out


class LabelPairParser(WorkflowListParser):
    """Reads ``ID: <id> ... Name: <name>`` label pairs from prose listings."""

    _PAIR = re.compile(r"\bID:\s*([\w-]+).*?\bName:\s*([^\n]+)", re.S | re.I)

    def parse(self, text: str) -> List[WorkflowRef]:
        return [
            WorkflowRef(id=wid, name=name.strip().rstrip(",;|").strip() or wid)
            for wid, name in self._PAIR.findall(text)
        ]


class QuotedPairParser(WorkflowListParser):
    """Reads ``"id": ..., "name": "..."`` pairs from JSON-ish text that did not parse as a whole."""

    _PAIR = re.compile(r'"id"\s*:\s*"?([\w-]+)"?[^{}]*?"name"\s*:\s*"([^"]*)"', re.S)

    def parse(self, text: str) -> List[WorkflowRef]:
        return [WorkflowRef(id=wid, name=name or wid) for wid, name in self._PAIR.findall(text)]


DEFAULT_PARSERS = (JsonArrayParser(), LabelPairParser(), QuotedPairParser())


def parse_workflows(text: str, parsers: Sequence[WorkflowListParser] = DEFAULT_PARSERS) -> List[WorkflowRef]:
    """Try each parser in order; later parsers run only when earlier ones found nothing."""
    for parser in parsers:
        found = parser.parse(text or "")
        if found:
            seen: set[str] = set()
            uniq: List[WorkflowRef] = []
            for wf in found:
                if wf.id not in seen:
                    seen.add(wf.id)
                    uniq.append(wf)
            return uniq
    return []


def no_workflows_message(tools: Sequence[ToolDescriptor]) -> str:
    names = ", ".join(t.name for t in tools) or "none"
    return (
        "No active workflows were found on the connected n8n server.\n\n"
        f"Available tools: {names}\n\n"
        "Activate a workflow and enable MCP access in its settings, then ask again."
    )


def remediation_message(error: Exception) -> str:
    return (
        "⚠️ Could not run an n8n workflow through its MCP server.\n"
        f"*Error: {str(error)[:300]}*\n\n"
        "**To fix this, choose one of:**\n"
        "1. In n8n, open the workflow, enable **Available in MCP** in the workflow settings and activate it.\n"
        "2. Add a **Webhook** trigger to the workflow and use its production webhook URL as this "
        "connection's endpoint instead of the MCP server URL."
    )


class WorkflowRunner:
    """Runs the search-then-execute sequence against a workflow-vendor MCP server."""

    def __init__(self, transport: McpTransport) -> None:
        self._transport = transport

    def run(
        self,
        url: str,
        headers: Mapping[str, str],
        tools: Sequence[ToolDescriptor],
        query: str,
        context: Sequence[ContextItem] = (),
        history: Sequence[ChatTurn] = (),
    ) -> str:
        try:
            found = self._transport.call_tool(url, headers, WORKFLOW_SEARCH_TOOL, SEARCH_ARGUMENTS)
            raise_for_tool_error(found, WORKFLOW_SEARCH_TOOL)
            workflows = parse_workflows(normalize_response(found))
            if not workflows:
                logger.warning("No workflows found | url=%s", url)
                return no_workflows_message(tools)

            chosen = workflows[0]
            logger.info("Executing workflow | id=%s | name=%s | candidates=%d", chosen.id, chosen.name, len(workflows))
            arguments: Mapping[str, Any] = {
                "workflowId": chosen.id,
                "inputs": workflow_inputs(query, context, history),
            }
            result = self._transport.call_tool(url, headers, WORKFLOW_EXECUTE_TOOL, arguments)
            raise_for_tool_error(result, WORKFLOW_EXECUTE_TOOL)
            return normalize_response(result)
        except Exception as ex:
            logger.error("Workflow flow failed | url=%s | error=%s: %s", url, type(ex).__name__, ex)
            return remediation_message(ex)
