"""
Tool selection.

Picks the tool to call from a discovered set through an ordered chain of
matcher strategies. The first matcher that returns a selection wins; matchers
can be added or removed without touching the orchestrator.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..domain.models import ToolDescriptor

WORKFLOW_SEARCH_TOOL = "search_workflows"
WORKFLOW_EXECUTE_TOOL = "execute_workflow"

# Order encodes priority.
DEFAULT_TOOL_HINTS = (
    "chat",
    "message",
    "ask",
    "query",
    "ai",
    "assistant",
    "agent",
    "send_message",
    "process",
    "execute",
    "run",
)


class SelectionKind(str, Enum):
    WORKFLOW = "workflow"
    TOOL = "tool"
    NONE = "none"


@dataclass(frozen=True)
class ToolSelection:
    """Tagged result of tool selection; ``tool`` is set only for TOOL."""
    kind: SelectionKind
    tool: Optional[ToolDescriptor] = None


class ToolMatcher(ABC):
    """One selection heuristic; returns None to defer to the next matcher."""

    @abstractmethod
    def match(self, tools: Sequence[ToolDescriptor], hints: Sequence[str]) -> Optional[ToolSelection]:
        raise NotImplementedError


class WorkflowVendorMatcher(ToolMatcher):
    """Detects the search-then-execute workflow management pair."""

    def match(self, tools: Sequence[ToolDescriptor], hints: Sequence[str]) -> Optional[ToolSelection]:
        names = {t.name for t in tools}
        if WORKFLOW_SEARCH_TOOL in names and WORKFLOW_EXECUTE_TOOL in names:
            return ToolSelection(kind=SelectionKind.WORKFLOW)
        return None


class NameHintMatcher(ToolMatcher):
    """First tool whose lower-cased name contains any hint substring."""

    def match(self, tools: Sequence[ToolDescriptor], hints: Sequence[str]) -> Optional[ToolSelection]:
        lowered = [h.lower() for h in hints]
        for tool in tools:
            name = tool.name.lower()
            if any(h in name for h in lowered):
                return ToolSelection(kind=SelectionKind.TOOL, tool=tool)
        return None


class FirstToolMatcher(ToolMatcher):
    def match(self, tools: Sequence[ToolDescriptor], hints: Sequence[str]) -> Optional[ToolSelection]:
        if tools:
            return ToolSelection(kind=SelectionKind.TOOL, tool=tools[0])
        return None


DEFAULT_MATCHERS = (WorkflowVendorMatcher(), NameHintMatcher(), FirstToolMatcher())


def select_tool(
    tools: Sequence[ToolDescriptor],
    name_hints: Sequence[str] = DEFAULT_TOOL_HINTS,
    matchers: Sequence[ToolMatcher] = DEFAULT_MATCHERS,
) -> ToolSelection:
    """Run the matcher chain; an empty tool set yields ``SelectionKind.NONE``."""
    for matcher in matchers:
        selection = matcher.match(tools, name_hints)
        if selection is not None:
            return selection
    return ToolSelection(kind=SelectionKind.NONE)
