"""
Tests for the search-then-execute workflow flow and its list parsers.
"""

import json
from unittest.mock import Mock

from agent_dispatch.application.workflows import (
    SEARCH_ARGUMENTS,
    JsonArrayParser,
    LabelPairParser,
    QuotedPairParser,
    WorkflowRunner,
    parse_workflows,
)
from agent_dispatch.domain.errors import TransportError
from agent_dispatch.domain.models import ChatTurn, ToolDescriptor

URL = "http://n8n.local/mcp"
TOOLS = [ToolDescriptor(name="search_workflows"), ToolDescriptor(name="execute_workflow")]


def _text_result(text):
    return {"content": [{"type": "text", "text": text}]}


class TestParsers:
    def test_json_array(self):
        text = 'Found: [{"id": "wf1", "name": "Support"}, {"id": 7}]'
        refs = JsonArrayParser().parse(text)
        assert [(r.id, r.name) for r in refs] == [("wf1", "Support"), ("7", "7")]

    def test_label_pairs(self):
        text = "1. ID: abc-1, Name: Support Flow\n2. ID: xyz_2 Name: Sales\n"
        refs = LabelPairParser().parse(text)
        assert [(r.id, r.name) for r in refs] == [("abc-1", "Support Flow"), ("xyz_2", "Sales")]

    def test_quoted_pairs(self):
        text = '{"data": {"id": "q1", "active": true, "name": "Quoted"}, broken'
        refs = QuotedPairParser().parse(text)
        assert [(r.id, r.name) for r in refs] == [("q1", "Quoted")]

    def test_chain_deduplicates(self):
        text = json.dumps([{"id": "a", "name": "A"}, {"id": "a", "name": "A again"}, {"id": "b"}])
        assert [r.id for r in parse_workflows(text)] == ["a", "b"]

    def test_chain_falls_through_to_labels(self):
        assert [r.id for r in parse_workflows("ID: w9 Name: Nine")] == ["w9"]

    def test_nothing_found(self):
        assert parse_workflows("no workflows here") == []
        assert parse_workflows("") == []


class TestWorkflowRunner:
    def test_executes_first_workflow(self):
        transport = Mock()
        transport.call_tool.side_effect = [
            _text_result('[{"id": "wf1", "name": "Support"}, {"id": "wf2", "name": "Other"}]'),
            _text_result("Workflow says hi"),
        ]
        history = [ChatTurn(role="user", text="earlier")]
        out = WorkflowRunner(transport).run(URL, {}, TOOLS, "hello", history=history)

        assert out == "Workflow says hi"
        search_call, execute_call = transport.call_tool.call_args_list
        assert search_call.args[2] == "search_workflows"
        assert search_call.args[3] == SEARCH_ARGUMENTS
        assert execute_call.args[2] == "execute_workflow"
        arguments = execute_call.args[3]
        assert arguments["workflowId"] == "wf1"
        inputs = arguments["inputs"]
        for key in ("message", "query", "input", "chatInput"):
            assert inputs[key] == "hello"
        assert inputs["history"] == [{"role": "user", "content": "earlier"}]
        assert inputs["context"] == ""

    def test_no_workflows_lists_tools(self):
        transport = Mock()
        transport.call_tool.return_value = _text_result("Nothing active.")
        out = WorkflowRunner(transport).run(URL, {}, TOOLS, "hello")
        assert "Available tools: search_workflows, execute_workflow" in out
        assert transport.call_tool.call_count == 1

    def test_failure_becomes_remediation(self):
        transport = Mock()
        transport.call_tool.side_effect = TransportError("execute_workflow returned HTTP 500: boom")
        out = WorkflowRunner(transport).run(URL, {}, TOOLS, "hello")
        assert "Available in MCP" in out
        assert "Webhook" in out
        assert "HTTP 500" in out

    def test_flagged_execute_result_becomes_remediation(self):
        transport = Mock()
        transport.call_tool.side_effect = [
            _text_result("ID: wf1 Name: Support"),
            {"isError": True, "content": [{"text": "Workflow is not available in MCP"}]},
        ]
        out = WorkflowRunner(transport).run(URL, {}, TOOLS, "hello")
        assert "To fix this" in out
        assert "Workflow is not available in MCP" in out
