"""
MCP transport adapter.

Issues single JSON-RPC request/response exchanges against tool-protocol
endpoints over HTTP. Bodies may come back as plain JSON or as a
``text/event-stream`` with one or more ``data:`` lines; both are accepted
because servers answer with either regardless of the ``Accept`` header.

Every call carries an explicit timeout and is attempted exactly once.
"""
from __future__ import annotations

import contextlib
import json
import time
from typing import Any, Dict, List, Mapping, Optional

import requests

from ...domain.errors import TransportError, ToolInvocationError
from ...domain.models import ToolDescriptor, HealthCheckResult
from ..logging import get_logger
from ..timeouts import http_timeout_seconds, health_timeout_seconds

logger = get_logger("agent_dispatch.mcp.client")

JSONRPC_VERSION = "2.0"
_SSE_DATA_PREFIX = "data:"
_EXCERPT_CHARS = 200


def _excerpt(text: str, limit: int = _EXCERPT_CHARS) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else f"{text[:limit]}..."


def _request_id() -> int:
    return time.time_ns() // 1_000_000


def build_headers(auth: Optional[str] = None) -> Dict[str, str]:
    """JSON + event-stream negotiation headers, with a Bearer credential when supplied."""
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json, text/event-stream",
    }
    if auth:
        headers["Authorization"] = auth if auth.lower().startswith("bearer ") else f"Bearer {auth}"
    return headers


def parse_body(text: str) -> Any:
    """Return the first parseable ``data:`` line of an event stream, else the whole body as JSON.

    Raises:
        TransportError: Neither form parses.
    """
    if _SSE_DATA_PREFIX in text:
        for raw in text.splitlines():
            line = raw.strip()
            if not line.startswith(_SSE_DATA_PREFIX):
                continue
            try:
                return json.loads(line[len(_SSE_DATA_PREFIX):].strip())
            except ValueError:
                continue
    try:
        return json.loads(text)
    except ValueError as ex:
        raise TransportError(f"Unparseable response body: {_excerpt(text) or '<empty>'}") from ex


class McpTransport:
    """JSON-RPC client for remote tool servers."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def _timeout_seconds(self) -> float:
        return float(self._timeout or http_timeout_seconds())

    def send(self, url: str, method: str, params: Mapping[str, Any], headers: Mapping[str, str]) -> Any:
        """Send one JSON-RPC request and return the parsed reply.

        Raises:
            TransportError: Network failure, timeout, non-2xx status or unparseable body.
        """
        body = {"jsonrpc": JSONRPC_VERSION, "id": _request_id(), "method": method, "params": dict(params)}
        try:
            r = requests.post(url, json=body, headers=dict(headers), timeout=self._timeout_seconds())
        except requests.RequestException as ex:
            raise TransportError(f"{method} request to {url} failed: {ex}") from ex
        if not r.ok:
            raise TransportError(
                f"{method} returned HTTP {r.status_code}: {_excerpt(r.text) or r.reason}",
                status_code=r.status_code,
            )
        return parse_body(r.text)

    def list_tools(self, url: str, headers: Mapping[str, str]) -> List[ToolDescriptor]:
        """Enumerate remote tools; failures are logged and yield an empty list."""
        try:
            payload = self.send(url, "tools/list", {}, headers)
        except TransportError as ex:
            logger.warning("Tool discovery failed | url=%s | error=%s", url, ex)
            return []
        result = payload.get("result") if isinstance(payload, dict) else None
        raw_tools = result.get("tools") if isinstance(result, dict) else None
        if not isinstance(raw_tools, list):
            logger.info("Tool discovery returned no tool list | url=%s", url)
            return []
        tools: List[ToolDescriptor] = []
        for it in raw_tools:
            if not isinstance(it, dict):
                continue
            name = it.get("name")
            if not isinstance(name, str) or not name.strip():
                continue
            desc = it.get("description")
            tools.append(ToolDescriptor(name=name.strip(), description=desc if isinstance(desc, str) else None))
        logger.info("Discovered tools | url=%s | count=%d | names=%s", url, len(tools), ", ".join(t.name for t in tools))
        return tools

    def call_tool(self, url: str, headers: Mapping[str, str], name: str, arguments: Mapping[str, Any]) -> Any:
        """Invoke ``tools/call`` and return the JSON-RPC ``result`` member.

        Raises:
            TransportError: See ``send``.
            ToolInvocationError: The reply carries a JSON-RPC ``error`` object.
        """
        payload = self.send(url, "tools/call", {"name": name, "arguments": dict(arguments)}, headers)
        if not isinstance(payload, dict):
            return payload
        error = payload.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ToolInvocationError(str(message or "Tool call failed"), tool=name)
        return payload.get("result")

    def check_health(self, url: str, timeout: Optional[float] = None) -> HealthCheckResult:
        """Probe ``url`` with a GET and report reachability; never raises."""
        timeout_s = float(timeout or health_timeout_seconds())
        started = time.monotonic()
        try:
            r = requests.get(
                url,
                headers={"Accept": "application/json", "User-Agent": "agent-dispatch/1.0"},
                timeout=timeout_s,
            )
        except requests.Timeout:
            latency = int((time.monotonic() - started) * 1000)
            return HealthCheckResult(healthy=False, latency_ms=latency, error=f"Connection timeout after {int(timeout_s * 1000)}ms")
        except requests.RequestException as ex:
            latency = int((time.monotonic() - started) * 1000)
            logger.error("Health check failed | url=%s | error=%s", url, ex)
            return HealthCheckResult(healthy=False, latency_ms=latency, error=str(ex))

        latency = int((time.monotonic() - started) * 1000)
        if not r.ok:
            return HealthCheckResult(healthy=False, latency_ms=latency, error=f"HTTP {r.status_code}: {r.reason}")

        info: Optional[Dict[str, object]] = None
        with contextlib.suppress(ValueError):
            data = r.json()
            if isinstance(data, dict):
                info = {
                    k: v
                    for k, v in {
                        "name": data.get("name") or data.get("serverName"),
                        "version": data.get("version"),
                        "capabilities": data.get("capabilities"),
                    }.items()
                    if v is not None
                }
        logger.info("Health check passed | url=%s | latency=%dms", url, latency)
        return HealthCheckResult(healthy=True, latency_ms=latency, server_info=info or None)
