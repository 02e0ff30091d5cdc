from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..infrastructure.logging import get_logger
from ..api.rag import rag_query, probe_agent, list_agent_tools
from .parsers import build_parser

logger = get_logger("agent_dispatch.cli")


def _load_json_arg(value: Optional[str], what: str) -> Any:
    """Decode an inline JSON argument or an ``@path`` reference to a JSON file.

    Raises:
        ValueError: The value is neither valid JSON nor a readable JSON file.
    """
    if value is None:
        return None
    raw = value.strip()
    if raw.startswith("@"):
        path = Path(raw[1:]).expanduser()
        if not path.exists():
            raise ValueError(f"{what} file not found: {path}")
        raw = path.read_text(encoding="utf-8")
    try:
        return json.loads(raw)
    except ValueError as ex:
        raise ValueError(f"{what} is not valid JSON: {ex}") from ex


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def ask(ns) -> int:
    """Answer ``--q`` and print the RAG response; exit 2 on validation errors."""
    payload: Dict[str, Any] = {"query": ns.q}
    if getattr(ns, "collection", None):
        payload["collection"] = ns.collection
    if getattr(ns, "k", None) is not None:
        payload["topK"] = int(ns.k)
    if getattr(ns, "min_score", None) is not None:
        payload["minScore"] = float(ns.min_score)
    agent = _load_json_arg(getattr(ns, "agent", None), "Agent config")
    if agent is not None:
        payload["agent"] = agent
    history = _load_json_arg(getattr(ns, "history", None), "History")
    if history is not None:
        payload["history"] = history

    result = rag_query(payload)
    _print(result)
    return 2 if "code" in result else 0


def probe(ns) -> int:
    result = probe_agent(_load_json_arg(ns.agent, "Agent config") or {})
    _print(result)
    if "code" in result:
        return 2
    return 0 if result.get("healthy") else 1


def tools(ns) -> int:
    result = list_agent_tools(_load_json_arg(ns.agent, "Agent config") or {})
    _print(result)
    if "code" in result:
        return 2
    return 0 if result.get("status") == "ok" else 1


def dispatch_commands(ns) -> int:
    """
    Dispatches CLI commands.

    Commands:
    - ask: answer a question through the configured agent (local when --agent is omitted)
    - probe-agent: health-check the endpoint resolved from --agent
    - list-tools: discover the agent's tools and show which one a query would use
    """
    if ns.cmd == "ask":
        return ask(ns)
    if ns.cmd == "probe-agent":
        return probe(ns)
    if ns.cmd == "list-tools":
        return tools(ns)

    print(json.dumps({"status": "error", "error": f"Unknown command: {ns.cmd}"}))
    return 2


def run(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    ns = ap.parse_args(list(argv or []))
    try:
        return dispatch_commands(ns)
    except ValueError as ex:
        print(json.dumps({"status": "error", "error": str(ex)}))
        return 2
    except Exception as ex:  # keep CLI concise and user-friendly
        logger.error("Command failed | cmd=%s | error=%s", ns.cmd, ex)
        print(json.dumps({"status": "error", "error": f"{type(ex).__name__}: {ex}"}))
        return 3


def main() -> int:
    import sys

    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
