from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Agent dispatch (RAG + MCP/webhook agents)")
    sub = ap.add_subparsers(dest="cmd", required=False)

    # Answer a question through the configured agent
    ask = sub.add_parser("ask")
    ask.add_argument("--q", required=True, help="Question text")
    ask.add_argument("--collection", required=False, help="Collection to retrieve context from")
    ask.add_argument("--k", type=int, default=None, help="Passages to retrieve (defaults to RAG_DEFAULT_TOP_K or 5)")
    ask.add_argument("--min-score", type=float, default=None, help="Minimum similarity in [0,1]")
    add_agent_argument(ask, required=False)
    ask.add_argument("--history", default=None, help="JSON list of {role, text} turns, or @path to a JSON file")

    add_agent_argument(sub.add_parser("probe-agent"), required=True)
    add_agent_argument(sub.add_parser("list-tools"), required=True)

    return ap


def add_agent_argument(parser, required):
    """
    Adds the shared --agent option to a subparser.

    The value is either inline JSON or ``@path`` pointing at a JSON file holding
    the agent configuration ({type, name, endpoint, authHeader, config}).
    """
    parser.add_argument(
        "--agent",
        required=required,
        default=None,
        help="Agent config as JSON, or @path to a JSON file",
    )
    return parser
