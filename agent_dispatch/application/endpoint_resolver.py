"""
Endpoint resolution.

Single adapter from the typed ``AgentConfig`` union to the canonical
``(url, auth)`` pair used by the rest of the dispatcher. Gateway-style
configs (``supergateway --sse <url> --header authorization:<token>``) hide the
endpoint inside a command-line argument list, so the list is mined after the
explicit fields have been tried.
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

from ..domain.errors import EndpointUnresolved
from ..domain.models import AgentDescriptor, CommandAgentConfig, ResolvedEndpoint

TRANSPORT_FLAGS = ("--streamableHttp", "--sse")
HEADER_FLAG = "--header"
_AUTH_PREFIX = "authorization:"
_ABSOLUTE_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://\S+")


def _arg_after_flag(args: Sequence[str], flags: Sequence[str]) -> Optional[str]:
    for i, arg in enumerate(args):
        if arg in flags and i + 1 < len(args) and args[i + 1].strip():
            return args[i + 1].strip()
    return None


def _first_absolute_url(args: Sequence[str]) -> Optional[str]:
    for arg in args:
        if _ABSOLUTE_URL.match(arg.strip()):
            return arg.strip()
    return None


def _auth_from_header_args(args: Sequence[str]) -> Optional[str]:
    for i, arg in enumerate(args[:-1]):
        if arg != HEADER_FLAG:
            continue
        value = args[i + 1].strip()
        if value.lower().startswith(_AUTH_PREFIX):
            token = value[len(_AUTH_PREFIX):].strip()
            if token:
                return token
    return None


def resolve_url(agent: AgentDescriptor) -> Optional[str]:
    cfg = agent.config
    if agent.direct_endpoint:
        return agent.direct_endpoint
    for candidate in (cfg.webhook_url, cfg.url, cfg.base_url):
        if candidate:
            return candidate
    if isinstance(cfg, CommandAgentConfig) and cfg.args:
        return _arg_after_flag(cfg.args, TRANSPORT_FLAGS) or _first_absolute_url(cfg.args)
    return None


def resolve_auth(agent: AgentDescriptor) -> Optional[str]:
    cfg = agent.config
    if agent.direct_auth:
        return agent.direct_auth
    if cfg.auth_token:
        return cfg.auth_token
    if isinstance(cfg, CommandAgentConfig) and cfg.args:
        return _auth_from_header_args(cfg.args)
    return None


def resolve_endpoint(agent: Optional[AgentDescriptor]) -> ResolvedEndpoint:
    """Return the callable URL and credential for ``agent``; a missing URL is a normal outcome."""
    if agent is None:
        return ResolvedEndpoint(url=None)
    return ResolvedEndpoint(url=resolve_url(agent), auth=resolve_auth(agent))


def require_endpoint(agent: AgentDescriptor) -> ResolvedEndpoint:
    """Like ``resolve_endpoint`` but raises ``EndpointUnresolved`` when no URL is found."""
    resolved = resolve_endpoint(agent)
    if not resolved.found:
        raise EndpointUnresolved(agent.display_name)
    return resolved
