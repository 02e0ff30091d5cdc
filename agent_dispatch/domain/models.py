from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

DEFAULT_AGENT_LABEL = "Vector Search"


class AgentKind(str, Enum):
    """Kind of downstream responder configured for a request."""

    LOCAL = "local"
    MCP = "mcp"
    WEBHOOK = "webhook"
    NONE = "none"

    @classmethod
    def parse(cls, value: object) -> "AgentKind":
        """Map a wire value (including legacy aliases) onto a kind; unknown values mean NONE.

        NONE is still dispatched by endpoint: only LOCAL answers without a remote attempt.
        """
        raw = str(value or "").strip().lower()
        aliases = {
            "mock": cls.LOCAL,
            "local": cls.LOCAL,
            "mcp": cls.MCP,
            "tool": cls.MCP,
            "remote-tool-protocol": cls.MCP,
            "webhook": cls.WEBHOOK,
            "http": cls.WEBHOOK,
        }
        return aliases.get(raw, cls.NONE)

    @property
    def answers_locally(self) -> bool:
        return self is AgentKind.LOCAL


@dataclass(frozen=True)
class ChatTurn:
    """One prior conversation turn.

    Fields:
        role: Speaker label ("user" / "assistant").
        text: Message text.
    """
    role: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.text}


@dataclass(frozen=True)
class HttpAgentConfig:
    """Agent reached over plain HTTP (webhook, SSE or streamable-HTTP server)."""
    transport: str = "http"
    webhook_url: Optional[str] = None
    url: Optional[str] = None
    base_url: Optional[str] = None
    auth_token: Optional[str] = None


@dataclass(frozen=True)
class CommandAgentConfig:
    """Agent declared as a launch command (e.g. a stdio gateway).

    Fields:
        command: Executable name as configured (never executed here).
        args: Command-line arguments; URLs and auth headers may be embedded.
    """
    transport: str = "stdio"
    command: Optional[str] = None
    args: Tuple[str, ...] = ()
    webhook_url: Optional[str] = None
    url: Optional[str] = None
    base_url: Optional[str] = None
    auth_token: Optional[str] = None


AgentConfig = Union[HttpAgentConfig, CommandAgentConfig]


def _opt_str(*values: object) -> Optional[str]:
    for v in values:
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def parse_agent_config(raw: object) -> AgentConfig:
    """Translate a loosely-typed vendor config mapping into the closed AgentConfig union."""
    if not isinstance(raw, Mapping):
        return HttpAgentConfig()
    transport = str(raw.get("type") or raw.get("transport") or "").strip().lower()
    common = {
        "webhook_url": _opt_str(raw.get("webhookUrl"), raw.get("webhook_url")),
        "url": _opt_str(raw.get("url")),
        "base_url": _opt_str(raw.get("baseUrl"), raw.get("base_url")),
        "auth_token": _opt_str(raw.get("authToken"), raw.get("auth_token")),
    }
    raw_args = raw.get("args")
    if isinstance(raw_args, (list, tuple)) or transport == "stdio" or raw.get("command"):
        args = tuple(a for a in (raw_args or ()) if isinstance(a, str))
        return CommandAgentConfig(
            transport=transport or "stdio",
            command=_opt_str(raw.get("command")),
            args=args,
            **common,
        )
    return HttpAgentConfig(transport=transport or "http", **common)


@dataclass(frozen=True)
class AgentDescriptor:
    """A configured downstream responder.

    Fields:
        kind: Which branch the orchestrator takes.
        display_name: Label reported in RAGResponse.agent_used.
        direct_endpoint: Explicit URL (highest resolution priority).
        direct_auth: Explicit credential.
        config: Typed view of the vendor-specific raw config.
    """
    kind: AgentKind
    display_name: str = DEFAULT_AGENT_LABEL
    direct_endpoint: Optional[str] = None
    direct_auth: Optional[str] = None
    config: AgentConfig = field(default_factory=HttpAgentConfig)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "AgentDescriptor":
        return cls(
            kind=AgentKind.parse(raw.get("type") or raw.get("kind")),
            display_name=_opt_str(raw.get("name"), raw.get("displayName")) or DEFAULT_AGENT_LABEL,
            direct_endpoint=_opt_str(raw.get("endpoint")),
            direct_auth=_opt_str(raw.get("authHeader"), raw.get("auth")),
            config=parse_agent_config(raw.get("config") or raw.get("rawConfig")),
        )


@dataclass(frozen=True)
class ResolvedEndpoint:
    """Canonical (url, auth) pair produced by the endpoint resolver."""
    url: Optional[str]
    auth: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.url)


@dataclass(frozen=True)
class ContextItem:
    """A retrieved passage.

    Fields:
        id: Point/document identifier.
        content: Passage text.
        score: Similarity score in [0, 1]; higher is better.
        metadata: Source metadata (``source`` is used for citations).
    """
    id: str
    content: str
    score: float
    metadata: Dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "content": self.content, "score": self.score, "metadata": dict(self.metadata)}


@dataclass(frozen=True)
class ContextQuery:
    """Parameters handed to the context-retrieval collaborator."""
    query_text: str
    top_k: int = 5
    min_score: float = 0.5
    include_content: bool = True
    include_metadata: bool = True


@dataclass(frozen=True)
class RAGRequest:
    query: str
    collection: Optional[str] = None
    top_k: int = 5
    min_score: float = 0.5
    history: Tuple[ChatTurn, ...] = ()
    agent: Optional[AgentDescriptor] = None


@dataclass(frozen=True)
class RAGResponse:
    """The only externally observable result of an orchestration call."""
    response: str
    context: Tuple[ContextItem, ...]
    agent_used: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "context": [c.to_dict() for c in self.context],
            "agentUsed": self.agent_used,
        }


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class WorkflowRef:
    id: str
    name: str


@dataclass(frozen=True)
class HealthCheckResult:
    """Outcome of probing an agent endpoint."""
    healthy: bool
    latency_ms: Optional[int] = None
    error: Optional[str] = None
    server_info: Optional[Dict[str, object]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"healthy": self.healthy}
        if self.latency_ms is not None:
            out["latency"] = self.latency_ms
        if self.error:
            out["error"] = self.error
        if self.server_info:
            out["serverInfo"] = dict(self.server_info)
        return out


@dataclass(frozen=True)
class Vector:
    """Embedding vector with explicit dimension.

    Fields:
        values: The numeric embedding.
        dim: Dimension.
    """
    values: List[float]
    dim: int


@dataclass(frozen=True)
class QueryResult:
    """Vector search match returned by the store.

    Fields:
        id: Point ID.
        score: Similarity score (store-defined; higher is better for cosine).
        payload: Returned payload.
    """
    id: str
    score: float
    payload: Dict[str, object]
