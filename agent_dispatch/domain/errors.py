from __future__ import annotations

from typing import Optional


class ValidationError(ValueError):
    """Raised when a request violates the inbound contract (e.g., missing query)."""

    code = "VALIDATION_ERROR"


class DispatchError(RuntimeError):
    """Base class for recoverable failures inside one orchestration call."""


class RetrievalError(DispatchError):
    """Raised when the context-retrieval collaborator fails."""


class EndpointUnresolved(DispatchError):
    """Raised when no callable URL can be mined from an agent configuration."""

    def __init__(self, agent_name: str) -> None:
        super().__init__(f"No HTTP endpoint configured for {agent_name}")
        self.agent_name = agent_name


class TransportError(DispatchError):
    """Raised on non-2xx status, network failure or unparseable body from a remote call."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ToolInvocationError(DispatchError):
    """Raised when a remote tool answers with a protocol-level error object."""

    def __init__(self, message: str, tool: Optional[str] = None) -> None:
        super().__init__(message)
        self.tool = tool
