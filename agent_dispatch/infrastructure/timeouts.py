from __future__ import annotations

from .config import env_float

MIN_TIMEOUT_SECONDS = 1.0
MAX_TIMEOUT_SECONDS = 120.0


def _bounded(value: float) -> float:
    return min(MAX_TIMEOUT_SECONDS, max(MIN_TIMEOUT_SECONDS, value))


def http_timeout_seconds() -> float:
    """Per round-trip timeout for retrieval, discovery, tool and webhook calls."""
    return _bounded(env_float("RAG_HTTP_TIMEOUT", 20.0))


def health_timeout_seconds() -> float:
    return _bounded(env_float("RAG_HEALTH_TIMEOUT", 10.0))
