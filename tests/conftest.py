"""
Pytest configuration and fixtures for agent dispatch tests.

Provides retrieved-context samples, agent configurations and fake HTTP
responses shared across the suite.
"""

import json
import os
from unittest.mock import Mock
import pytest

from agent_dispatch.domain.models import ContextItem


def make_http_response(status_code=200, body=None, text=None, reason="OK"):
    """Build a Mock shaped like ``requests.Response``."""
    if text is None:
        text = "" if body is None else json.dumps(body)
    resp = Mock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.reason = reason
    resp.text = text

    def _json():
        return json.loads(text)

    resp.json.side_effect = _json
    return resp


@pytest.fixture
def http_response():
    """Factory for fake ``requests.Response`` objects."""
    return make_http_response


@pytest.fixture
def context_items():
    """Two passages, deliberately out of score order."""
    return [
        ContextItem(id="p2", content="Second passage about billing.", score=0.7, metadata={"source": "billing.md"}),
        ContextItem(id="p1", content="First passage about onboarding.", score=0.9, metadata={"source": "onboarding.md"}),
    ]


@pytest.fixture
def mock_retriever(context_items):
    mock = Mock()
    mock.search.return_value = list(context_items)
    return mock


@pytest.fixture
def gateway_agent_payload():
    """Stdio gateway config with the SSE URL and credential embedded in args."""
    return {
        "type": "mcp",
        "name": "Support Bot",
        "config": {
            "type": "stdio",
            "command": "npx",
            "args": ["-y", "supergateway", "--sse", "http://x/y", "--header", "authorization:Bearer abc"],
        },
    }


@pytest.fixture
def clean_environment():
    """Clean environment variables for testing."""
    env_vars_to_clean = [
        "RAG_HTTP_TIMEOUT",
        "RAG_HEALTH_TIMEOUT",
        "RAG_HISTORY_TURNS",
        "RAG_DEFAULT_TOP_K",
        "RAG_DEFAULT_MIN_SCORE",
        "GENERATION_MODEL",
        "QDRANT_URL",
        "OLLAMA_URL",
        "EMBED_MODEL",
    ]

    original_env = {}
    for var in env_vars_to_clean:
        if var in os.environ:
            original_env[var] = os.environ[var]
            del os.environ[var]

    yield

    for var in env_vars_to_clean:
        os.environ.pop(var, None)
    for var, value in original_env.items():
        os.environ[var] = value


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Run in an empty directory so no stray .env file is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "cli: mark test as CLI command test")
    config.addinivalue_line("markers", "env: mark test as environment resolution test")
