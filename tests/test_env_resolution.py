"""
Unit tests for environment variable resolution.

Tests .env parsing, process-env precedence and the bounded defaults derived
from configuration (timeouts, retrieval defaults, history window).
"""

import os
import tempfile
from pathlib import Path
import pytest

from agent_dispatch.infrastructure.config import (
    _parse_dotenv,
    default_min_score,
    default_top_k,
    env_get,
    generation_model,
    history_turns,
    qdrant_url,
)
from agent_dispatch.infrastructure.timeouts import health_timeout_seconds, http_timeout_seconds


@pytest.mark.env
class TestDotenvParsing:
    """Test .env file parsing functionality."""

    def test_parse_empty_dotenv(self):
        """Test parsing an empty .env file returns empty dict."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.env', delete=False) as f:
            f.write("")
            temp_path = Path(f.name)

        try:
            assert _parse_dotenv(temp_path) == {}
        finally:
            temp_path.unlink()

    def test_parse_simple_dotenv(self):
        """Test parsing basic KEY=VALUE pairs with quotes and comments."""
        content = """
# Comment line
RAG_HTTP_TIMEOUT=15
QDRANT_URL=http://localhost:6333
GENERATION_MODEL="llama3.2"
OLLAMA_URL='http://localhost:11434'
"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.env', delete=False) as f:
            f.write(content)
            temp_path = Path(f.name)

        try:
            assert _parse_dotenv(temp_path) == {
                'RAG_HTTP_TIMEOUT': '15',
                'QDRANT_URL': 'http://localhost:6333',
                'GENERATION_MODEL': 'llama3.2',
                'OLLAMA_URL': 'http://localhost:11434',
            }
        finally:
            temp_path.unlink()

    def test_parse_malformed_lines_ignored(self):
        """Test that malformed lines are silently ignored."""
        content = "VALID=1\ninvalid line\n=MISSING_KEY\nSPACED = value\n"
        with tempfile.NamedTemporaryFile(mode='w', suffix='.env', delete=False) as f:
            f.write(content)
            temp_path = Path(f.name)

        try:
            assert _parse_dotenv(temp_path) == {'VALID': '1', 'SPACED': 'value'}
        finally:
            temp_path.unlink()

    def test_missing_file(self, tmp_path):
        """Test a nonexistent path yields an empty mapping."""
        assert _parse_dotenv(tmp_path / "absent.env") == {}


@pytest.mark.env
class TestEnvPrecedence:
    """Test process env over .env in the working directory."""

    def test_process_env_wins(self, clean_environment, isolated_cwd, monkeypatch):
        (isolated_cwd / ".env").write_text("QDRANT_URL=http://from-file:6333\n")
        monkeypatch.setenv("QDRANT_URL", "http://from-env:6333/")
        assert qdrant_url() == "http://from-env:6333"

    def test_dotenv_fallback(self, clean_environment, isolated_cwd):
        (isolated_cwd / ".env").write_text("GENERATION_MODEL=mistral\n")
        assert env_get("GENERATION_MODEL") == "mistral"
        assert generation_model() == "mistral"

    def test_blank_values_are_unset(self, clean_environment, isolated_cwd, monkeypatch):
        monkeypatch.setenv("GENERATION_MODEL", "   ")
        assert generation_model() is None


@pytest.mark.env
class TestBoundedDefaults:
    """Test timeouts and retrieval defaults stay within their ranges."""

    def test_defaults(self, clean_environment, isolated_cwd):
        assert http_timeout_seconds() == 20.0
        assert health_timeout_seconds() == 10.0
        assert default_top_k() == 5
        assert default_min_score() == 0.5
        assert history_turns() == 10

    @pytest.mark.parametrize("raw,expected", [("0", 1.0), ("500", 120.0), ("45", 45.0), ("abc", 20.0)])
    def test_http_timeout_clamped(self, clean_environment, isolated_cwd, monkeypatch, raw, expected):
        monkeypatch.setenv("RAG_HTTP_TIMEOUT", raw)
        assert http_timeout_seconds() == expected

    def test_health_timeout_clamped(self, clean_environment, isolated_cwd, monkeypatch):
        monkeypatch.setenv("RAG_HEALTH_TIMEOUT", "-3")
        assert health_timeout_seconds() == 1.0

    def test_retrieval_defaults_clamped(self, clean_environment, isolated_cwd, monkeypatch):
        monkeypatch.setenv("RAG_DEFAULT_TOP_K", "0")
        monkeypatch.setenv("RAG_DEFAULT_MIN_SCORE", "1.7")
        monkeypatch.setenv("RAG_HISTORY_TURNS", "-2")
        assert default_top_k() == 1
        assert default_min_score() == 1.0
        assert history_turns() == 0

    def test_environment_is_restored(self, clean_environment):
        """Test the fixture leaves no timeout override behind."""
        assert "RAG_HTTP_TIMEOUT" not in os.environ
