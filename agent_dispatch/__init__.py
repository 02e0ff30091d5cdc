"""Agent dispatch: route RAG questions to local, webhook or MCP tool-server agents."""

__version__ = "0.1.0"
