"""
Tests for context retrieval: the vector-search use case and the Qdrant and
Ollama adapters behind it.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from agent_dispatch.application.use_cases.retrieve_context import VectorSearchRetriever
from agent_dispatch.domain.errors import RetrievalError
from agent_dispatch.domain.models import ContextQuery, QueryResult, Vector
from agent_dispatch.infrastructure.ollama.client import OllamaEmbeddingService, OllamaTextGenerator
from agent_dispatch.infrastructure.qdrant.client import QdrantVectorStore


@pytest.fixture
def embeddings():
    mock = Mock()
    mock.embed_texts.return_value = [Vector(values=[0.1, 0.2], dim=2)]
    return mock


class TestVectorSearchRetriever:
    """Test the embed-then-search use case."""

    def test_search_maps_and_sorts(self, embeddings):
        store = Mock()
        store.search.return_value = [
            QueryResult(id="a", score=0.6, payload={"content": "low", "metadata": {"source": "a.md"}}),
            QueryResult(id="b", score=0.95, payload={"text": "high", "source": "b.md", "page": 2}),
        ]
        items = VectorSearchRetriever(embeddings, store).search("docs", ContextQuery(query_text="q", top_k=4, min_score=0.3))

        assert [i.id for i in items] == ["b", "a"]
        assert items[0].content == "high"
        assert items[0].metadata == {"source": "b.md", "page": 2}
        assert items[1].metadata == {"source": "a.md"}
        kwargs = store.search.call_args.kwargs
        assert kwargs["name"] == "docs"
        assert kwargs["limit"] == 4
        assert kwargs["score_threshold"] == 0.3
        embeddings.embed_texts.assert_called_once_with(["q"])

    def test_content_and_metadata_can_be_excluded(self, embeddings):
        store = Mock()
        store.search.return_value = [QueryResult(id="a", score=0.9, payload={"content": "x", "source": "s"})]
        query = ContextQuery(query_text="q", include_content=False, include_metadata=False)
        item = VectorSearchRetriever(embeddings, store).search("docs", query)[0]
        assert item.content == ""
        assert item.metadata == {}
        assert store.search.call_args.kwargs["with_payload"] is False

    def test_store_failure_wrapped(self, embeddings):
        store = Mock()
        store.search.side_effect = requests.ConnectionError("qdrant down")
        with pytest.raises(RetrievalError) as exc:
            VectorSearchRetriever(embeddings, store).search("docs", ContextQuery(query_text="q"))
        assert "qdrant down" in str(exc.value)

    def test_empty_embedding(self):
        embeddings = Mock()
        embeddings.embed_texts.return_value = []
        with pytest.raises(RetrievalError):
            VectorSearchRetriever(embeddings, Mock()).search("docs", ContextQuery(query_text="q"))


class TestQdrantVectorStore:
    """Test the Qdrant REST search adapter."""

    @patch("agent_dispatch.infrastructure.qdrant.client.requests.post")
    def test_search_request(self, mock_post, http_response, clean_environment, isolated_cwd):
        mock_post.return_value = http_response(body={"result": [{"id": 7, "score": 0.8, "payload": {"content": "c"}}]})
        hits = QdrantVectorStore().search("docs", Vector(values=[1.0], dim=1), limit=3, score_threshold=0.5)

        assert hits == [QueryResult(id="7", score=0.8, payload={"content": "c"})]
        args, kwargs = mock_post.call_args
        assert args[0] == "http://localhost:6333/collections/docs/points/search"
        assert kwargs["json"]["limit"] == 3
        assert kwargs["json"]["score_threshold"] == 0.5
        assert kwargs["timeout"] == 20.0

    @patch("agent_dispatch.infrastructure.qdrant.client.requests.post")
    def test_unknown_collection(self, mock_post, http_response, clean_environment, isolated_cwd):
        mock_post.return_value = http_response(status_code=404, text="Not found")
        with pytest.raises(RetrievalError) as exc:
            QdrantVectorStore().search("missing", Vector(values=[1.0], dim=1))
        assert "missing" in str(exc.value)


class TestOllamaAdapters:
    """Test the Ollama embedding and chat adapters."""

    @patch("agent_dispatch.infrastructure.ollama.client.requests.post")
    def test_embed_texts(self, mock_post, http_response, clean_environment, isolated_cwd):
        mock_post.return_value = http_response(body={"embedding": [1, 2, 3]})
        vecs = OllamaEmbeddingService().embed_texts(["hello"])
        assert vecs == [Vector(values=[1.0, 2.0, 3.0], dim=3)]
        assert mock_post.call_args.kwargs["json"] == {"model": "mxbai-embed-large", "prompt": "hello"}

    def test_embed_nothing(self):
        assert OllamaEmbeddingService().embed_texts([]) == []

    @patch("agent_dispatch.infrastructure.ollama.client.requests.post")
    def test_chat_completion(self, mock_post, http_response, clean_environment, isolated_cwd):
        mock_post.return_value = http_response(body={"message": {"role": "assistant", "content": " answer "}})
        generator = OllamaTextGenerator("mistral")
        out = generator.complete("system text", [{"role": "user", "content": "q"}])

        assert out == "answer"
        body = mock_post.call_args.kwargs["json"]
        assert body["model"] == "mistral"
        assert body["stream"] is False
        assert body["messages"][0] == {"role": "system", "content": "system text"}
        assert body["messages"][1] == {"role": "user", "content": "q"}

    @patch("agent_dispatch.infrastructure.ollama.client.requests.post")
    def test_empty_chat_reply(self, mock_post, http_response, clean_environment, isolated_cwd):
        mock_post.return_value = http_response(body={"message": {"content": ""}})
        with pytest.raises(RuntimeError):
            OllamaTextGenerator("mistral").complete("s", [])

    def test_model_from_environment(self, clean_environment, isolated_cwd, monkeypatch):
        monkeypatch.setenv("GENERATION_MODEL", "phi3")
        assert OllamaTextGenerator().model == "phi3"
