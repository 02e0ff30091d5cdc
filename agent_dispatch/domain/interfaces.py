from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Mapping

from .models import Vector, QueryResult, ContextItem, ContextQuery


class EmbeddingService(ABC):
    """Port for embedding provider (e.g., Ollama)."""

    @abstractmethod
    def embed_texts(self, texts: List[str]) -> List[Vector]:
        """Embed a batch of texts into vectors.

        Raises:
            Exception: Provider/network failures should surface; use-case decides.
        """
        raise NotImplementedError


class VectorStore(ABC):
    """Port for vector storage (e.g., Qdrant)."""

    @abstractmethod
    def search(
        self,
        name: str,
        vector: Vector,
        limit: int = 5,
        with_payload: bool = True,
        score_threshold: Optional[float] = None,
    ) -> List[QueryResult]:
        """Search similar points; returns list of QueryResult."""
        raise NotImplementedError


class ContextRetriever(ABC):
    """Port for the context-retrieval collaborator."""

    @abstractmethod
    def search(self, collection: str, query: ContextQuery) -> List[ContextItem]:
        """Return passages for ``query`` ordered by relevance.

        Raises:
            RetrievalError: Unknown collection or provider failure; callers treat it as "no context".
        """
        raise NotImplementedError


class TextGenerator(ABC):
    """Port for an optional generative text backend."""

    @abstractmethod
    def complete(self, system_prompt: str, messages: Sequence[Mapping[str, str]]) -> str:
        """Return the assistant reply for ``messages`` grounded by ``system_prompt``."""
        raise NotImplementedError
