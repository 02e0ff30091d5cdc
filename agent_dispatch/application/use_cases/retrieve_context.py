from __future__ import annotations

from typing import Dict, List

from ...domain.errors import RetrievalError
from ...domain.interfaces import ContextRetriever, EmbeddingService, VectorStore
from ...domain.models import ContextItem, ContextQuery, QueryResult, Vector


def _to_context_item(hit: QueryResult, query: ContextQuery) -> ContextItem:
    payload = hit.payload or {}
    content = ""
    if query.include_content:
        content = str(payload.get("content") or payload.get("text") or payload.get("text_preview") or "")
    metadata: Dict[str, object] = {}
    if query.include_metadata:
        raw_meta = payload.get("metadata") or payload.get("meta")
        if isinstance(raw_meta, dict):
            metadata = dict(raw_meta)
        else:
            metadata = {k: v for k, v in payload.items() if k not in ("content", "text", "text_preview")}
    return ContextItem(id=hit.id, content=content, score=hit.score, metadata=metadata)


class VectorSearchRetriever(ContextRetriever):
    """Use-case: embed the query text and search the store for grounding passages."""

    def __init__(self, embeddings: EmbeddingService, store: VectorStore) -> None:
        self._emb = embeddings
        self._store = store

    def search(self, collection: str, query: ContextQuery) -> List[ContextItem]:
        """
        Embeds ``query.query_text`` and returns matching passages, highest score first.

        Raises:
            RetrievalError: Any embedding or store failure, including an unknown collection.
        """
        try:
            vecs = self._emb.embed_texts([query.query_text])
            if not vecs:
                raise RetrievalError("Embedding provider returned no vector")
            vec = vecs[0]
            hits = self._store.search(
                name=collection,
                vector=Vector(values=vec.values, dim=vec.dim),
                limit=query.top_k,
                with_payload=query.include_content or query.include_metadata,
                score_threshold=query.min_score,
            )
        except RetrievalError:
            raise
        except Exception as ex:
            raise RetrievalError(f"{type(ex).__name__}: {ex}") from ex
        items = [_to_context_item(h, query) for h in hits]
        return sorted(items, key=lambda c: c.score, reverse=True)
