from __future__ import annotations

from typing import List, Optional
import requests

from ...domain.errors import RetrievalError
from ...domain.interfaces import VectorStore
from ...domain.models import Vector, QueryResult
from ..timeouts import http_timeout_seconds
from ..config import qdrant_url


class QdrantVectorStore(VectorStore):
    """Vector store adapter for Qdrant REST (read side only)."""

    def search(
        self,
        name: str,
        vector: Vector,
        limit: int = 5,
        with_payload: bool = True,
        score_threshold: Optional[float] = None,
    ) -> List[QueryResult]:
        timeout = http_timeout_seconds()
        base = qdrant_url()
        body = {
            "vector": vector.values,
            "limit": limit,
            "with_vector": False,
            "with_payload": with_payload,
        }
        if score_threshold is not None:
            body["score_threshold"] = float(score_threshold)

        r = requests.post(f"{base}/collections/{name}/points/search", json=body, timeout=timeout)
        if r.status_code == 404:
            raise RetrievalError(f"Collection '{name}' does not exist in Qdrant.")
        r.raise_for_status()
        data = r.json() or {}
        return [
            QueryResult(
                id=str(it.get("id")),
                score=float(it.get("score", 0.0)),
                payload=it.get("payload") or {},
            )
            for it in (data.get("result") or [])
        ]

