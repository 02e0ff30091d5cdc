from __future__ import annotations

from typing import List, Mapping, Optional, Sequence
import requests

from ...domain.interfaces import EmbeddingService, TextGenerator
from ...domain.models import Vector
from ..timeouts import http_timeout_seconds
from ..config import ollama_url, embed_model, generation_model


class OllamaEmbeddingService(EmbeddingService):
    """Embedding adapter for Ollama /api/embeddings."""

    def embed_texts(self, texts: List[str]) -> List[Vector]:
        if not texts:
            return []
        url = f"{ollama_url()}/api/embeddings"
        timeout = http_timeout_seconds()
        model = embed_model()
        out: List[Vector] = []
        for t in texts:
            r = requests.post(url, json={"model": model, "prompt": t}, timeout=timeout)
            r.raise_for_status()
            data = r.json()
            values = [float(x) for x in data["embedding"]]
            out.append(Vector(values=values, dim=len(values)))
        return out


class OllamaTextGenerator(TextGenerator):
    """Generative adapter for Ollama /api/chat (non-streaming)."""

    def __init__(self, model: Optional[str] = None) -> None:
        self._model = model or generation_model() or "llama3.2"

    @property
    def model(self) -> str:
        return self._model

    def complete(self, system_prompt: str, messages: Sequence[Mapping[str, str]]) -> str:
        body = {
            "model": self._model,
            "stream": False,
            "messages": [{"role": "system", "content": system_prompt}, *[dict(m) for m in messages]],
        }
        r = requests.post(f"{ollama_url()}/api/chat", json=body, timeout=http_timeout_seconds())
        r.raise_for_status()
        data = r.json() or {}
        text = str((data.get("message") or {}).get("content") or "").strip()
        if not text:
            raise RuntimeError(f"Ollama model {self._model} returned an empty reply")
        return text
