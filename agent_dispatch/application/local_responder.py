"""
Local Responder.

Answers directly from retrieved passages when no external agent is
configured, and again as the last-resort fallback when a remote call fails.

Two variants share one entry point:

* citation synthesis: cites the top passages with similarity scores and
  source labels, or returns guidance when nothing was retrieved;
* generative: when a ``TextGenerator`` is supplied, the passages and the
  recent conversation are handed to it; if that call fails the citation
  synthesis answers instead. Fallback goes one level deep only.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from ..domain.interfaces import TextGenerator
from ..domain.models import DEFAULT_AGENT_LABEL, ChatTurn, ContextItem
from ..infrastructure.config import history_turns
from ..infrastructure.logging import get_logger

logger = get_logger("agent_dispatch.local_responder")

MAX_CITED = 3
PREVIEW_CHARS = 200
MAX_GROUNDING_CHARS = 1200

SYSTEM_PROMPT = (
    "You are the RAG assistant of a vector database dashboard. Answer the user's question "
    "using only the numbered passages below and cite them like [1], [2]. If the passages do "
    "not contain the answer, say you don't know."
)

_IDENTITY = re.compile(r"\b(who|what) are you\b")
_ORIGIN = re.compile(r"\bwhere (are you|do you come) from\b")
_GREETING = re.compile(r"\b(hello|hi|hey)\b")
_HELP = re.compile(r"\bhelp\b|\bwhat can you do\b")


def _percent(score: float) -> str:
    return f"{score * 100:.0f}%"


def _source(item: ContextItem, index: int) -> str:
    src = item.metadata.get("source") if item.metadata else None
    return str(src) if src else f"Document {index}"


def _preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    if not text:
        return "No content"
    return f"{text[:limit]}..." if len(text) > limit else text


def cite_passages(query: str, context: Sequence[ContextItem], label: str) -> str:
    cited = list(context[:MAX_CITED])
    blocks = [
        f"**[{i}] {_source(c, i)}** ({_percent(c.score)} match)\n{_preview(c.content)}"
        for i, c in enumerate(cited, start=1)
    ]
    lowest = min(c.score for c in context)
    highest = max(c.score for c in context)
    summary = "\n\n".join(blocks)
    return (
        f'Based on your question "{query}", I found {len(context)} relevant document(s):\n\n'
        f"{summary}\n\n"
        "---\n"
        f"📊 *Searched {len(context)} documents with similarity scores from {_percent(lowest)} to {_percent(highest)}*\n\n"
        "💡 **Tip:** Connect an AI agent (MCP/Webhook) in the Connections page for more "
        "intelligent, conversational responses!\n\n"
        f"*{label}*"
    )


def _intent_reply(query: str, label: str) -> Optional[str]:
    q = query.lower()
    if _IDENTITY.search(q):
        return (
            "I'm the RAG Assistant! I search your vector database and retrieve relevant "
            "information from your uploaded documents.\n\n"
            "**My capabilities:**\n"
            "- Search your vector database for relevant documents\n"
            "- Retrieve context based on semantic similarity\n"
            "- Connect to external AI agents (via MCP or Webhook) for intelligent responses\n\n"
            "No documents are currently loaded. Upload some documents to get started!\n\n"
            f"*{label}*"
        )
    if _ORIGIN.search(q):
        return (
            "I'm a Retrieval-Augmented Generation assistant built into your vector database "
            "dashboard. I connect to your configured vector databases and AI services.\n\n"
            "I don't have any documents loaded yet - upload some to start exploring!\n\n"
            f"*{label}*"
        )
    if _HELP.search(q):
        return (
            "**Here's what I can do:**\n\n"
            "1. **Search Documents** - Find relevant passages from your uploaded files\n"
            "2. **Semantic Search** - Understand meaning, not just keywords\n"
            "3. **Connect AI Agents** - Route queries to external AI services (n8n, Make.com, etc.)\n\n"
            "⚠️ No documents found. Upload some files to search through!\n\n"
            f"*{label}*"
        )
    if _GREETING.search(q):
        return (
            "Hello! 👋 I'm your RAG Assistant. I can help you search through your documents "
            "and find relevant information.\n\n"
            "📝 Upload some documents first to unlock my full potential!\n\n"
            f"*{label}*"
        )
    return None


def guidance(query: str, label: str) -> str:
    return (
        f'I received your question: "{query}"\n\n'
        "However, I don't have any documents to search through yet, or no documents matched your query.\n\n"
        "**To get better results:**\n"
        "1. 📤 Upload relevant documents on the Upload page\n"
        "2. 📁 Select a collection from the Data Source panel\n"
        '3. 🔧 Lower the "Min similarity score" to find more results\n'
        "4. 🤖 Connect an AI agent (n8n, Make.com) for intelligent responses\n\n"
        f"*{label}*"
    )


class LocalResponder:
    """Answers from retrieved context, optionally through a generative backend."""

    def __init__(self, generator: Optional[TextGenerator] = None, max_history: Optional[int] = None) -> None:
        self._generator = generator
        self._max_history = history_turns() if max_history is None else max(0, max_history)

    @property
    def generative(self) -> bool:
        return self._generator is not None

    def respond(
        self,
        query: str,
        context: Sequence[ContextItem],
        history: Sequence[ChatTurn] = (),
        label: str = DEFAULT_AGENT_LABEL,
    ) -> str:
        if self._generator is not None:
            try:
                return self._generate(self._generator, query, context, history)
            except Exception as ex:
                logger.warning("Generative responder failed, using citations | error=%s: %s", type(ex).__name__, ex)
        return self.synthesize(query, context, label)

    def synthesize(self, query: str, context: Sequence[ContextItem], label: str = DEFAULT_AGENT_LABEL) -> str:
        """Citation-based answer; never delegates."""
        if context:
            return cite_passages(query, context, label)
        return _intent_reply(query, label) or guidance(query, label)

    def _generate(
        self, generator: TextGenerator, query: str, context: Sequence[ContextItem], history: Sequence[ChatTurn]
    ) -> str:
        passages = "\n\n".join(
            f"[{i}] ({_source(c, i)}) {c.content[:MAX_GROUNDING_CHARS]}" for i, c in enumerate(context, start=1)
        )
        system = f"{SYSTEM_PROMPT}\n\nPassages:\n{passages or '(no passages retrieved)'}"
        recent = list(history)[-self._max_history:] if self._max_history else []
        messages: List[Dict[str, str]] = [t.to_dict() for t in recent]
        messages.append({"role": "user", "content": query})
        reply = generator.complete(system, messages).strip()
        if not reply:
            raise ValueError("Generator returned an empty reply")
        return reply
