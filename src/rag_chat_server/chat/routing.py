"""
Hybrid Routing

This module decides whether a question is answered from retrieved context
(grounded, "rag") or by the completion service alone ("general"), and builds
the prompt and source list for the grounded route.

The decision is state-free: it depends only on the best similarity score,
the configured threshold and the hybrid flag.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..embeddings.models import ScoredChunk

SNIPPET_CHARS = 160
ELLIPSIS = "…"

GROUNDING_INSTRUCTION = (
    "You are a helpful assistant answering questions about the user's uploaded "
    "documents. Prefer the information in the CONTEXT blocks over your general "
    "knowledge. Do not invent facts, figures, names or citations that are not "
    "supported by the context. If the context does not contain the answer, say "
    "so plainly before offering any general guidance."
)


class Route(str, Enum):
    RAG = "rag"
    GENERAL = "general"


def decide_route(
    best: Optional[float],
    threshold: float,
    hybrid_enabled: bool,
) -> Route:
    """
    Pick the answer route.

    Grounded when hybrid routing is disabled or ``best >= threshold``
    (inclusive). General when hybrid routing is enabled and ``best`` falls
    below the threshold, or when nothing was retrieved (``best is None``).
    """
    if best is None:
        return Route.GENERAL
    if not hybrid_enabled or best >= threshold:
        return Route.RAG
    return Route.GENERAL


def build_context_prompt(question: str, scored: Sequence[ScoredChunk]) -> str:
    """
    Prefix the question with one labeled CONTEXT block per retrieved chunk.
    """
    blocks = []
    for rank, item in enumerate(scored, start=1):
        blocks.append(
            f"[CONTEXT #{rank} | score={item.score:.3f} | source={item.chunk.source}]\n"
            f"{item.chunk.content}"
        )

    context = "\n\n".join(blocks)
    return (
        f"{context}\n\n"
        "Answer the question using the CONTEXT above.\n"
        f"QUESTION: {question}"
    )


def make_snippet(content: str, limit: int = SNIPPET_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + ELLIPSIS


def build_sources(scored: Sequence[ScoredChunk]) -> List[Dict[str, Any]]:
    """
    Summarize the consulted chunks for the caller.
    """
    return [
        {
            "score": item.score,
            "source": item.chunk.source,
            "doc_id": item.chunk.doc_id,
            "snippet": make_snippet(item.chunk.content),
        }
        for item in scored
    ]
