"""
Top-K retrieval: embed the query, scan the store, rank by cosine similarity.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi.concurrency import run_in_threadpool

from ..embeddings.embedder import Embedder
from ..embeddings.models import ScoredChunk
from ..embeddings.search import search
from ..embeddings.store import VectorStore

logger = logging.getLogger("rag.chat")


async def retrieve(
    query: str,
    *,
    embedder: Embedder,
    store: VectorStore,
    k: int,
) -> List[ScoredChunk]:
    """
    Return the ``k`` stored chunks most similar to ``query``.

    An empty store or ``k <= 0`` returns ``[]`` without calling the
    embedding service.
    """
    if k <= 0:
        return []

    chunks = await run_in_threadpool(store.load)
    if not chunks:
        return []

    query_vector = await embedder.embed(query)
    results = search(query_vector, chunks, k)

    logger.info(
        "Retrieved %d/%d chunks (best=%.3f)",
        len(results),
        len(chunks),
        results[0].score if results else 0.0,
    )
    return results
