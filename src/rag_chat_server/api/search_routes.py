"""
Search Routes

This module exposes the vector store directly: top-K similarity search over
the stored chunks and per-document store statistics. Both are diagnostic
surfaces; the chat endpoint uses the same retrieval path internally.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool

from .models import SearchRequest, SearchResult, StoreStatsResponse
from .dependencies import get_embedder, get_settings, get_vector_store
from ..chat.routing import make_snippet
from ..config import Settings
from ..embeddings.embedder import Embedder
from ..embeddings.store import VectorStore
from ..rag.retrieval import retrieve

router = APIRouter(prefix="/api", tags=["search"])


@router.post(
    "/search",
    response_model=List[SearchResult],
    summary="Vector-based semantic search",
    status_code=status.HTTP_200_OK,
)
async def search(
    req: SearchRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[VectorStore, Depends(get_vector_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
) -> List[SearchResult]:
    """
    Return the stored chunks most similar to the query, best first.

    Parameters
    ----------
    req : SearchRequest
        Contains:
        - query: Search query string
        - k: Number of results (defaults to the configured top-K)
    """
    scored = await retrieve(
        req.query,
        embedder=embedder,
        store=store,
        k=req.k or settings.rag_top_k,
    )

    return [
        SearchResult(
            id=item.chunk.id,
            doc_id=item.chunk.doc_id,
            chunk_index=item.chunk.chunk_index,
            source=item.chunk.source,
            score=item.score,
            snippet=make_snippet(item.chunk.content),
        )
        for item in scored
    ]


@router.get(
    "/documents/stats",
    response_model=StoreStatsResponse,
    summary="Vector store statistics",
)
async def store_stats(
    store: Annotated[VectorStore, Depends(get_vector_store)],
) -> StoreStatsResponse:
    stats = await run_in_threadpool(store.stats)
    return StoreStatsResponse(**stats)
