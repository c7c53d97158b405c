"""
Similarity Search

Exhaustive cosine-similarity ranking of every stored chunk against a query
vector. The store is small enough that a full scan is the index.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .models import Chunk, ScoredChunk

EPSILON = 1e-9


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    ``dot(a, b) / (|a| * |b| + EPSILON)``; a zero vector scores 0.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = np.linalg.norm(va) * np.linalg.norm(vb) + EPSILON
    return float(np.dot(va, vb) / denom)


def search(
    query_vector: Sequence[float],
    chunks: Sequence[Chunk],
    k: int,
) -> List[ScoredChunk]:
    """
    Rank ``chunks`` by cosine similarity to ``query_vector``.

    Parameters
    ----------
    query_vector : Sequence[float]
        Query embedding. Must share the dimensionality of the stored vectors.

    chunks : Sequence[Chunk]
        The full store contents, in store order.

    k : int
        Maximum number of results.

    Returns
    -------
    List[ScoredChunk]
        At most ``k`` results with non-increasing scores. Equal scores keep
        store order. ``k <= 0`` or an empty store yields ``[]``.
    """
    if k <= 0 or not chunks:
        return []

    matrix = np.asarray([c.embedding for c in chunks], dtype=np.float64)
    query = np.asarray(query_vector, dtype=np.float64)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query) + EPSILON
    scores = (matrix @ query) / norms

    order = np.argsort(-scores, kind="stable")[:k]

    return [
        ScoredChunk(chunk=chunks[int(i)], score=float(scores[int(i)]))
        for i in order
    ]
