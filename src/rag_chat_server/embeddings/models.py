"""
Embedding Data Models

This module defines the canonical record stored in the vector store and the
scored view of it produced by similarity search.

Each ``Chunk`` corresponds to ONE embedding vector and ONE slice of a
document's extracted text.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """
    A single embedded chunk of an ingested document.

    This model is the authoritative schema for:
    - JSON persistence of the vector store
    - Similarity search input
    """

    id: str = Field(
        ...,
        min_length=1,
        description='Globally unique id, "{doc_id}-{chunk_index}".',
    )

    doc_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the ingested document this chunk belongs to.",
    )

    chunk_index: int = Field(
        ...,
        ge=0,
        description="0-based position of the chunk within its document.",
    )

    content: str = Field(
        ...,
        description="Raw text content for this chunk.",
    )

    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Document metadata inherited by every chunk (at least 'source').",
    )

    embedding: List[float] = Field(
        ...,
        description="Fixed-length embedding vector.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )

    @property
    def source(self) -> str:
        return str(self.metadata.get("source") or self.doc_id)


class ScoredChunk(BaseModel):
    """
    A chunk annotated with its cosine similarity to one query.

    Computed per search call and never persisted.
    """

    chunk: Chunk
    score: float

    model_config = ConfigDict(frozen=True)
