"""
API Models for the RAG Chat Server

This module defines all Pydantic models used for request/response validation
across the health, chat, document ingestion and search endpoints.

Design Goals
------------
- Strong typing
- Validation at the boundary (unknown request fields are rejected)
- camelCase keys on the wire, snake_case attributes in Python
- Safe defaults (no shared mutable state)
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------
# Health Models
# ---------------------------------------------------------------------

class HealthResponse(BaseModel):
    """
    Liveness payload; also reports whether a credential is configured.
    """
    ok: bool = True
    has_key: bool = Field(..., alias="hasKey")
    provider: str
    demo_mode: bool = Field(..., alias="demoMode")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# ---------------------------------------------------------------------
# Chat Models
# ---------------------------------------------------------------------

class ChatMessage(BaseModel):
    """
    Single message in a chat conversation.

    Roles other than user/assistant are accepted here and dropped during
    history normalization.
    """
    role: str = Field(..., min_length=1)
    content: str = ""

    model_config = ConfigDict(extra="forbid")


class ChatRequest(BaseModel):
    """
    Chat request payload. The last user message is the question.
    """
    messages: List[ChatMessage] = Field(..., min_length=1)
    model: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class SourceInfo(BaseModel):
    """
    One consulted chunk, reported back for grounded answers.
    """
    score: float
    source: str
    doc_id: str = Field(..., alias="docId")
    snippet: str

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ChatResponse(BaseModel):
    """
    Chat answer plus the routing diagnostics.
    """
    text: str
    mode: Literal["rag", "general"]
    best_score: float = Field(..., alias="bestScore")
    threshold: float
    sources: List[SourceInfo] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# ---------------------------------------------------------------------
# Document Models
# ---------------------------------------------------------------------

class IngestResponse(BaseModel):
    """
    Result of ingesting one uploaded document.
    """
    document_id: str = Field(..., alias="documentId")
    chunk_count: int = Field(..., ge=0, alias="chunkCount")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class DocumentStats(BaseModel):
    doc_id: str = Field(..., alias="docId")
    source: str
    chunk_count: int = Field(..., ge=0, alias="chunkCount")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class StoreStatsResponse(BaseModel):
    """
    Snapshot statistics for the vector store.
    """
    total_chunks: int = Field(..., ge=0, alias="totalChunks")
    total_documents: int = Field(..., ge=0, alias="totalDocuments")
    documents: List[DocumentStats] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# ---------------------------------------------------------------------
# Search Models
# ---------------------------------------------------------------------

class SearchRequest(BaseModel):
    """
    Top-K similarity search request. ``k`` defaults to the configured top-K.
    """
    query: str = Field(..., min_length=1)
    k: Optional[int] = Field(default=None, ge=1, le=100)

    model_config = ConfigDict(extra="forbid")


class SearchResult(BaseModel):
    """
    Individual search match.
    """
    id: str
    doc_id: str = Field(..., alias="docId")
    chunk_index: int = Field(..., ge=0, alias="chunkIndex")
    source: str
    score: float
    snippet: str

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
