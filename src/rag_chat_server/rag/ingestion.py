"""
Document Ingestion Pipeline

file -> extractor dispatch -> chunker -> embedder (one call per chunk)
     -> vector store append (once, at the end)

Ingestion is all-or-nothing from the caller's perspective: chunks are only
persisted after every chunk of the document has been embedded, so a failure
part-way through stores nothing and the caller resubmits the whole upload.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from ..embeddings.embedder import Embedder
from ..embeddings.models import Chunk
from ..embeddings.store import VectorStore
from ..ingest.chunker import DEFAULT_MAX_WORDS, chunk_text
from ..ingest.extractors import extract_text

logger = logging.getLogger("rag.ingest")

_UNSAFE_CHARS = re.compile(r"[^\w\-.]")


@dataclass(frozen=True)
class IngestResult:
    document_id: str
    chunk_count: int


def sanitize_filename(filename: str) -> str:
    safe_name = Path(filename).name
    return _UNSAFE_CHARS.sub("_", safe_name) or "document"


def make_document_id(filename: str, now: Optional[float] = None) -> str:
    """
    Derive a document id from the ingestion time (epoch millis), a short
    random tag and the filename.

    The tag keeps ids unique when the same filename is ingested twice within
    one millisecond.
    """
    millis = int((time.time() if now is None else now) * 1000)
    tag = uuid.uuid4().hex[:8]
    return f"{millis}-{tag}-{sanitize_filename(filename)}"


async def ingest_document(
    path: str | Path,
    filename: str,
    *,
    embedder: Embedder,
    store: VectorStore,
    max_words: int = DEFAULT_MAX_WORDS,
    metadata: Optional[Dict[str, Any]] = None,
) -> IngestResult:
    """
    Extract, chunk, embed and persist one document.

    Parameters
    ----------
    path : str | Path
        Location of the uploaded bytes.

    filename : str
        Original client filename (selects the extractor, becomes ``source``).

    embedder : Embedder
        Embedding client, called once per chunk.

    store : VectorStore
        Target store; appended to exactly once on success.

    max_words : int
        Chunk window size in words.

    metadata : Optional[Dict[str, Any]]
        Extra document metadata merged under the defaults.

    Raises
    ------
    UnsupportedFormatError, ExtractionFailedError, EmbeddingFailedError,
    ServiceTimeoutError, StoreIOError
    """
    text = await run_in_threadpool(extract_text, path, filename)
    pieces = chunk_text(text, max_words)

    doc_id = make_document_id(filename)
    doc_metadata: Dict[str, Any] = {
        "source": filename,
        "ingested_at": datetime.now(timezone.utc).isoformat(),
    }
    doc_metadata.update(metadata or {})

    if not pieces:
        logger.warning("No text extracted from %s; nothing stored.", filename)
        return IngestResult(document_id=doc_id, chunk_count=0)

    logger.info("Embedding %d chunks for %s", len(pieces), doc_id)

    chunks: List[Chunk] = []
    for index, content in enumerate(pieces):
        vector = await embedder.embed(content)
        chunks.append(
            Chunk(
                id=f"{doc_id}-{index}",
                doc_id=doc_id,
                chunk_index=index,
                content=content,
                metadata=dict(doc_metadata),
                embedding=vector,
            )
        )

    await run_in_threadpool(store.append, chunks)

    logger.info("Ingested %s (%d chunks)", doc_id, len(chunks))
    return IngestResult(document_id=doc_id, chunk_count=len(chunks))
