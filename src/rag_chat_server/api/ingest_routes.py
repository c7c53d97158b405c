"""
Document Ingestion Routes

Uploaded files are spooled to ``upload_dir`` under a unique temporary name,
run through the ingestion pipeline, and removed afterwards. Cleanup is best
effort: a failed removal is logged and never fails the request.
"""

import logging
import shutil
import uuid
from pathlib import Path
from typing import Annotated, BinaryIO

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from .models import IngestResponse
from .dependencies import get_embedder, get_settings, get_vector_store
from ..config import Settings
from ..core.errors import UnsupportedFormatError, ValidationFailedError
from ..embeddings.embedder import Embedder
from ..embeddings.store import VectorStore
from ..ingest.extractors import allowed_extensions
from ..rag.ingestion import ingest_document

logger = logging.getLogger("rag.ingest")

router = APIRouter(prefix="/api/documents", tags=["documents"])


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _spool_upload(source: BinaryIO, upload_dir: str, suffix: str) -> Path:
    directory = Path(upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{uuid.uuid4().hex}{suffix}"
    with target.open("wb") as out:
        shutil.copyfileobj(source, out)
    return target


def _remove_upload(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove upload artifact %s: %s", path, exc)


# ---------------------------------------------------------------------
# Upload Route
# ---------------------------------------------------------------------

@router.post(
    "",
    response_model=IngestResponse,
    summary="Upload and ingest a document",
    status_code=status.HTTP_200_OK,
)
async def upload_document(
    file: Annotated[UploadFile, File()],
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[VectorStore, Depends(get_vector_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
) -> IngestResponse:
    """
    Extract, chunk, embed and store one uploaded document.

    Returns
    -------
    IngestResponse
        The generated document id and the number of stored chunks.
    """
    filename = (file.filename or "").strip()
    if not filename:
        raise ValidationFailedError("Uploaded file has no filename.")

    suffix = Path(filename).suffix.lower()
    allowed = allowed_extensions()
    if suffix not in allowed:
        raise UnsupportedFormatError(suffix, allowed)

    spooled = await run_in_threadpool(
        _spool_upload, file.file, settings.upload_dir, suffix
    )
    try:
        result = await ingest_document(
            spooled,
            filename,
            embedder=embedder,
            store=store,
            max_words=settings.chunk_max_words,
        )
    finally:
        await file.close()
        _remove_upload(spooled)

    return IngestResponse(
        document_id=result.document_id,
        chunk_count=result.chunk_count,
    )
