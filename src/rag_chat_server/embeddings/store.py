"""
Vector Store

This module implements the durable collection of embedded chunks shared by
the ingestion and search paths.

Key Properties
--------------
- One JSON record ``{"version": 1, "chunks": [...]}`` holds every chunk
- ``append`` is a whole-record read-modify-write serialized by a single-writer
  lock, so concurrent ingestions never lose each other's chunks
- Every write publishes a complete new file via atomic rename, so readers see
  either the old or the new snapshot, never a partial file
- A missing record reads as an empty store
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections import OrderedDict
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from .models import Chunk
from ..core.errors import StoreIOError

logger = logging.getLogger("rag.store")

STORE_VERSION = 1


class VectorStore:
    """
    JSON-file backed chunk store.

    Instances are thread-safe; writers are serialized by an internal lock
    that can be injected so several store objects share one writer.
    """

    def __init__(self, path: str | Path, write_lock: Optional[Lock] = None) -> None:
        """
        Parameters
        ----------
        path : str | Path
            Location of the persisted record.

        write_lock : Optional[Lock]
            Single-writer lock. A private lock is created when omitted.
        """
        self._path = Path(path)
        self._write_lock = write_lock or Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self) -> List[Chunk]:
        """
        Read the full chunk collection.

        Returns an empty list if the record does not exist yet.
        """
        return self._read_chunks()

    def append(self, new_chunks: Iterable[Chunk]) -> int:
        """
        Add chunks to the store and persist the whole collection.

        Existing chunks are never modified or reordered. Returns the total
        number of chunks after the write.

        Raises
        ------
        StoreIOError
            If the record cannot be read or written, or if a chunk id is
            already stored (nothing is written in that case).
        """
        additions = list(new_chunks)

        with self._write_lock:
            chunks = self._read_chunks()

            seen = {chunk.id for chunk in chunks}
            for chunk in additions:
                if chunk.id in seen:
                    raise StoreIOError(
                        f"Duplicate chunk id {chunk.id!r}; nothing was written."
                    )
                seen.add(chunk.id)

            chunks.extend(additions)
            self._write_chunks(chunks)

        logger.info(
            "Appended %d chunks to %s (total=%d)",
            len(additions),
            self._path,
            len(chunks),
        )
        return len(chunks)

    def count(self) -> int:
        return len(self._read_chunks())

    def stats(self) -> Dict[str, Any]:
        """
        Return store statistics for diagnostics.
        """
        chunks = self._read_chunks()

        documents: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for chunk in chunks:
            entry = documents.setdefault(
                chunk.doc_id,
                {"doc_id": chunk.doc_id, "source": chunk.source, "chunk_count": 0},
            )
            entry["chunk_count"] += 1

        return {
            "total_chunks": len(chunks),
            "total_documents": len(documents),
            "documents": list(documents.values()),
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _read_chunks(self) -> List[Chunk]:
        if not self._path.exists():
            return []

        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StoreIOError(
                f"Failed to read vector store {self._path}: {type(exc).__name__}"
            ) from exc

        if not isinstance(data, dict):
            raise StoreIOError(f"Vector store {self._path} is not a JSON object.")

        # Records written before versioning carry no tag
        version = data.get("version", STORE_VERSION)
        if not isinstance(version, int) or version > STORE_VERSION:
            raise StoreIOError(
                f"Unsupported vector store version {version!r} in {self._path}."
            )

        raw_chunks = data.get("chunks", [])
        if not isinstance(raw_chunks, list):
            raise StoreIOError(f"'chunks' in {self._path} must be a list.")

        try:
            return [Chunk(**raw) for raw in raw_chunks]
        except (TypeError, ValidationError) as exc:
            raise StoreIOError(
                f"Malformed chunk record in {self._path}: {type(exc).__name__}"
            ) from exc

    def _write_chunks(self, chunks: List[Chunk]) -> None:
        record = {
            "version": STORE_VERSION,
            "chunks": [chunk.model_dump() for chunk in chunks],
        }

        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self._path.parent),
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            raise StoreIOError(
                f"Failed to write vector store {self._path}: {type(exc).__name__}"
            ) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temporary store file %s", tmp_name)
