import argparse
import asyncio
import os
import sys
from pathlib import Path

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from rag_chat_server.config import settings
from rag_chat_server.core.errors import RagError
from rag_chat_server.embeddings.embedder import Embedder
from rag_chat_server.embeddings.store import VectorStore
from rag_chat_server.ingest.extractors import allowed_extensions
from rag_chat_server.rag.ingestion import ingest_document


async def main(folder: Path, store_path: str) -> int:
    if not settings.has_credential:
        print("GOOGLE_API_KEY is not set; embeddings cannot be created.")
        return 1

    print("Initializing clients...")
    embedder = Embedder()
    store = VectorStore(store_path)

    allowed = set(allowed_extensions())
    files = sorted(
        p for p in folder.rglob("*")
        if p.is_file() and p.suffix.lower() in allowed
    )
    print(f"Found {len(files)} supported files in {folder}.")

    failed = 0
    for i, path in enumerate(files):
        print(f"Ingesting ({i+1}/{len(files)}): {path.name}")
        try:
            result = await ingest_document(
                path,
                path.name,
                embedder=embedder,
                store=store,
                max_words=settings.chunk_max_words,
            )
        except RagError as exc:
            # One bad file should not abort the batch; it can be resubmitted.
            failed += 1
            print(f"  {exc.kind}: {exc.message}")
            continue
        print(f"  -> {result.document_id} ({result.chunk_count} chunks)")

    print(f"Done! Store now holds {store.count()} chunks ({failed} files failed).")
    return 1 if failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Bulk-ingest a folder into the RAG store.")
    parser.add_argument("folder", type=Path)
    parser.add_argument("--store", default=settings.store_path)
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.folder, args.store)))
