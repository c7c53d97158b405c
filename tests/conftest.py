from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from rag_chat_server.api.dependencies import (
    get_embedder,
    get_llm_client,
    get_settings,
    get_vector_store,
)
from rag_chat_server.config import Settings
from rag_chat_server.embeddings.embedder import Embedder
from rag_chat_server.embeddings.models import Chunk
from rag_chat_server.embeddings.store import VectorStore
from rag_chat_server.llm.client import LLMClient
from rag_chat_server.main import app


def make_chunk(doc_id, idx, vector, source=None, content=None):
    return Chunk(
        id=f"{doc_id}-{idx}",
        doc_id=doc_id,
        chunk_index=idx,
        content=content or f"{doc_id} chunk {idx}",
        metadata={"source": source or doc_id},
        embedding=vector,
    )


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        google_api_key="test-key",
        store_path=str(tmp_path / "rag_store.json"),
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def demo_settings(tmp_path):
    return Settings(
        google_api_key=None,
        store_path=str(tmp_path / "rag_store.json"),
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def store(test_settings):
    return VectorStore(test_settings.store_path)


@pytest.fixture
def mock_embedder():
    mock = AsyncMock(spec=Embedder)
    mock.embed.return_value = [1.0, 0.0, 0.0]
    return mock


@pytest.fixture
def mock_llm():
    mock = AsyncMock(spec=LLMClient)
    mock.complete.return_value = "A generated answer."
    return mock


@pytest.fixture
def make_client(store, mock_embedder, mock_llm):
    """
    Build a TestClient whose dependencies point at the fixtures above.

    Tests pick the settings (credentialed or demo) they need.
    """
    clients = []

    def _make(settings):
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_vector_store] = lambda: store
        app.dependency_overrides[get_embedder] = lambda: mock_embedder
        app.dependency_overrides[get_llm_client] = lambda: mock_llm
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
    app.dependency_overrides = {}


@pytest.fixture
def client(make_client, test_settings):
    return make_client(test_settings)
