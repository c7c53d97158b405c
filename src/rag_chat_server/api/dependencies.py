from functools import lru_cache

# get_settings is re-exported so routers and tests share one provider
from ..config import get_settings, settings  # noqa: F401
from ..embeddings.embedder import Embedder
from ..embeddings.store import VectorStore
from ..llm.client import LLMClient


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()


@lru_cache
def get_embedder() -> Embedder:
    return Embedder()


# One store object per process so every request shares its writer lock
@lru_cache
def get_vector_store() -> VectorStore:
    return VectorStore(settings.store_path)
