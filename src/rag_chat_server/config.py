from typing import List, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Absence of a key switches the chat endpoint into demo mode
    google_api_key: Optional[SecretStr] = None
    provider: str = "gemini"

    chat_model: str = "gemini-1.5-flash"
    embedding_model: str = "text-embedding-004"
    api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Retrieval / hybrid routing
    rag_top_k: int = 5
    rag_threshold: float = 0.35
    rag_hybrid: bool = True

    chunk_max_words: int = 700
    history_max_items: int = 20

    store_path: str = "rag_store.json"
    upload_dir: str = "uploads"

    # External calls
    request_timeout: float = 60.0
    max_concurrent_requests: int = 8

    port: int = 3001
    cors_origins: str = "*"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @property
    def has_credential(self) -> bool:
        if self.google_api_key is None:
            return False
        return bool(self.google_api_key.get_secret_value().strip())

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()


def get_settings() -> Settings:
    return settings
