"""
Embedding Client

This module implements a test-friendly embedding client for the Gemini
embeddings API. It is responsible for:

- Input normalization (NUL stripping, trimming, hard size cap)
- One request per text (ingestion embeds chunk by chunk, search embeds once)
- Network and transport error isolation
- Strict response validation

The client holds no per-request state and is safe to reuse across requests.
Concurrent calls are bounded by an internal semaphore.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx

from ..config import settings
from ..core.errors import EmbeddingFailedError, ServiceTimeoutError

logger = logging.getLogger("rag.embedder")

MAX_EMBED_CHARS = 8000


def normalize_embedding_input(raw: Optional[str]) -> str:
    """
    Prepare text for the embedding service.

    NUL characters become spaces, surrounding whitespace is trimmed and the
    result is truncated to ``MAX_EMBED_CHARS`` characters.
    """
    text = str(raw if raw is not None else "").replace("\x00", " ").strip()
    return text[:MAX_EMBED_CHARS]


class Embedder:
    """
    Asynchronous embedding generator for single texts.

    This class performs no caching and no retries; failures propagate to the
    enclosing ingestion or search operation.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : Optional[str]
            Override for the API key. Defaults to settings.google_api_key.

        model : Optional[str]
            Override for the embedding model. Defaults to settings.embedding_model.

        base_url : Optional[str]
            API root. Defaults to settings.api_base_url.

        timeout : Optional[float]
            HTTP timeout for each request, in seconds.

        max_concurrency : Optional[int]
            Maximum number of requests in flight at once.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, used by tests to stub the service.
        """
        if api_key is None and settings.google_api_key is not None:
            api_key = settings.google_api_key.get_secret_value()

        self.api_key = api_key or ""
        self.model = model or settings.embedding_model
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._semaphore = asyncio.Semaphore(
            max_concurrency or settings.max_concurrent_requests
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:embedContent"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> List[float]:
        """
        Generate the embedding vector for one text.

        Raises
        ------
        EmbeddingFailedError
            If no credential is configured, the input is empty, the request
            fails, or the response is malformed.

        ServiceTimeoutError
            If the request exceeds the configured timeout.
        """
        if not self.api_key:
            raise EmbeddingFailedError(
                "No embedding credential configured (set GOOGLE_API_KEY)."
            )

        normalized = normalize_embedding_input(text)
        if not normalized:
            raise EmbeddingFailedError("Cannot embed empty text.")

        payload = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": normalized}]},
        }
        headers = {"x-goog-api-key": self.api_key}

        async with self._semaphore:
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    transport=self._transport,
                ) as client:
                    response = await client.post(
                        self.endpoint,
                        json=payload,
                        headers=headers,
                    )
                    response.raise_for_status()
            except httpx.TimeoutException as exc:
                logger.error(
                    "Embedding request timed out after %.1fs (chars=%d)",
                    self.timeout,
                    len(normalized),
                )
                raise ServiceTimeoutError(
                    f"Embedding service timed out after {self.timeout:g}s"
                ) from exc
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): chars=%d, error=%s",
                    type(exc).__name__,
                    len(normalized),
                    str(exc),
                )
                raise EmbeddingFailedError(
                    f"Embedding generation failed: {type(exc).__name__}"
                ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise EmbeddingFailedError("Embedding response is not valid JSON.") from exc

        return self._extract_embedding(data)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_embedding(data: dict) -> List[float]:
        """
        Parse and validate embedding output format.

        Gemini returns:
            { "embedding": { "values": [...] } }
        """
        if not isinstance(data, dict) or not isinstance(data.get("embedding"), dict):
            raise EmbeddingFailedError("Embedding response missing 'embedding' field.")

        values = data["embedding"].get("values")
        if not isinstance(values, list) or not values:
            raise EmbeddingFailedError("'embedding.values' must be a non-empty list.")

        if not all(
            isinstance(x, (float, int)) and not isinstance(x, bool) for x in values
        ):
            raise EmbeddingFailedError("Invalid embedding vector: must be float list.")

        return [float(x) for x in values]
