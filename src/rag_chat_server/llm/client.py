import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.errors import CompletionFailedError, ServiceTimeoutError

logger = logging.getLogger("rag.llm")


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if api_key is None and settings.google_api_key is not None:
            api_key = settings.google_api_key.get_secret_value()
        self.api_key = api_key or ""
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._semaphore = asyncio.Semaphore(
            max_concurrency or settings.max_concurrent_requests
        )

    async def complete(
        self,
        history: List[Dict[str, str]],
        prompt: str,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        temperature: float = 0.2,
    ) -> str:
        """
        Send a normalized history plus one new user prompt and return the text.

        `history` items are {"role": "user"|"model", "content": "..."} as
        produced by normalize_history(). `system_instruction`, when given, is
        sent as Gemini `systemInstruction` rather than as an extra dialogue
        turn ahead of the prompt.
        """
        if not self.api_key:
            raise CompletionFailedError(
                "No completion credential configured (set GOOGLE_API_KEY)."
            )

        model = model or settings.chat_model
        contents = [
            {"role": turn["role"], "parts": [{"text": turn["content"]}]}
            for turn in history
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"temperature": temperature},
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        async with self._semaphore:
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    transport=self._transport,
                ) as client:
                    resp = await client.post(
                        f"{self.base_url}/models/{model}:generateContent",
                        json=payload,
                        headers={"x-goog-api-key": self.api_key},
                    )
                resp.raise_for_status()
            except httpx.TimeoutException as exc:
                logger.error("Completion request timed out (model=%s)", model)
                raise ServiceTimeoutError(
                    f"Completion service timed out after {self.timeout:g}s"
                ) from exc
            except httpx.HTTPError as exc:
                logger.error(
                    "Completion request failed (%s): model=%s, error=%s",
                    type(exc).__name__,
                    model,
                    str(exc),
                )
                raise CompletionFailedError(
                    f"Completion failed: {type(exc).__name__}"
                ) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise CompletionFailedError("Completion response is not valid JSON.") from exc

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        """
        Join the text parts of the first candidate:
        {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
        """
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not isinstance(candidates, list):
            raise CompletionFailedError("Completion response missing 'candidates'.")
        if not candidates:
            return ""

        first = candidates[0]
        if not isinstance(first, dict):
            raise CompletionFailedError("Completion candidate must be an object.")

        content = first.get("content") or {}
        if not isinstance(content, dict):
            raise CompletionFailedError("Completion candidate content must be an object.")

        parts = content.get("parts") or []
        if not isinstance(parts, list):
            raise CompletionFailedError("Completion content parts must be a list.")

        texts = []
        for part in parts:
            if not isinstance(part, dict):
                continue
            text = part.get("text", "")
            if not isinstance(text, str):
                raise CompletionFailedError("Completion part text must be a string.")
            texts.append(text)
        return "".join(texts)
