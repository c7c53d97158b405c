"""
Chat Answering Pipeline

This module ties retrieval, hybrid routing, history normalization and the
completion call together for one chat request.

Flow
----
1. Demo mode: without a credential, echo the last user message in a notice
   and return without contacting any external service.
2. Take the last user message as the question (empty -> ValidationFailed).
3. Normalize the turns that precede it into the priming history.
4. Retrieve top-K chunks and decide the route from the best score.
5. Grounded: send labeled context + question with the grounding instruction.
   General: send the bare question.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..chat.history import message_field, normalize_history
from ..chat.routing import (
    GROUNDING_INSTRUCTION,
    Route,
    build_context_prompt,
    build_sources,
    decide_route,
)
from ..config import Settings
from ..core.errors import ValidationFailedError
from ..embeddings.embedder import Embedder
from ..embeddings.store import VectorStore
from ..llm.client import LLMClient
from .retrieval import retrieve

logger = logging.getLogger("rag.chat")

DEMO_TEMPLATE = (
    '🤖 (Demo mode - {provider}) You said: "{message}". '
    "Add GOOGLE_API_KEY on the backend to get AI answers."
)
EMPTY_COMPLETION_TEXT = "Sorry, there was no output."


@dataclass
class ChatAnswer:
    text: str
    mode: Route
    best_score: float
    threshold: float
    sources: List[Dict[str, Any]] = field(default_factory=list)


def split_last_user_message(messages: Sequence[Any]) -> Tuple[List[Any], str]:
    """
    Return (messages before the last user message, its content).

    The content is "" when there is no user message.
    """
    for index in range(len(messages) - 1, -1, -1):
        if message_field(messages[index], "role") == "user":
            content = message_field(messages[index], "content")
            return list(messages[:index]), "" if content is None else str(content)
    return list(messages), ""


def demo_answer(messages: Sequence[Any], settings: Settings) -> ChatAnswer:
    _, last_user = split_last_user_message(messages)
    provider = settings.provider.capitalize()
    return ChatAnswer(
        text=DEMO_TEMPLATE.format(provider=provider, message=last_user),
        mode=Route.GENERAL,
        best_score=0.0,
        threshold=settings.rag_threshold,
    )


async def answer_chat(
    messages: Sequence[Any],
    model: Optional[str],
    *,
    settings: Settings,
    embedder: Embedder,
    store: VectorStore,
    llm: LLMClient,
) -> ChatAnswer:
    """
    Answer the last user message of a conversation.

    Raises
    ------
    ValidationFailedError
        If there is no non-empty user message.

    EmbeddingFailedError, CompletionFailedError, ServiceTimeoutError,
    StoreIOError
        Propagated from the external services and the store.
    """
    if not settings.has_credential:
        logger.info("Demo mode: echoing last user message")
        return demo_answer(messages, settings)

    earlier, question = split_last_user_message(messages)
    if not question.strip():
        raise ValidationFailedError("No question text: the last user message is empty.")

    history = normalize_history(earlier, settings.history_max_items)

    scored = await retrieve(
        question,
        embedder=embedder,
        store=store,
        k=settings.rag_top_k,
    )
    best = scored[0].score if scored else None
    route = decide_route(best, settings.rag_threshold, settings.rag_hybrid)

    if route is Route.RAG:
        prompt = build_context_prompt(question, scored)
        instruction: Optional[str] = GROUNDING_INSTRUCTION
        sources = build_sources(scored)
    else:
        prompt = question
        instruction = None
        sources = []

    logger.info(
        "Routing chat as %s (best=%s, threshold=%.3f, history=%d)",
        route.value,
        "n/a" if best is None else f"{best:.3f}",
        settings.rag_threshold,
        len(history),
    )

    text = await llm.complete(
        history,
        prompt,
        model=model or settings.chat_model,
        system_instruction=instruction,
    )

    return ChatAnswer(
        text=text or EMPTY_COMPLETION_TEXT,
        mode=route,
        best_score=0.0 if best is None else best,
        threshold=settings.rag_threshold,
        sources=sources,
    )
