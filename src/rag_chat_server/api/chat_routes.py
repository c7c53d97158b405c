"""
Chat Routes: Retrieval-Augmented Conversational Interface

This module implements the conversational endpoint used by the chat
front-end. It provides:
- Multi-turn chat with client-held history
- Hybrid routing between grounded (rag) and general answers
- Demo mode when no completion credential is configured

Major Responsibilities
----------------------
1. Accept ChatRequest containing the conversation so far.
2. Delegate retrieval, routing and the completion call to ``answer_chat``.
3. Return ChatResponse with the answer, route and consulted sources.

Failures of the embedding/completion services surface as structured errors
through the handlers registered in ``main.create_app``.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from .models import ChatRequest, ChatResponse, SourceInfo
from .dependencies import get_embedder, get_llm_client, get_settings, get_vector_store
from ..config import Settings
from ..embeddings.embedder import Embedder
from ..embeddings.store import VectorStore
from ..llm.client import LLMClient
from ..rag.answer import answer_chat

router = APIRouter(prefix="/api", tags=["chat"])


# ---------------------------------------------------------------------
# Chat Route
# ---------------------------------------------------------------------

@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Chat with retrieval-augmented answers",
    status_code=status.HTTP_200_OK,
)
async def chat(
    req: ChatRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    llm: Annotated[LLMClient, Depends(get_llm_client)],
    store: Annotated[VectorStore, Depends(get_vector_store)],
    embedder: Annotated[Embedder, Depends(get_embedder)],
) -> ChatResponse:
    """
    Answer the last user message of the conversation.

    Parameters
    ----------
    req : ChatRequest
        Contains:
        - messages: Conversation so far (list of ChatMessage)
        - model: Optional completion model override

    Returns
    -------
    ChatResponse
        Answer text, route taken, best similarity score, threshold and the
        sources consulted for grounded answers.
    """
    answer = await answer_chat(
        req.messages,
        req.model,
        settings=settings,
        embedder=embedder,
        store=store,
        llm=llm,
    )

    return ChatResponse(
        text=answer.text,
        mode=answer.mode.value,
        best_score=answer.best_score,
        threshold=answer.threshold,
        sources=[SourceInfo(**source) for source in answer.sources],
    )
