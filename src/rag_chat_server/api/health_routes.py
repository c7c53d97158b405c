from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from .models import HealthResponse
from ..config import Settings, get_settings

router = APIRouter(tags=["health"])

BANNER = (
    "RAG chat backend ({provider}) is running. "
    "Try GET /health, POST /api/chat or POST /api/documents"
)


@router.get("/", response_class=PlainTextResponse)
def banner(settings: Annotated[Settings, Depends(get_settings)]) -> str:
    return BANNER.format(provider=settings.provider.capitalize())


@router.get("/health", response_model=HealthResponse)
def health(settings: Annotated[Settings, Depends(get_settings)]) -> HealthResponse:
    return HealthResponse(
        ok=True,
        has_key=settings.has_credential,
        provider=settings.provider,
        demo_mode=not settings.has_credential,
    )
