"""
RAG Chat Server Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Centralized router registration
- Structured errors for every failure kind, plus a global safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.errors import (
    RagError,
    rag_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)

from .api import (
    chat_routes,
    health_routes,
    ingest_routes,
    search_routes,
)


logger = logging.getLogger("rag.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory pattern allows:
    - Clean test instantiation
    - Isolated app instances for integration tests
    - Controlled dependency overrides in pytest

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="rag-chat-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # CORS (the chat front-end is served from another origin)
    # --------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(RagError, rag_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(chat_routes.router)
    app.include_router(ingest_routes.router)
    app.include_router(search_routes.router)

    # --------------------------------------------------------------
    # Startup / Shutdown Hooks
    # --------------------------------------------------------------

    @app.on_event("startup")
    async def _startup_report() -> None:
        logger.info("Starting rag-chat-server (provider=%s)", settings.provider)
        if settings.has_credential:
            logger.info(
                "Completion model %s, embedding model %s",
                settings.chat_model,
                settings.embedding_model,
            )
        else:
            logger.warning(
                "GOOGLE_API_KEY is not set: chat runs in demo mode and "
                "document ingestion will fail"
            )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("Shutting down rag-chat-server")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()


def run() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
