"""
Error Kinds & Global Error Handling

This module defines the structured error taxonomy of the RAG server and the
FastAPI exception handlers that turn those errors into JSON responses.

Design Goals
------------
- Every failure reaches the caller as ``{"error": <kind>, "detail": <message>}``
- Never leak internal exception details for unexpected failures
- Log full stack traces internally for debugging
- Keep the error classes framework-agnostic so the pipeline can raise them
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, Iterable

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("rag.errors")


# ---------------------------------------------------------------------
# Error Kinds
# ---------------------------------------------------------------------

class RagError(RuntimeError):
    """Base class for every failure surfaced to the caller."""

    kind: ClassVar[str] = "InternalError"
    status_code: ClassVar[int] = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.message}


class UnsupportedFormatError(RagError):
    """Raised when an uploaded file has an extension with no extractor."""

    kind = "UnsupportedFormat"
    status_code = 415

    def __init__(self, extension: str, allowed: Iterable[str]) -> None:
        self.extension = extension
        self.allowed = sorted(allowed)
        shown = extension or "(none)"
        super().__init__(
            f"Unsupported file type '{shown}'. Allowed: {', '.join(self.allowed)}"
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["allowed"] = self.allowed
        return payload


class ExtractionFailedError(RagError):
    """Raised when a source file is corrupt or lacks its expected structure."""

    kind = "ExtractionFailed"
    status_code = 422


class EmbeddingFailedError(RagError):
    """Raised when the embedding service is unreachable or rejects input."""

    kind = "EmbeddingFailed"
    status_code = 502


class CompletionFailedError(RagError):
    """Raised when the completion service is unreachable or rejects input."""

    kind = "CompletionFailed"
    status_code = 502


class ServiceTimeoutError(RagError):
    """Raised when an external call exceeds its configured timeout."""

    kind = "ServiceTimeout"
    status_code = 504


class StoreIOError(RagError):
    """Raised when the persisted vector store cannot be read or written."""

    kind = "StoreIOFailure"
    status_code = 500


class ValidationFailedError(RagError):
    """Raised when a required request field is missing or empty."""

    kind = "ValidationFailed"
    status_code = 422


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def rag_error_handler(request: Request, exc: RagError) -> JSONResponse:
    """
    Render a ``RagError`` as a structured JSON failure.

    Server-side kinds (>= 500) are logged at ERROR, caller-correctable kinds
    at INFO.
    """
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "%s during %s %s: %s",
        exc.kind,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Map FastAPI schema validation failures onto the ``ValidationFailed`` kind.
    """
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location or 'request'}: {err.get('msg', 'invalid')}")

    error = ValidationFailedError("; ".join(problems) or "Invalid request.")
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
