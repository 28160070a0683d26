"""Pydantic request and response models for the PixelPrompt API.

These models define the JSON schema of ``POST /api/generate``.  The request
model is deliberately permissive (``prompt`` is optional and untyped beyond
``str``) so that a missing prompt reaches the generation service and is
reported as ``400 {"error": ...}`` rather than FastAPI's default 422.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``.
PendingResponse
    Body of a ``202`` answer while a request is still running.
ErrorResponse
    Body of every ``4xx``/``5xx`` answer.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pixelprompt.core.errors import ErrorKind, GenerationError
from pixelprompt.core.models import GenerationStatus


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        prompt: Description of the desired image.  Required by the service;
            absent or blank values produce a 400.
        request_id: Optional correlation id (JSON key ``requestId``).  When
            it matches a tracked request the stored status is returned
            instead of starting a new generation.
    """

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(
        default=None,
        description="Natural-language description of the image to generate.",
    )
    request_id: str | None = Field(
        default=None,
        alias="requestId",
        description="Client-generated id used to poll for the result.",
    )


class PendingResponse(BaseModel):
    """Response body while a generation is still running."""

    status: str = "pending"


class ErrorResponse(BaseModel):
    """Response body for failed requests.

    Attributes:
        error: User-facing message.
        kind: Structured error classification.
        retryable: Whether retrying from scratch may succeed.
        details: Diagnostic information (verbose mode only).
        timestamp: ISO-8601 time of the failure (verbose mode only).
    """

    error: str
    kind: ErrorKind
    retryable: bool
    details: dict[str, Any] | None = None
    timestamp: str | None = None

    @classmethod
    def from_error(cls, error: GenerationError, *, verbose: bool) -> ErrorResponse:
        if not verbose:
            return cls(error=error.message, kind=error.kind, retryable=error.retryable)
        return cls(
            error=error.message,
            kind=error.kind,
            retryable=error.retryable,
            details=error.details(),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    @classmethod
    def from_status(cls, status: GenerationStatus, *, verbose: bool) -> ErrorResponse:
        kind = status.error_kind or ErrorKind.PROVIDER
        payload = cls(
            error=status.error or GenerationError.default_message,
            kind=kind,
            retryable=kind.retryable,
        )
        if verbose:
            payload.details = status.error_details
            if status.finished_at is not None:
                payload.timestamp = status.finished_at.isoformat()
        return payload
