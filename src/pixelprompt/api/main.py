"""PixelPrompt - FastAPI Application.

This module defines the FastAPI ``app`` instance, the generation route, and
the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Generation** is delegated to
  :class:`~pixelprompt.core.generation.GenerationService`, which validates the
  prompt, consults the status store, and calls the image provider with a
  bounded wait.
- **Request status** lives in an in-process
  :class:`~pixelprompt.core.status_store.InMemoryStatusStore`.  An
  :class:`~pixelprompt.core.status_store.ExpirySweeper` started in the
  lifespan purges records older than the retention window.
- **Errors** never escape the route: every failure becomes a JSON payload
  with ``error``, ``kind`` and ``retryable`` keys (plus ``details`` and
  ``timestamp`` when ``verbose_errors`` is on).

Endpoints
---------
========  ==================  ==========================================
Method    Path                Purpose
========  ==================  ==========================================
POST      ``/api/generate``   Start, or poll for, an image generation
GET       ``/api/health``     Liveness and tracked request count
========  ==================  ==========================================

Status codes of ``POST /api/generate``:

- ``200`` ``{data: [{url, revised_prompt?}], created}``
- ``202`` ``{status: "pending"}``
- ``400`` prompt missing or blank, or unparsable body
- ``500`` provider timeout, malformed provider response, provider failure

Usage
-----
CLI (installed entry point)::

    pixelprompt

Direct invocation::

    python -m pixelprompt.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pixelprompt import __version__
from pixelprompt.api.models import ErrorResponse, GenerateRequest, PendingResponse
from pixelprompt.core.config import PixelPromptConfig, config
from pixelprompt.core.errors import GenerationError, PromptValidationError, ProviderError
from pixelprompt.core.generation import GenerationService
from pixelprompt.core.models import GenerationStatus, RequestState
from pixelprompt.core.provider import ImageProvider, OpenAIImageProvider
from pixelprompt.core.status_store import ExpirySweeper, InMemoryStatusStore, StatusStore

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


# ---------------------------------------------------------------------------
# Application lifecycle - expiry sweeper and provider teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Starts the :class:`ExpirySweeper` for the application's status store.

    On shutdown:
        Stops the sweeper, cancels background generations still running, and
        closes the provider's network client.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    service: GenerationService = app.state.generation_service
    sweeper = ExpirySweeper(service.store, app.state.config.sweep_interval)
    sweeper.start()
    app.state.sweeper = sweeper

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    await sweeper.stop()
    await service.aclose()
    logger.info("Generation service closed on shutdown.")


# ---------------------------------------------------------------------------
# Response helpers.
# ---------------------------------------------------------------------------


def _error_response(
    error: GenerationError, *, verbose: bool, request_id: str | None = None
) -> JSONResponse:
    """Serialise a :class:`GenerationError` with its kind's status code."""
    payload = ErrorResponse.from_error(error, verbose=verbose)
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return JSONResponse(
        status_code=error.kind.status_code,
        content=payload.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def _status_response(status: GenerationStatus, *, verbose: bool) -> JSONResponse:
    """Translate a status record into the matching HTTP answer."""
    headers = {REQUEST_ID_HEADER: status.request_id}

    if status.state is RequestState.COMPLETED and status.result is not None:
        return JSONResponse(
            content=status.result.model_dump(mode="json", exclude_none=True),
            headers=headers,
        )

    if status.state is RequestState.FAILED:
        payload = ErrorResponse.from_status(status, verbose=verbose)
        return JSONResponse(
            status_code=payload.kind.status_code,
            content=payload.model_dump(mode="json", exclude_none=True),
            headers=headers,
        )

    return JSONResponse(status_code=202, content=PendingResponse().model_dump(), headers=headers)


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    app_config: PixelPromptConfig | None = None,
    *,
    provider: ImageProvider | None = None,
    store: StatusStore | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_config: Configuration to use.  Defaults to the global ``config``.
        provider: Image provider.  Defaults to :class:`OpenAIImageProvider`.
        store: Status store.  Defaults to an :class:`InMemoryStatusStore`
            with the configured retention window.

    Returns:
        The configured application.
    """
    app_config = app_config or config
    store = store if store is not None else InMemoryStatusStore(app_config.status_retention)
    provider = provider or OpenAIImageProvider(app_config)

    app = FastAPI(
        title="PixelPrompt",
        description="Text-to-image generation with request status tracking.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.generation_service = GenerationService(app_config, provider, store)

    # Allow cross-origin requests so the UI can be served from another port.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report unparsable request bodies as a 400 with the usual payload."""
        logger.warning("Rejected malformed request body: %s", exc.errors())
        return _error_response(
            PromptValidationError("Invalid request body."),
            verbose=app_config.verbose_errors,
        )

    @app.post("/api/generate")
    async def generate_image(req: GenerateRequest, request: Request) -> JSONResponse:
        """Start a generation, or report the status of a tracked request.

        Args:
            req: Validated :class:`GenerateRequest` payload.

        Returns:
            200 with the image list, 202 while pending, 400 for a missing
            prompt, or 500 with an error payload.
        """
        service: GenerationService = request.app.state.generation_service
        verbose = app_config.verbose_errors

        try:
            status = await service.submit(req.prompt, req.request_id)
        except GenerationError as exc:
            logger.info("Rejected request %s: %s", req.request_id, exc.message)
            return _error_response(exc, verbose=verbose, request_id=req.request_id)
        except Exception as exc:
            logger.exception("Unexpected failure while handling request %s.", req.request_id)
            error = ProviderError(str(exc) or None)
            error.__cause__ = exc
            return _error_response(error, verbose=verbose, request_id=req.request_id)

        return _status_response(status, verbose=verbose)

    @app.get("/api/health")
    async def health(request: Request) -> dict:
        """Return liveness information.

        Returns:
            Dictionary with ``status``, ``version`` and ``tracked_requests``.
        """
        service: GenerationService = request.app.state.generation_service
        return {
            "status": "ok",
            "version": __version__,
            "tracked_requests": len(service.store),
        }

    return app


# ---------------------------------------------------------------------------
# Default application instance.
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~pixelprompt.core.config.config` (which
    loads from ``PIXELPROMPT_SERVER_HOST`` and ``PIXELPROMPT_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``pixelprompt`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    from pixelprompt.core.logging_setup import setup_logging

    setup_logging()
    uvicorn.run(
        "pixelprompt.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
