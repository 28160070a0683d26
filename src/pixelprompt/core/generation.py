"""Request lifecycle around a single provider call.

:class:`GenerationService` holds the endpoint logic independently of HTTP:

1. Validate the prompt (always, even when a request id is supplied).
2. If the request id is already tracked, return its current status without
   calling the provider again.
3. Otherwise create a pending record, call the provider with a bounded wait,
   and move the record to completed or failed.

In background mode step 3 is scheduled as an owned asyncio task and the
pending record is returned immediately; the client polls for the outcome.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from .config import PixelPromptConfig
from .errors import GenerationError, PromptValidationError, ProviderError
from .models import GenerationStatus
from .provider import ImageProvider, generate_with_timeout
from .status_store import StatusStore

logger = logging.getLogger(__name__)


def validate_prompt(prompt: object) -> str:
    """Return the stripped prompt or raise if it is unusable.

    Args:
        prompt: Raw ``prompt`` value from the request body.

    Returns:
        The prompt with surrounding whitespace removed.

    Raises:
        PromptValidationError: If the prompt is missing, not a string, or blank.
    """
    if not isinstance(prompt, str) or not prompt.strip():
        raise PromptValidationError()
    return prompt.strip()


def new_request_id() -> str:
    """Generate a request id for callers that did not supply one."""
    return uuid.uuid4().hex


class GenerationService:
    """Coordinates the status store and the image provider.

    Attributes:
        store: The status store shared by all requests of this process.
        provider: The image provider collaborator.
    """

    def __init__(
        self,
        config: PixelPromptConfig,
        provider: ImageProvider,
        store: StatusStore,
    ) -> None:
        self._config = config
        self.provider = provider
        self.store = store
        self._tasks: set[asyncio.Task] = set()

    async def submit(self, prompt: object, request_id: str | None = None) -> GenerationStatus:
        """Handle one generation request.

        Args:
            prompt: Raw prompt from the request body.
            request_id: Optional client-supplied correlation id.

        Returns:
            The status record for the request: terminal in synchronous mode,
            pending in background mode or when the id is already in flight.

        Raises:
            PromptValidationError: If the prompt is missing or blank.
        """
        prompt = validate_prompt(prompt)

        if request_id:
            existing = self.store.get(request_id)
            if existing is not None:
                logger.debug("Request %s already tracked (%s).", request_id, existing.state.value)
                return existing
        else:
            request_id = new_request_id()

        # No suspension point between the lookup above and this insert.
        record = self.store.create_pending(request_id)

        if self._config.background_generation:
            task = asyncio.get_running_loop().create_task(
                self._run(request_id, prompt), name=f"generate-{request_id}"
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return record

        return await self._run(request_id, prompt)

    async def _run(self, request_id: str, prompt: str) -> GenerationStatus:
        """Call the provider and record the terminal state."""
        logger.info("Generating image for request %s.", request_id)
        try:
            result = await generate_with_timeout(
                self.provider, prompt, self._config.provider_timeout
            )
            status = self.store.mark_completed(request_id, result)
        except GenerationError as exc:
            logger.error(
                "Generation failed for request %s [%s]: %s",
                request_id,
                exc.kind.value,
                exc.message,
                exc_info=exc.__cause__ is not None,
            )
            return self.store.mark_failed(request_id, exc)
        except Exception as exc:
            logger.exception("Unexpected error while generating request %s", request_id)
            error = ProviderError(str(exc) or None)
            error.__cause__ = exc
            return self.store.mark_failed(request_id, error)

        logger.info("Request %s completed with %d image(s).", request_id, len(result.data))
        return status

    @property
    def in_flight(self) -> int:
        """Number of background generations still running."""
        return len(self._tasks)

    async def aclose(self) -> None:
        """Cancel outstanding background generations and close the provider."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d background generation(s).", len(tasks))
        await self.provider.aclose()
