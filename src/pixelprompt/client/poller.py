"""Async client for the generation endpoint with polling and retries.

:class:`GenerationClient` hides the latency of a pending generation from its
caller:

1. Send the prompt with a fresh request id.
2. While the endpoint answers ``202``, poll it with the same request id and
   prompt every ``poll_interval`` seconds.  The poll loop runs in a task owned
   by :meth:`GenerationClient._wait_until_terminal`, which cancels it on every
   exit path and enforces the ``max_poll_wait`` deadline.
3. If the outcome is a failure tagged :attr:`ErrorKind.TIMEOUT`, start over
   with a new request id, at most ``max_retries`` times.

Usage
-----
::

    client = GenerationClient.from_config(config)
    result = await client.generate("a lighthouse at dusk")
    print(result.data[0].url)

    # Or drive a UI-facing state object that never raises:
    state = await client.run("a lighthouse at dusk")
    print(state.image_url or state.error)
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass

import httpx

from pixelprompt.core.config import PixelPromptConfig
from pixelprompt.core.errors import (
    ErrorKind,
    GenerationError,
    MalformedResponseError,
    PollDeadlineError,
    ServiceUnavailableError,
    error_from_payload,
)
from pixelprompt.core.models import GenerationResult

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"


@dataclass
class ClientState:
    """UI-visible state of one generation.

    Attributes:
        loading: True while a request or poll is outstanding.
        error: Message of the final failure, if any.
        error_kind: Kind of the final failure, if any.
        result: The successful result, if any.
        retries: Number of from-scratch retries consumed.
        polls: Number of status polls sent across all attempts.
    """

    loading: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None
    result: GenerationResult | None = None
    retries: int = 0
    polls: int = 0

    @property
    def image_url(self) -> str | None:
        return self.result.first_url if self.result else None

    @property
    def revised_prompt(self) -> str | None:
        if self.result and self.result.data:
            return self.result.data[0].revised_prompt
        return None

    def reset(self) -> None:
        """Clear the outcome of a previous generation."""
        self.loading = False
        self.error = None
        self.error_kind = None
        self.result = None
        self.retries = 0
        self.polls = 0


class GenerationClient:
    """Client for ``POST /api/generate``.

    Attributes:
        base_url: Root URL of the API.
        poll_interval: Seconds between status polls.
        max_poll_wait: Seconds before polling gives up.
        max_retries: Retries allowed after a provider timeout.
        timeout: HTTP timeout of one request.
    """

    def __init__(
        self,
        base_url: str,
        *,
        poll_interval: float = 2.0,
        max_poll_wait: float = 180.0,
        max_retries: int = 2,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            base_url: Root URL of the API, e.g. ``http://127.0.0.1:8000``.
            poll_interval: Seconds between status polls.
            max_poll_wait: Seconds before polling gives up.
            max_retries: Retries allowed after a provider timeout.
            timeout: HTTP timeout of a single request.
            transport: Optional httpx transport (tests pass a mock transport
                or an ASGI transport here).
        """
        self.base_url = base_url
        self.poll_interval = poll_interval
        self.max_poll_wait = max_poll_wait
        self.max_retries = max_retries
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: PixelPromptConfig, transport: httpx.AsyncBaseTransport | None = None
    ) -> GenerationClient:
        return cls(
            config.api_base_url,
            poll_interval=config.poll_interval,
            max_poll_wait=config.max_poll_wait,
            max_retries=config.max_retries,
            timeout=config.client_timeout,
            transport=transport,
        )

    # -- Public interface ---------------------------------------------------

    async def run(self, prompt: str, state: ClientState | None = None) -> ClientState:
        """Generate an image and record the outcome on *state*.

        Unlike :meth:`generate`, generation failures do not raise; they are
        stored on the returned state.

        Args:
            prompt: Image description.
            state: State object to update.  A new one is created if omitted.

        Returns:
            The updated state, with ``loading`` cleared.
        """
        state = state if state is not None else ClientState()
        state.reset()
        state.loading = True
        try:
            state.result = await self.generate(prompt, state)
        except GenerationError as exc:
            state.error = exc.message
            state.error_kind = exc.kind
        finally:
            state.loading = False
        return state

    async def generate(self, prompt: str, state: ClientState | None = None) -> GenerationResult:
        """Generate an image, polling and retrying as needed.

        Args:
            prompt: Image description.
            state: Optional state whose ``retries``/``polls`` counters are
                updated as the call progresses.

        Returns:
            The successful generation result.

        Raises:
            GenerationError: The final failure after retries are exhausted,
                or the first non-retryable failure.
        """
        state = state if state is not None else ClientState()
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            while True:
                try:
                    return await self._attempt(client, prompt, state)
                except GenerationError as exc:
                    if not exc.retryable or state.retries >= self.max_retries:
                        logger.error("Generation failed [%s]: %s", exc.kind.value, exc.message)
                        raise
                    state.retries += 1
                    logger.warning(
                        "Generation timed out; retry %d of %d.", state.retries, self.max_retries
                    )

    # -- Internals ----------------------------------------------------------

    async def _attempt(
        self, client: httpx.AsyncClient, prompt: str, state: ClientState
    ) -> GenerationResult:
        """Run one generation attempt with a fresh request id."""
        request_id = uuid.uuid4().hex
        response = await self._post(client, prompt, request_id)
        if response.status_code == 202:
            response = await self._wait_until_terminal(client, prompt, request_id, state)
        return self._parse(response)

    async def _wait_until_terminal(
        self, client: httpx.AsyncClient, prompt: str, request_id: str, state: ClientState
    ) -> httpx.Response:
        """Poll until the endpoint stops answering 202 or the deadline passes.

        This coroutine is the single owner of the poll task: it is cancelled
        on success, on failure and when the deadline fires.
        """
        poll = asyncio.ensure_future(self._poll(client, prompt, request_id, state))
        try:
            return await asyncio.wait_for(poll, timeout=self.max_poll_wait)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Gave up polling request %s after %ss.", request_id, self.max_poll_wait
            )
            raise PollDeadlineError() from exc
        finally:
            if not poll.done():
                poll.cancel()

    async def _poll(
        self, client: httpx.AsyncClient, prompt: str, request_id: str, state: ClientState
    ) -> httpx.Response:
        while True:
            await asyncio.sleep(self.poll_interval)
            state.polls += 1
            response = await self._post(client, prompt, request_id)
            if response.status_code != 202:
                return response

    async def _post(self, client: httpx.AsyncClient, prompt: str, request_id: str) -> httpx.Response:
        try:
            return await client.post(GENERATE_PATH, json={"prompt": prompt, "requestId": request_id})
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError() from exc

    @staticmethod
    def _parse(response: httpx.Response) -> GenerationResult:
        """Turn a terminal response into a result or raise its error."""
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            raise error_from_payload(payload, response.status_code)

        try:
            return GenerationResult.model_validate(payload)
        except ValueError as exc:
            raise MalformedResponseError() from exc
