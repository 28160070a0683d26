"""Image provider collaborators and the bounded provider call.

The provider is treated as a black box: given a prompt it asynchronously
returns a response containing an ordered image list, or raises.  This module
defines that contract (:class:`ImageProvider`), the OpenAI-backed
implementation, and :func:`generate_with_timeout`, which turns every way the
call can go wrong into a tagged :class:`~pixelprompt.core.errors.GenerationError`.

Usage
-----
::

    from pixelprompt.core.config import config
    from pixelprompt.core.provider import OpenAIImageProvider, generate_with_timeout

    provider = OpenAIImageProvider(config)
    result = await generate_with_timeout(provider, "a lighthouse at dusk", 25)
    print(result.data[0].url)
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any, TypeVar

from pydantic import ValidationError

from .config import PixelPromptConfig
from .errors import GenerationError, MalformedResponseError, ProviderError, ProviderTimeoutError
from .models import GenerationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ImageProvider(ABC):
    """Contract for an external image-generation service."""

    name: str = "provider"

    @abstractmethod
    async def generate(self, prompt: str) -> Any:
        """Generate images for *prompt*.

        Args:
            prompt: Non-empty natural-language description.

        Returns:
            The raw provider response.  It must expose a ``data`` list of
            ``{url, revised_prompt?}`` items and a ``created`` timestamp,
            either as a mapping or as a pydantic model.

        Raises:
            Exception: Any failure; it is reported as a provider error.
        """

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None


class OpenAIImageProvider(ImageProvider):
    """Provider backed by an OpenAI-compatible ``images.generate`` endpoint.

    The SDK client is created lazily on the first call, so a missing API key
    surfaces as a provider error on that request rather than at start-up.
    """

    name = "openai"

    def __init__(self, config: PixelPromptConfig) -> None:
        self._config = config
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=self._config.openai_api_key,
                base_url=self._config.openai_base_url,
                # The endpoint applies its own bound; keep the SDK from
                # retrying behind it.
                max_retries=0,
            )
        return self._client

    async def generate(self, prompt: str) -> Any:
        client = self._get_client()
        logger.debug(
            "Requesting %d image(s) from %s (size=%s).",
            self._config.image_count,
            self._config.image_model,
            self._config.image_size,
        )
        return await client.images.generate(
            model=self._config.image_model,
            prompt=prompt,
            n=self._config.image_count,
            size=self._config.image_size,
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


async def with_timeout(awaitable: Awaitable[T], seconds: float) -> T:
    """Await *awaitable*, giving up after *seconds*.

    On timeout the awaiting task is cancelled; whether the remote work is
    actually aborted depends on the provider.

    Raises:
        ProviderTimeoutError: If the bound elapses first.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise ProviderTimeoutError() from exc


def parse_provider_response(response: Any) -> GenerationResult:
    """Validate the shape of a provider response.

    Args:
        response: Mapping or pydantic model returned by the provider.

    Returns:
        The validated :class:`GenerationResult`.

    Raises:
        MalformedResponseError: If the image list is missing, ``None``, not a
            list, or contains items without a ``url``.
    """
    if response is None:
        raise MalformedResponseError()

    if hasattr(response, "model_dump"):
        response = response.model_dump()

    if not isinstance(response, dict) or not isinstance(response.get("data"), list):
        raise MalformedResponseError()

    try:
        return GenerationResult.model_validate(
            {"data": response["data"], "created": response.get("created")}
        )
    except ValidationError as exc:
        raise MalformedResponseError() from exc


async def generate_with_timeout(
    provider: ImageProvider, prompt: str, timeout: float
) -> GenerationResult:
    """Call *provider* with a bounded wait and validate what comes back.

    Args:
        provider: The image provider to invoke.
        prompt: Validated prompt text.
        timeout: Seconds to wait before failing.

    Returns:
        The validated generation result.

    Raises:
        ProviderTimeoutError: The provider exceeded *timeout*.
        MalformedResponseError: The response lacked a valid image list.
        ProviderError: The provider raised anything else.
    """
    try:
        response = await with_timeout(provider.generate(prompt), timeout)
    except GenerationError:
        raise
    except Exception as exc:
        raise ProviderError(str(exc) or None) from exc

    return parse_provider_response(response)
