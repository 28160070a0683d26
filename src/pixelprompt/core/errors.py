"""Error types shared by the generation endpoint and the polling client.

Every failure carries an :class:`ErrorKind` tag set by the layer that detected
the condition.  The HTTP layer serialises the tag into the error payload and
the client rebuilds the matching exception from it, so retry decisions never
depend on the wording of an error message.

Kinds
-----
========================  ===========  =========  ============================
Kind                      HTTP status  Retryable  Raised by
========================  ===========  =========  ============================
``validation``            400          no         prompt validation
``timeout``               500          yes        provider timeout wrapper
``malformed_response``    500          no         provider response validation
``provider``              500          no         provider SDK failures
``poll_deadline``         n/a          no         client poll loop
``connection``            n/a          no         client transport
========================  ===========  =========  ============================
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Structured classification of a generation failure."""

    VALIDATION = "validation"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    PROVIDER = "provider"
    POLL_DEADLINE = "poll_deadline"
    CONNECTION = "connection"

    @property
    def retryable(self) -> bool:
        """Whether a fresh attempt may succeed where this one failed."""
        return self is ErrorKind.TIMEOUT

    @property
    def status_code(self) -> int:
        """HTTP status used when the endpoint reports this kind."""
        return 400 if self is ErrorKind.VALIDATION else 500


class GenerationError(Exception):
    """Base class for all generation failures.

    The message is intended to be displayed directly to the user.

    Attributes:
        message: Human-readable description of the failure.
        kind: The :class:`ErrorKind` tag.
    """

    kind: ErrorKind = ErrorKind.PROVIDER
    default_message = "Image generation failed, please try again later."

    def __init__(self, message: str | None = None, *, kind: ErrorKind | None = None) -> None:
        self.message = message or self.default_message
        if kind is not None:
            self.kind = kind
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def details(self) -> dict[str, Any]:
        """Return structured diagnostics for verbose error payloads.

        Returns:
            Dictionary with the exception ``name`` and a ``cause`` string
            describing the chained exception, or ``None``.
        """
        cause = self.__cause__
        return {
            "name": type(self).__name__,
            "cause": f"{type(cause).__name__}: {cause}" if cause is not None else None,
        }


class PromptValidationError(GenerationError):
    """The request did not contain a usable prompt."""

    kind = ErrorKind.VALIDATION
    default_message = "Please provide an image description."


class ProviderTimeoutError(GenerationError):
    """The provider did not answer within the configured bound."""

    kind = ErrorKind.TIMEOUT
    default_message = "Image generation timed out, please retry."


class MalformedResponseError(GenerationError):
    """The provider answered, but without the expected image list."""

    kind = ErrorKind.MALFORMED_RESPONSE
    default_message = "Invalid API response format."


class ProviderError(GenerationError):
    """Any other failure raised by the provider SDK."""

    kind = ErrorKind.PROVIDER


class PollDeadlineError(GenerationError):
    """The client gave up waiting for a pending request."""

    kind = ErrorKind.POLL_DEADLINE
    default_message = "Image generation is taking too long, please try again later."


class ServiceUnavailableError(GenerationError):
    """The client could not reach the generation endpoint."""

    kind = ErrorKind.CONNECTION
    default_message = "Could not reach the image generation service."


_ERRORS_BY_KIND: dict[ErrorKind, type[GenerationError]] = {
    ErrorKind.VALIDATION: PromptValidationError,
    ErrorKind.TIMEOUT: ProviderTimeoutError,
    ErrorKind.MALFORMED_RESPONSE: MalformedResponseError,
    ErrorKind.PROVIDER: ProviderError,
    ErrorKind.POLL_DEADLINE: PollDeadlineError,
    ErrorKind.CONNECTION: ServiceUnavailableError,
}


def error_from_payload(payload: Any, status_code: int) -> GenerationError:
    """Rebuild a :class:`GenerationError` from an endpoint error payload.

    Payloads without a recognised ``kind`` are classified by status code:
    4xx responses become validation errors, everything else a provider error.

    Args:
        payload: Decoded JSON body of the error response (may be ``None``).
        status_code: HTTP status of the response.

    Returns:
        An instance of the subclass matching the payload's kind.
    """
    message = None
    kind = None
    if isinstance(payload, dict):
        if isinstance(payload.get("error"), str):
            message = payload["error"]
        try:
            kind = ErrorKind(payload.get("kind"))
        except ValueError:
            kind = None

    if kind is None:
        kind = ErrorKind.VALIDATION if 400 <= status_code < 500 else ErrorKind.PROVIDER

    return _ERRORS_BY_KIND[kind](message)
