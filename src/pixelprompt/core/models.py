"""Data models for request status tracking and generation results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .errors import ErrorKind


class ImageData(BaseModel):
    """One generated image as returned by the provider."""

    url: str = Field(..., description="Location of the generated image.")
    revised_prompt: str | None = Field(
        default=None,
        description="Prompt as rewritten by the provider, if it did so.",
    )


class GenerationResult(BaseModel):
    """Successful provider response.

    Attributes:
        data: Ordered list of generated images.  Never ``None``.
        created: Unix timestamp reported by the provider.
    """

    data: list[ImageData]
    created: int

    @property
    def first_url(self) -> str | None:
        return self.data[0].url if self.data else None


class RequestState(str, Enum):
    """Lifecycle state of a tracked request."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class GenerationStatus:
    """Status record for one request id.

    Created ``pending`` and moved to a terminal state exactly once.  The
    ``created_at`` value comes from the store's monotonic clock and is the
    only timestamp used for expiry.
    """

    request_id: str
    created_at: float
    state: RequestState = RequestState.PENDING
    result: GenerationResult | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    error_details: dict[str, Any] | None = None
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        """Check whether the record reached completed or failed.

        Returns:
            True once the record no longer changes
        """
        return self.state is not RequestState.PENDING
