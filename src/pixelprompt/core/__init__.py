"""Core request lifecycle for PixelPrompt.

Modules
-------
config
    Pydantic Settings configuration.
errors
    Tagged generation errors.
models
    Result and status records.
status_store
    Request status store and expiry sweeper.
provider
    Image provider contract and the bounded provider call.
generation
    The request lifecycle service used by the API.
"""

from .config import PixelPromptConfig, config
from .errors import ErrorKind, GenerationError
from .generation import GenerationService
from .models import GenerationResult, GenerationStatus, ImageData, RequestState
from .provider import ImageProvider, OpenAIImageProvider
from .status_store import ExpirySweeper, InMemoryStatusStore, StatusStore

__all__ = [
    "ErrorKind",
    "ExpirySweeper",
    "GenerationError",
    "GenerationResult",
    "GenerationService",
    "GenerationStatus",
    "ImageData",
    "ImageProvider",
    "InMemoryStatusStore",
    "OpenAIImageProvider",
    "PixelPromptConfig",
    "RequestState",
    "StatusStore",
    "config",
]
