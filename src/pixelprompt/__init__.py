"""PixelPrompt - text-to-image generation through a hosted image API."""

__version__ = "0.1.0"

from pixelprompt.core.config import PixelPromptConfig, config
from pixelprompt.core.errors import ErrorKind, GenerationError

__all__ = [
    "ErrorKind",
    "GenerationError",
    "PixelPromptConfig",
    "config",
]
