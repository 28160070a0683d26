"""HTTP client for the PixelPrompt generation endpoint."""

from .poller import ClientState, GenerationClient

__all__ = ["ClientState", "GenerationClient"]
