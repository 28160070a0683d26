"""Event handlers for the PixelPrompt Gradio UI."""

import logging

from pixelprompt.client import ClientState, GenerationClient
from pixelprompt.core.config import config

logger = logging.getLogger(__name__)

EMPTY_PROMPT_MESSAGE = "Please enter an image description."
DOWNLOAD_FILENAME = "generated-image.png"

_client: GenerationClient | None = None


def get_client() -> GenerationClient:
    """Return the shared generation client, creating it on first use."""
    global _client
    if _client is None:
        _client = GenerationClient.from_config(config)
    return _client


def format_error(message: str | None) -> str:
    """Format an error message for the error Markdown area."""
    return f"❌ {message}" if message else ""


def format_download_link(url: str | None) -> str:
    """Build the Markdown download link for a generated image.

    Args:
        url: Image URL returned by the provider

    Returns:
        Markdown link, or an empty string when there is no image
    """
    if not url:
        return ""
    return f'<a href="{url}" download="{DOWNLOAD_FILENAME}" target="_blank">⬇️ Download image</a>'


async def generate_image(
    prompt: str, state: ClientState | None
) -> tuple[str | None, str, str, ClientState]:
    """Generate an image for the prompt entered in the UI.

    Blank prompts are rejected before any request is sent.  All other
    failures are reported through the error area; this handler never raises.

    Args:
        prompt: Text from the prompt box
        state: Per-session client state

    Returns:
        Tuple of (image_url, error_markdown, download_markdown, updated_state)
    """
    if state is None:
        state = ClientState()

    if not prompt or not prompt.strip():
        state.reset()
        state.error = EMPTY_PROMPT_MESSAGE
        return None, format_error(EMPTY_PROMPT_MESSAGE), "", state

    logger.info("UI requested generation (%d chars).", len(prompt))
    state = await get_client().run(prompt.strip(), state)

    if state.error:
        return None, format_error(state.error), "", state

    caption = ""
    if state.revised_prompt:
        caption = f"\n\n*Revised prompt:* {state.revised_prompt}"
    return state.image_url, "", format_download_link(state.image_url) + caption, state
