"""Gradio UI for PixelPrompt."""

import logging

import gradio as gr

from pixelprompt.client import ClientState
from pixelprompt.core.config import config
from pixelprompt.core.logging_setup import setup_logging

from .handlers import generate_image

logger = logging.getLogger(__name__)


def create_ui() -> gr.Blocks:
    """Create the Gradio UI.

    Returns:
        Gradio Blocks app
    """
    app = gr.Blocks(title="PixelPrompt")

    with app:
        # Session state - one instance per user
        client_state = gr.State(ClientState())

        gr.Markdown(
            """
            # PixelPrompt
            ### Describe an image and let the model create it
            """
        )

        with gr.Row():
            prompt_input = gr.Textbox(
                label="Prompt",
                placeholder="Describe the image you want to generate...",
                lines=2,
                scale=4,
            )
            generate_btn = gr.Button("Generate", variant="primary", scale=1)

        error_output = gr.Markdown()
        image_output = gr.Image(label="Generated image", type="filepath", height=512)
        download_output = gr.Markdown()

        generate_btn.click(
            fn=generate_image,
            inputs=[prompt_input, client_state],
            outputs=[image_output, error_output, download_output, client_state],
            concurrency_limit=None,
        )
        prompt_input.submit(
            fn=generate_image,
            inputs=[prompt_input, client_state],
            outputs=[image_output, error_output, download_output, client_state],
            concurrency_limit=None,
        )

    return app


def main():
    """Launch the Gradio UI."""
    setup_logging()
    logger.info("Starting PixelPrompt UI against %s", config.api_base_url)

    app = create_ui()
    app.queue().launch(
        server_name=config.ui_server_name,
        server_port=config.ui_server_port,
        share=config.ui_share,
        show_error=True,
    )


if __name__ == "__main__":
    main()
