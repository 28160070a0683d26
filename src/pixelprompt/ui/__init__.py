"""Gradio user interface for PixelPrompt."""
