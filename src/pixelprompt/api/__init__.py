"""PixelPrompt - FastAPI REST API layer.

Modules
-------
main
    FastAPI application factory, the generation route, and the ``main()``
    CLI entry point.
models
    Pydantic models for API request and response validation.
"""
