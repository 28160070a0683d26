"""Configuration management for PixelPrompt.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the PIXELPROMPT_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (PIXELPROMPT_* prefix)
2. .env file in the project root
3. Default values defined in PixelPromptConfig

Example .env file:
    PIXELPROMPT_OPENAI_API_KEY=sk-...
    PIXELPROMPT_OPENAI_BASE_URL=https://api.openai.com/v1
    PIXELPROMPT_PROVIDER_TIMEOUT=25
    PIXELPROMPT_BACKGROUND_GENERATION=true

When ``openai_api_key`` or ``openai_base_url`` are left unset, the OpenAI SDK
falls back to its own ``OPENAI_API_KEY`` / ``OPENAI_BASE_URL`` variables.

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The API server, the polling client and the Gradio UI all read from it unless
a caller passes its own instance.

Usage Example
-------------
    from pixelprompt.core.config import config

    print(config.provider_timeout)
    print(config.api_base_url)

Timing Settings
---------------
Server side:
- provider_timeout: bound on a single provider call (seconds)
- status_retention: how long a request status is remembered
- sweep_interval: how often expired statuses are purged

Client side:
- poll_interval: delay between status checks while a request is pending
- max_poll_wait: total time the client waits for a pending request
- max_retries: how many times a timed-out generation is retried from scratch
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PixelPromptConfig(BaseSettings):
    """Main configuration for PixelPrompt.

    Values are loaded from environment variables with the PIXELPROMPT_ prefix,
    with fallback to the defaults defined here.

    Attributes
    ----------
    Provider Settings:
        openai_api_key : str | None
            API key for the image provider
        openai_base_url : str | None
            Base URL of an OpenAI-compatible image API
        image_model : str
            Model name sent with every generation request
        image_size : str
            Requested image size (``WIDTHxHEIGHT`` or ``auto``)
        image_count : int
            Number of images requested per prompt

    Request Lifecycle:
        provider_timeout : float
            Seconds to wait for the provider before failing with a timeout
        status_retention : float
            Seconds a request status is kept after creation
        sweep_interval : float
            Seconds between expiry sweeps of the status store
        background_generation : bool
            Answer 202 immediately and finish generation in the background
        verbose_errors : bool
            Include diagnostic details and a timestamp in error payloads

    Client Settings:
        api_base_url : str
            Base URL the polling client sends requests to
        poll_interval : float
            Seconds between status polls
        max_poll_wait : float
            Seconds before the client gives up polling
        max_retries : int
            Retries after a provider timeout
        client_timeout : float
            HTTP timeout of a single client request

    Server Settings:
        server_host / server_port : API bind address
        ui_server_name / ui_server_port / ui_share : Gradio launch options

    Examples
    --------
        >>> custom_config = PixelPromptConfig(
        ...     provider_timeout=10,
        ...     background_generation=True,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIXELPROMPT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider settings
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the image provider (falls back to OPENAI_API_KEY)",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Base URL of the provider API (falls back to OPENAI_BASE_URL)",
    )
    image_model: str = Field(
        default="dall-e-3",
        description="Image model requested from the provider",
    )
    image_size: str = Field(
        default="1024x1024",
        description="Requested image size as WIDTHxHEIGHT, or auto",
        pattern=r"^(auto|\d+x\d+)$",
    )
    image_count: int = Field(default=1, ge=1, le=10)

    # Request lifecycle
    provider_timeout: float = Field(
        default=25.0,
        description="Seconds to wait for the provider before giving up",
        gt=0,
    )
    status_retention: float = Field(
        default=30 * 60,
        description="Seconds a request status is kept after it was created",
        gt=0,
    )
    sweep_interval: float = Field(
        default=5 * 60,
        description="Seconds between expiry sweeps",
        gt=0,
    )
    background_generation: bool = Field(
        default=False,
        description="Return 202 immediately and generate in the background",
    )
    verbose_errors: bool = Field(
        default=True,
        description="Include diagnostic details and a timestamp in error responses",
    )

    # Client settings
    api_base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL of the generation API used by the client",
    )
    poll_interval: float = Field(default=2.0, ge=0)
    max_poll_wait: float = Field(default=3 * 60, gt=0)
    max_retries: int = Field(default=2, ge=0)
    client_timeout: float = Field(
        default=60.0,
        description="HTTP timeout of a single client request",
        gt=0,
    )

    # Server settings
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8000, ge=1024, le=65535)

    # UI settings
    ui_server_name: str = Field(
        default="0.0.0.0",
        description="Gradio bind address (0.0.0.0 for local network)",
    )
    ui_server_port: int = Field(default=7860, ge=1024, le=65535)
    ui_share: bool = Field(
        default=False,
        description="Create public gradio.live link (keep False for local-only)",
    )


# Global configuration instance
# Loads values from environment variables (PIXELPROMPT_* prefix) and .env file.
config = PixelPromptConfig()
