"""Tests for pixelprompt.core.config - configuration management.

Tests cover:
- Default values for the request lifecycle and client timings.
- Environment variable overrides via the PIXELPROMPT_ prefix.
- Pydantic validation constraints (port range, size literals, positive timings).
"""

from __future__ import annotations

import pytest

from pixelprompt.core.config import PixelPromptConfig


class TestConfigDefaults:
    """Verify that PixelPromptConfig provides the documented defaults."""

    @pytest.fixture
    def defaults(self, monkeypatch) -> PixelPromptConfig:
        for name in (
            "PIXELPROMPT_PROVIDER_TIMEOUT",
            "PIXELPROMPT_STATUS_RETENTION",
            "PIXELPROMPT_SWEEP_INTERVAL",
            "PIXELPROMPT_POLL_INTERVAL",
            "PIXELPROMPT_MAX_POLL_WAIT",
            "PIXELPROMPT_MAX_RETRIES",
            "PIXELPROMPT_BACKGROUND_GENERATION",
            "PIXELPROMPT_VERBOSE_ERRORS",
            "PIXELPROMPT_IMAGE_MODEL",
            "PIXELPROMPT_IMAGE_SIZE",
            "PIXELPROMPT_SERVER_PORT",
        ):
            monkeypatch.delenv(name, raising=False)
        return PixelPromptConfig(_env_file=None)

    def test_provider_timeout_is_25_seconds(self, defaults):
        assert defaults.provider_timeout == 25.0

    def test_retention_is_30_minutes(self, defaults):
        assert defaults.status_retention == 30 * 60

    def test_sweep_every_5_minutes(self, defaults):
        assert defaults.sweep_interval == 5 * 60

    def test_client_timings(self, defaults):
        """Poll every 2s, give up after 3 minutes, retry timeouts twice."""
        assert defaults.poll_interval == 2.0
        assert defaults.max_poll_wait == 180.0
        assert defaults.max_retries == 2

    def test_provider_request_defaults(self, defaults):
        assert defaults.image_model == "dall-e-3"
        assert defaults.image_size == "1024x1024"
        assert defaults.image_count == 1

    def test_lifecycle_flags(self, defaults):
        assert defaults.background_generation is False
        assert defaults.verbose_errors is True

    def test_default_server_port(self, defaults):
        assert defaults.server_port == 8000


class TestConfigEnvironment:
    """Verify PIXELPROMPT_* environment overrides."""

    def test_env_overrides_timeout(self, monkeypatch):
        monkeypatch.setenv("PIXELPROMPT_PROVIDER_TIMEOUT", "10")
        cfg = PixelPromptConfig(_env_file=None)
        assert cfg.provider_timeout == 10.0

    def test_env_enables_background_generation(self, monkeypatch):
        monkeypatch.setenv("PIXELPROMPT_BACKGROUND_GENERATION", "true")
        cfg = PixelPromptConfig(_env_file=None)
        assert cfg.background_generation is True

    def test_env_sets_provider_credentials(self, monkeypatch):
        monkeypatch.setenv("PIXELPROMPT_OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("PIXELPROMPT_OPENAI_BASE_URL", "https://proxy.example.com/v1")
        cfg = PixelPromptConfig(_env_file=None)
        assert cfg.openai_api_key == "sk-test"
        assert cfg.openai_base_url == "https://proxy.example.com/v1"


class TestConfigValidation:
    """Verify Pydantic validation constraints on config fields."""

    def test_invalid_port_too_low(self):
        with pytest.raises(Exception):
            PixelPromptConfig(_env_file=None, server_port=80)

    def test_invalid_image_size(self):
        with pytest.raises(Exception):
            PixelPromptConfig(_env_file=None, image_size="large")

    @pytest.mark.parametrize("size", ["1536x1024", "1024x1536", "auto"])
    def test_image_size_for_other_models(self, size):
        """Sizes of newer image models are accepted as-is."""
        cfg = PixelPromptConfig(_env_file=None, image_model="gpt-image-1", image_size=size)
        assert cfg.image_size == size

    def test_timeout_must_be_positive(self):
        with pytest.raises(Exception):
            PixelPromptConfig(_env_file=None, provider_timeout=0)

    def test_negative_retries_rejected(self):
        with pytest.raises(Exception):
            PixelPromptConfig(_env_file=None, max_retries=-1)

    def test_zero_poll_interval_allowed(self):
        cfg = PixelPromptConfig(_env_file=None, poll_interval=0)
        assert cfg.poll_interval == 0
