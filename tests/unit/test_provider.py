"""Tests for pixelprompt.core.provider - bounded provider calls.

All tests use fake providers or a patched OpenAI client; no network access.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from pixelprompt.core.errors import MalformedResponseError, ProviderError, ProviderTimeoutError
from pixelprompt.core.provider import (
    OpenAIImageProvider,
    generate_with_timeout,
    parse_provider_response,
    with_timeout,
)


@pytest.mark.unit
class TestWithTimeout:
    def test_returns_value_inside_bound(self):
        async def quick():
            return 42

        assert asyncio.run(with_timeout(quick(), 1.0)) == 42

    def test_raises_provider_timeout(self):
        async def slow():
            await asyncio.sleep(5)

        with pytest.raises(ProviderTimeoutError) as excinfo:
            asyncio.run(with_timeout(slow(), 0.01))
        assert excinfo.value.retryable is True


@pytest.mark.unit
class TestParseProviderResponse:
    def test_valid_mapping(self, sample_response):
        result = parse_provider_response(sample_response)
        assert result.created == 1700000000
        assert result.data[0].url.endswith("lighthouse.png")

    def test_preserves_image_order(self):
        result = parse_provider_response(
            {"data": [{"url": "https://a"}, {"url": "https://b"}], "created": 1}
        )
        assert [image.url for image in result.data] == ["https://a", "https://b"]

    def test_pydantic_like_object(self, sample_response):
        class SdkResponse:
            def model_dump(self):
                return sample_response

        result = parse_provider_response(SdkResponse())
        assert result.first_url == sample_response["data"][0]["url"]

    @pytest.mark.parametrize(
        "response",
        [
            None,
            {},
            {"data": None, "created": 1},
            {"data": "not-a-list", "created": 1},
            {"data": [{"revised_prompt": "no url"}], "created": 1},
            {"data": [{"url": "https://a"}]},
            ["https://a"],
        ],
    )
    def test_malformed(self, response):
        with pytest.raises(MalformedResponseError):
            parse_provider_response(response)


@pytest.mark.unit
class TestGenerateWithTimeout:
    def test_success(self, make_provider, sample_response):
        provider = make_provider(sample_response)
        result = asyncio.run(generate_with_timeout(provider, "a cat", 1.0))
        assert result.first_url == sample_response["data"][0]["url"]
        assert provider.prompts == ["a cat"]

    def test_timeout(self, make_provider, sample_response):
        provider = make_provider(sample_response, delay=1.0)
        with pytest.raises(ProviderTimeoutError):
            asyncio.run(generate_with_timeout(provider, "a cat", 0.01))

    def test_provider_exception_message_kept(self, make_provider):
        provider = make_provider(RuntimeError("quota exceeded"))
        with pytest.raises(ProviderError) as excinfo:
            asyncio.run(generate_with_timeout(provider, "a cat", 1.0))
        assert excinfo.value.message == "quota exceeded"
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_provider_exception_without_message(self, make_provider):
        provider = make_provider(RuntimeError())
        with pytest.raises(ProviderError) as excinfo:
            asyncio.run(generate_with_timeout(provider, "a cat", 1.0))
        assert excinfo.value.message == ProviderError.default_message

    def test_malformed_is_not_retryable(self, make_provider):
        provider = make_provider({"data": None, "created": 1})
        with pytest.raises(MalformedResponseError) as excinfo:
            asyncio.run(generate_with_timeout(provider, "a cat", 1.0))
        assert excinfo.value.retryable is False


@pytest.mark.unit
class TestOpenAIImageProvider:
    def test_sends_configured_request(self, test_config, sample_response):
        fake_client = SimpleNamespace(
            images=SimpleNamespace(generate=AsyncMock(return_value=sample_response)),
            close=AsyncMock(),
        )

        with patch("openai.AsyncOpenAI", return_value=fake_client) as mock_cls:
            provider = OpenAIImageProvider(test_config)

            async def scenario():
                response = await provider.generate("a lighthouse")
                await provider.aclose()
                return response

            response = asyncio.run(scenario())

        assert response == sample_response
        mock_cls.assert_called_once_with(api_key="test-key", base_url=None, max_retries=0)
        fake_client.images.generate.assert_awaited_once_with(
            model="dall-e-3", prompt="a lighthouse", n=1, size="1024x1024"
        )
        fake_client.close.assert_awaited_once()

    def test_client_created_lazily(self, test_config):
        with patch("openai.AsyncOpenAI") as mock_cls:
            OpenAIImageProvider(test_config)
        mock_cls.assert_not_called()
