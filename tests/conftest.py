"""Shared pytest fixtures for PixelPrompt tests."""

import asyncio
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient

from pixelprompt.api.main import create_app
from pixelprompt.core.config import PixelPromptConfig
from pixelprompt.core.provider import ImageProvider
from pixelprompt.core.status_store import InMemoryStatusStore


SAMPLE_RESPONSE = {
    "data": [
        {
            "url": "https://images.example.com/lighthouse.png",
            "revised_prompt": "A lighthouse on a cliff at dusk, oil painting",
        }
    ],
    "created": 1700000000,
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(ImageProvider):
    """Image provider returning canned responses.

    Each call consumes the next outcome from ``outcomes``; the last outcome
    repeats once the list is exhausted.  An outcome that is an exception
    instance is raised instead of returned.
    """

    name = "fake"

    def __init__(self, *outcomes: Any, delay: float = 0.0) -> None:
        self.outcomes = list(outcomes) or [SAMPLE_RESPONSE]
        self.delay = delay
        self.prompts: list[str] = []
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> Any:
        self.prompts.append(prompt)
        index = min(len(self.prompts), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def sample_response() -> dict:
    """A well-formed provider response."""
    return {"data": [dict(item) for item in SAMPLE_RESPONSE["data"]], "created": 1700000000}


@pytest.fixture
def fake_clock() -> FakeClock:
    """Create a fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    """Factory for :class:`FakeProvider` instances.

    Returns:
        Callable accepting outcomes and an optional ``delay`` keyword
    """
    return FakeProvider


@pytest.fixture
def test_config() -> PixelPromptConfig:
    """Create a test configuration with short timings.

    Returns:
        PixelPromptConfig instance for testing
    """
    return PixelPromptConfig(
        _env_file=None,
        openai_api_key="test-key",
        provider_timeout=0.5,
        status_retention=60,
        sweep_interval=30,
        poll_interval=0.0,
        max_poll_wait=2.0,
        max_retries=2,
        client_timeout=5.0,
        api_base_url="http://testserver",
    )


@pytest.fixture
def status_store(fake_clock: FakeClock) -> InMemoryStatusStore:
    """Create an empty status store driven by the fake clock."""
    return InMemoryStatusStore(retention=60, clock=fake_clock)


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Provider that always succeeds with :data:`SAMPLE_RESPONSE`."""
    return FakeProvider(SAMPLE_RESPONSE)


@pytest.fixture
def test_client(
    test_config: PixelPromptConfig,
    fake_provider: FakeProvider,
    status_store: InMemoryStatusStore,
) -> Generator[TestClient, None, None]:
    """TestClient for an app wired to the fake provider and store.

    The client is used as a context manager so the lifespan (sweeper start
    and provider shutdown) runs.
    """
    app = create_app(test_config, provider=fake_provider, store=status_store)
    with TestClient(app) as client:
        yield client
