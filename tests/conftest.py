"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - scripted_source: Factory for fake fragment sources / relays
    - async_client: HTTPX client for API testing with a fake relay
    - png_file / text_file: Selected files for attachment tests
"""

import asyncio
import base64
from collections.abc import AsyncGenerator, Callable, Sequence

import pytest
from httpx import ASGITransport, AsyncClient

from streamchat.agent.relay import get_relay
from streamchat.api import app
from streamchat.attachments.pipeline import SelectedFile
from streamchat.models.schemas import ConversationMessage

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class ScriptedSource:
    """Fake relay yielding scripted fragments, then optionally failing or hanging.

    Usable both as a client-side fragment source and as the server relay.
    """

    def __init__(
        self,
        fragments: Sequence[str] = (),
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        hang: bool = False,
    ) -> None:
        self.fragments = list(fragments)
        self.error = error
        self.delay = delay
        self.hang = hang
        self.calls: list[list[ConversationMessage]] = []
        self.yielded = 0
        self.closed = False

    async def stream(self, messages: Sequence[ConversationMessage]) -> AsyncGenerator[str]:
        self.calls.append(list(messages))
        try:
            for fragment in self.fragments:
                if self.delay:
                    await asyncio.sleep(self.delay)
                self.yielded += 1
                yield fragment
            if self.hang:
                await asyncio.Event().wait()
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


@pytest.fixture
def scripted_source() -> Callable[..., ScriptedSource]:
    """Return the ScriptedSource factory."""
    return ScriptedSource


@pytest.fixture
def fake_relay() -> ScriptedSource:
    """Default relay used by the API tests."""
    return ScriptedSource(["He", "llo", " there"])


@pytest.fixture
async def async_client(fake_relay: ScriptedSource) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient talking to the app with ``fake_relay`` injected.
    """
    app.dependency_overrides[get_relay] = lambda: fake_relay
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def png_file() -> SelectedFile:
    """A small PNG image as selected by the user."""
    return SelectedFile(name="photo.png", data=PNG_BYTES)


@pytest.fixture
def text_file() -> SelectedFile:
    """A plain text file as selected by the user."""
    return SelectedFile(name="notes.txt", data=b"remember the milk")
