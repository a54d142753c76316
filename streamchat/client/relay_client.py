"""HTTP client for the streaming relay's SSE endpoint."""

import logging
from collections.abc import AsyncGenerator, AsyncIterator, Sequence
from typing import Protocol

import httpx
from pydantic import ValidationError as SchemaValidationError

from streamchat.attachments.pipeline import to_descriptor
from streamchat.client.config import ClientConfig, get_client_config
from streamchat.errors import ProviderError, RelayTimeoutError, TransportError
from streamchat.models.schemas import (
    ConversationMessage,
    MessageRole,
    RelayRequest,
    StreamChunk,
    StreamErrorType,
)
from streamchat.session.state import Message

logger = logging.getLogger(__name__)


class FragmentSource(Protocol):
    """Anything that turns a conversation into a stream of reply fragments."""

    def stream(self, messages: Sequence[ConversationMessage]) -> AsyncIterator[str]: ...


async def to_conversation(messages: Sequence[Message]) -> list[ConversationMessage]:
    """Convert the session log into the relay's wire messages.

    Assistant replies that ended without any content are left out; they carry
    nothing the model could use.
    """
    conversation: list[ConversationMessage] = []
    for message in messages:
        if message.role is MessageRole.ASSISTANT and not message.content:
            continue
        conversation.append(
            ConversationMessage(
                role=message.role,
                content=message.content,
                attachments=[await to_descriptor(a) for a in message.attachments],
            )
        )
    return conversation


def _chunk_error(chunk: StreamChunk) -> Exception:
    if chunk.error_type is StreamErrorType.TIMEOUT:
        return RelayTimeoutError(chunk.error or "Relay execution limit exceeded")
    return ProviderError(chunk.error or "Model provider failed")


class HttpRelayClient:
    """Streams reply fragments from ``POST /chat/stream``.

    Failures reaching the relay become ``TransportError``; error markers in the
    stream become ``ProviderError`` or ``RelayTimeoutError``.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Optional client configuration.
                    Loads from environment if not provided.
            transport: Optional httpx transport (e.g. ASGITransport in tests).
        """
        self._config = config or get_client_config()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self._config.read_timeout, connect=self._config.connect_timeout)
        return httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=timeout,
            transport=self._transport,
        )

    async def stream(
        self,
        messages: Sequence[ConversationMessage],
    ) -> AsyncGenerator[str]:
        """Consume the SSE stream for a conversation.

        Args:
            messages: The whole conversation, ending with the user's turn.

        Yields:
            Reply fragments in arrival order.

        Raises:
            TransportError: Network or HTTP failure, or a truncated stream.
            ProviderError: The relay reported a model failure.
            RelayTimeoutError: The relay hit its execution ceiling.
        """
        payload = RelayRequest(messages=list(messages)).model_dump(mode="json", by_alias=True)

        try:
            async with (
                self._client() as client,
                client.stream(
                    "POST",
                    self._config.stream_path,
                    json=payload,
                    headers={"Accept": "text/event-stream"},
                ) as response,
            ):
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    chunk = StreamChunk.model_validate_json(line.removeprefix("data: "))
                    if chunk.error:
                        raise _chunk_error(chunk)
                    if chunk.done:
                        return
                    if chunk.content:
                        yield chunk.content
        except httpx.HTTPStatusError as e:
            raise TransportError(f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Connection failed: {e}") from e
        except SchemaValidationError as e:
            raise TransportError(f"Malformed stream chunk: {e}") from e

        raise TransportError("Stream ended before the end marker")
