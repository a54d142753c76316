"""Agno-backed streaming relay between a conversation and the model provider.

The relay is stateless: every call forwards the full conversation it is given
and passes the provider's token stream through. It keeps no session storage and
no history of its own, so any number of clients can share one instance.

Each stream is bounded by a wall-clock ceiling (``RelayConfig.max_duration``).
When it expires, the provider stream is closed and ``RelayTimeoutError`` is
raised instead of hanging on a slow or stuck generation.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Sequence

from agno.agent import Agent
from agno.media import File, Image
from agno.models.message import Message
from agno.models.openai import OpenAIChat
from agno.run.agent import RunEvent
from pydantic import ValidationError

from streamchat.agent.config import RelayConfig, get_relay_config
from streamchat.errors import ProviderError, RelayNotConfiguredError, RelayTimeoutError
from streamchat.models.encoding import decode_data_url
from streamchat.models.schemas import AttachmentDescriptor, ConversationMessage

logger = logging.getLogger(__name__)


def _attachment_text(attachment: AttachmentDescriptor) -> str | None:
    """Return the inline text of a ``text/*`` data URL attachment, if any."""
    if not attachment.mime_type.startswith("text/"):
        return None
    if not attachment.url.startswith("data:"):
        return None
    _, payload = decode_data_url(attachment.url)
    return f"[{attachment.name}]\n{payload.decode('utf-8', errors='replace')}"


def _to_image(attachment: AttachmentDescriptor) -> Image:
    if attachment.url.startswith("data:"):
        _, payload = decode_data_url(attachment.url)
        return Image(content=payload, mime_type=attachment.mime_type)
    return Image(url=attachment.url)


def _to_file(attachment: AttachmentDescriptor) -> File:
    if attachment.url.startswith("data:"):
        _, payload = decode_data_url(attachment.url)
        return File(content=payload, mime_type=attachment.mime_type, filename=attachment.name)
    return File(url=attachment.url, mime_type=attachment.mime_type)


def to_agno_message(message: ConversationMessage) -> Message:
    """Convert a wire message into an agno Message the model can consume.

    Images become ``agno.media.Image``, inline text files are appended to the
    message text, and every other attachment is passed as ``agno.media.File``.

    Raises:
        ValueError: If an inline attachment is not a valid data URL.
    """
    text_parts = [message.content] if message.content else []
    images: list[Image] = []
    files: list[File] = []

    for attachment in message.attachments:
        inline_text = _attachment_text(attachment)
        if inline_text is not None:
            text_parts.append(inline_text)
            continue

        if attachment.mime_type.startswith("image/"):
            images.append(_to_image(attachment))
            continue

        try:
            files.append(_to_file(attachment))
        except ValueError:
            # agno only accepts a fixed set of document types
            logger.warning(f"Unsupported attachment type {attachment.mime_type}, sending name only")
            text_parts.append(f"[Attachment: {attachment.name} ({attachment.mime_type})]")

    return Message(
        role=message.role.value,
        content="\n\n".join(text_parts),
        images=images or None,
        files=files or None,
    )


class StreamingRelay:
    """Forwards conversations to the model and streams text fragments back.

    Wraps Agno's Agent with:
    - No storage and no history (each call is a pure forward)
    - Conversion of wire attachments into agno media
    - A hard execution ceiling per stream
    - Provider failures mapped onto ProviderError
    """

    def __init__(self, config: RelayConfig | None = None) -> None:
        """Initialize the relay.

        Args:
            config: Optional relay configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_relay_config()
        self._agent = self._create_agent()

    @property
    def max_duration(self) -> float:
        """Execution ceiling for one stream, in seconds."""
        return self._config.max_duration

    def _create_agent(self) -> Agent:
        """Create the Agno agent instance.

        Returns:
            Configured stateless Agent with an OpenAI-compatible model.
        """
        model = OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

        return Agent(
            model=model,
            description=self._config.system_prompt,
            instructions=[
                "Provide helpful and accurate responses.",
                "When the user sends images, describe or analyse them as asked.",
                "Be concise yet thorough.",
            ],
            # The client sends the whole conversation on every request
            add_history_to_context=False,
            markdown=True,
        )

    def _provider_stream(self, messages: Sequence[ConversationMessage]) -> AsyncIterator:
        """Open the agno event stream for a conversation."""
        agno_messages = [to_agno_message(m) for m in messages]
        return self._agent.arun(input=agno_messages, stream=True)

    async def stream(
        self,
        messages: Sequence[ConversationMessage],
    ) -> AsyncGenerator[str]:
        """Stream response fragments for a conversation.

        Args:
            messages: The whole conversation, ending with the user's turn.

        Yields:
            Response text fragments in the order the provider emits them.

        Raises:
            RelayTimeoutError: If the stream outlives ``max_duration``.
            ProviderError: If the model backend fails.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.max_duration
        logger.info(f"Relaying conversation with {len(messages)} messages")

        events = None
        try:
            events = self._provider_stream(messages)
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise TimeoutError
                try:
                    event = await asyncio.wait_for(anext(events), timeout=remaining)
                except StopAsyncIteration:
                    break

                event_type = getattr(event, "event", None)
                if event_type == RunEvent.run_error:
                    raise ProviderError(str(getattr(event, "content", None) or "Model run failed"))
                if event_type != RunEvent.run_content:
                    continue
                if getattr(event, "content", None):
                    yield event.content

        except TimeoutError as e:
            logger.warning(f"Stream exceeded {self._config.max_duration}s ceiling")
            raise RelayTimeoutError(
                f"Response exceeded the {self._config.max_duration:g}s execution limit"
            ) from e
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"Model provider failed: {e}")
            raise ProviderError(str(e)) from e
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()


# Module-level singleton instance
_relay: StreamingRelay | None = None


def get_relay() -> StreamingRelay:
    """Get or create the global streaming relay.

    Uses singleton pattern for resource efficiency.

    Returns:
        The StreamingRelay instance.

    Raises:
        RelayNotConfiguredError: If the configuration is invalid (e.g. no API key).
    """
    global _relay
    if _relay is None:
        try:
            _relay = StreamingRelay()
        except ValidationError as e:
            raise RelayNotConfiguredError(f"Relay is not configured: {e}") from e
    return _relay
