"""Pydantic models for the relay wire format.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - AttachmentDescriptor: File reference sent with a message
    - ConversationMessage: Individual message in the conversation
    - RelayRequest: Incoming streaming request payload
    - StreamChunk: One server-sent event of a streamed reply
"""

from streamchat.models.schemas import (
    AttachmentDescriptor,
    ConversationMessage,
    MessageRole,
    RelayRequest,
    StreamChunk,
    StreamErrorType,
    StreamStatus,
)

__all__ = [
    "AttachmentDescriptor",
    "ConversationMessage",
    "MessageRole",
    "RelayRequest",
    "StreamChunk",
    "StreamErrorType",
    "StreamStatus",
]
