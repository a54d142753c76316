from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from streamchat.models.encoding import decode_data_url

ALLOWED_URL_PREFIXES = ("data:", "http://", "https://")


class StreamStatus(str, Enum):
    """Status values for streaming updates."""

    RECEIVED = "received"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class StreamErrorType(str, Enum):
    """Kind of failure carried by an error marker chunk."""

    PROVIDER = "provider"
    TIMEOUT = "timeout"


class MessageRole(str, Enum):
    """Conversation roles accepted by the relay."""

    USER = "user"
    ASSISTANT = "assistant"


class AttachmentDescriptor(BaseModel):
    """Attachment as it travels to the relay.

    Attributes:
        name: Original file name.
        mime_type: Media type, serialized as ``mimeType``.
        url: Remote URL or self-contained ``data:`` URL with the file content.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    mime_type: str = Field(..., alias="mimeType", min_length=1)
    url: str = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def validate_url_scheme(cls, v: str) -> str:
        """Only inline payloads and remote HTTP(S) references can be forwarded."""
        if not v.startswith(ALLOWED_URL_PREFIXES):
            raise ValueError("Attachment url must be a data: or http(s) URL")
        if v.startswith("data:"):
            decode_data_url(v)
        return v


class ConversationMessage(BaseModel):
    """A single message of the conversation sent to the relay.

    Attributes:
        role: The speaker (user or assistant).
        content: The message text, possibly empty for attachment-only messages.
        attachments: Files sent along with the message.
    """

    role: MessageRole
    content: str = ""
    attachments: list[AttachmentDescriptor] = Field(default_factory=list)


class RelayRequest(BaseModel):
    """Request payload for the streaming relay endpoint.

    Attributes:
        messages: The entire conversation so far, oldest first.
    """

    messages: list[ConversationMessage] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_last_message(self) -> "RelayRequest":
        """The conversation must end with a non-empty user turn."""
        last = self.messages[-1]
        if last.role is not MessageRole.USER:
            raise ValueError("Conversation must end with a user message")
        if not last.content.strip() and not last.attachments:
            raise ValueError("Last user message needs text or an attachment")
        return self


class StreamChunk(BaseModel):
    """A chunk of streamed response data.

    Attributes:
        content: The text content of this chunk.
        done: Whether this is the final chunk.
        status: Current processing status (received, generating, complete, error).
        error: Error message if something went wrong.
        error_type: Which kind of failure ended the stream (provider or timeout).
    """

    content: str
    done: bool
    status: StreamStatus | None = None
    error: str | None = None
    error_type: StreamErrorType | None = None
