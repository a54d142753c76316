"""In-memory chat session state.

Everything the chat surface shows lives in one ``SessionState`` object:
the message log, the draft (text and at most one attachment) and the
streaming status. It is only ever changed through ``reduce``.
"""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from streamchat.models.schemas import MessageRole


def new_id() -> str:
    """Return a fresh unique identifier."""
    return uuid.uuid4().hex


class SessionStatus(str, Enum):
    """Whether a reply is currently streaming."""

    IDLE = "idle"
    STREAMING = "streaming"


class AttachmentRef(BaseModel):
    """A file attached to the draft or to a sent message.

    Attributes:
        id: Unique attachment identifier.
        name: Original file name.
        mime_type: Media type of the file.
        size_bytes: File size in bytes.
        content_locator: Where the content lives (remote URL, ``file://`` URI,
            ``blob:`` reference to in-memory bytes, or a ``data:`` URL).
        preview: Inline ``data:`` URL for image previews, once derived.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    mime_type: str
    size_bytes: int = Field(ge=0)
    content_locator: str
    preview: str | None = None

    _payload: bytes | None = PrivateAttr(default=None)

    @property
    def is_previewable(self) -> bool:
        """Only image attachments are rendered as previews."""
        return self.mime_type.startswith("image/")

    @property
    def payload(self) -> bytes | None:
        """Raw bytes of a locally selected file, if held in memory."""
        return self._payload

    def with_payload(self, data: bytes) -> "AttachmentRef":
        """Attach the raw file bytes to this reference."""
        self._payload = data
        return self


class Message(BaseModel):
    """A message in the conversation log.

    Attributes:
        id: Unique message identifier.
        role: The speaker (user or assistant).
        content: Message text, extended while an assistant reply streams.
        attachments: Files sent with the message.
        created_at: When the message was created.
        final: False only for the assistant reply currently streaming.
    """

    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str = ""
    attachments: list[AttachmentRef] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    final: bool = True


class SessionState(BaseModel):
    """Complete state of one chat session.

    Attributes:
        messages: Conversation log, oldest first.
        draft_text: Text typed but not yet sent.
        draft_attachment: The single pending attachment, if any.
        status: Idle or streaming.
        active_stream_id: Id of the assistant message being streamed.
        last_error: Description of the last failed stream, if any.
    """

    messages: list[Message] = Field(default_factory=list)
    draft_text: str = ""
    draft_attachment: AttachmentRef | None = None
    status: SessionStatus = SessionStatus.IDLE
    active_stream_id: str | None = None
    last_error: str | None = None

    @property
    def is_streaming(self) -> bool:
        return self.status is SessionStatus.STREAMING

    @property
    def can_submit(self) -> bool:
        """Whether the draft may be sent right now."""
        has_draft = bool(self.draft_text.strip()) or self.draft_attachment is not None
        return has_draft and not self.is_streaming

    def find_message(self, message_id: str) -> Message | None:
        for message in reversed(self.messages):
            if message.id == message_id:
                return message
        return None
