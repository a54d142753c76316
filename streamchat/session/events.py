"""Events accepted by the session reducer."""

from pydantic import BaseModel, ConfigDict

from streamchat.session.state import AttachmentRef


class SessionEvent(BaseModel):
    """Base class for all session events."""

    model_config = ConfigDict(frozen=True)


class DraftTextChanged(SessionEvent):
    text: str


class AttachmentSelected(SessionEvent):
    attachment: AttachmentRef


class PreviewReady(SessionEvent):
    attachment_id: str
    preview: str


class DraftCleared(SessionEvent):
    pass


class Submit(SessionEvent):
    pass


class Fragment(SessionEvent):
    stream_id: str
    text: str


class StreamCompleted(SessionEvent):
    stream_id: str


class StreamFailed(SessionEvent):
    stream_id: str
    reason: str


class StreamCancelled(SessionEvent):
    stream_id: str


class SessionReset(SessionEvent):
    pass

