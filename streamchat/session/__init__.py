"""Chat session state machine.

Holds the whole in-memory chat state in one object and changes it only through
a single reducer, which makes every transition testable without a UI.

Responsibilities:
    - Ordered message log with one streaming assistant reply at a time
    - Draft text and the single draft attachment
    - Idle/streaming gate rejecting overlapping submissions
    - Exactly-once finalization of streamed replies
"""

from streamchat.session.events import (
    AttachmentSelected,
    DraftCleared,
    DraftTextChanged,
    Fragment,
    PreviewReady,
    SessionEvent,
    SessionReset,
    StreamCancelled,
    StreamCompleted,
    StreamFailed,
    Submit,
)
from streamchat.session.reducer import reduce
from streamchat.session.state import AttachmentRef, Message, SessionState, SessionStatus

__all__ = [
    "AttachmentRef",
    "AttachmentSelected",
    "DraftCleared",
    "DraftTextChanged",
    "Fragment",
    "Message",
    "PreviewReady",
    "SessionEvent",
    "SessionReset",
    "SessionState",
    "SessionStatus",
    "StreamCancelled",
    "StreamCompleted",
    "StreamFailed",
    "Submit",
    "reduce",
]
