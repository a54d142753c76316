"""Single reducer applying session events to a ``SessionState`` in place.

Transitions:
    idle      --Submit-->           streaming
    streaming --Fragment-->         streaming
    streaming --StreamCompleted-->  idle
    streaming --StreamFailed-->     idle
    streaming --StreamCancelled-->  idle

Stream events carry the id of the assistant message they belong to. Events for
any other id, or arriving while idle, are dropped, so a reply is finalized
exactly once and a stale stream can never write into a newer one.
"""

import logging

from streamchat.errors import EmptySubmissionError, SessionBusyError
from streamchat.models.schemas import MessageRole
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
from streamchat.session.state import Message, SessionState, SessionStatus

logger = logging.getLogger(__name__)


def _submit(state: SessionState) -> None:
    if state.is_streaming:
        raise SessionBusyError("A reply is still streaming")

    attachment = state.draft_attachment
    if not state.draft_text.strip() and attachment is None:
        raise EmptySubmissionError("Nothing to send: type a message or attach a file")

    state.messages.append(
        Message(
            role=MessageRole.USER,
            content=state.draft_text,
            attachments=[attachment] if attachment is not None else [],
        )
    )
    state.draft_text = ""
    state.draft_attachment = None

    placeholder = Message(role=MessageRole.ASSISTANT, final=False)
    state.messages.append(placeholder)
    state.active_stream_id = placeholder.id
    state.status = SessionStatus.STREAMING
    state.last_error = None


def _active_reply(state: SessionState, stream_id: str) -> Message | None:
    """Return the streaming assistant message if ``stream_id`` is current."""
    if not state.is_streaming or stream_id != state.active_stream_id:
        return None
    return state.find_message(stream_id)


def _finalize(state: SessionState, reply: Message) -> None:
    reply.final = True
    state.status = SessionStatus.IDLE
    state.active_stream_id = None


def reduce(state: SessionState, event: SessionEvent) -> bool:
    """Apply ``event`` to ``state``.

    Args:
        state: The session state, mutated in place.
        event: The event to apply.

    Returns:
        True if the state changed, False if the event was ignored.

    Raises:
        EmptySubmissionError: Submit with no text and no attachment.
        SessionBusyError: Submit while a reply is streaming.
    """
    if isinstance(event, DraftTextChanged):
        state.draft_text = event.text
        return True

    if isinstance(event, AttachmentSelected):
        state.draft_attachment = event.attachment
        return True

    if isinstance(event, PreviewReady):
        current = state.draft_attachment
        if current is None or current.id != event.attachment_id:
            logger.debug(f"Dropping stale preview for attachment {event.attachment_id}")
            return False
        state.draft_attachment = current.model_copy(update={"preview": event.preview})
        return True

    if isinstance(event, DraftCleared):
        if state.draft_attachment is None:
            return False
        state.draft_attachment = None
        return True

    if isinstance(event, Submit):
        _submit(state)
        return True

    if isinstance(event, SessionReset):
        if state.is_streaming:
            raise SessionBusyError("Cannot reset while a reply is streaming")
        state.messages.clear()
        state.draft_text = ""
        state.draft_attachment = None
        state.last_error = None
        return True

    if not isinstance(event, (Fragment, StreamCompleted, StreamFailed, StreamCancelled)):
        raise TypeError(f"Unknown session event: {type(event).__name__}")

    reply = _active_reply(state, event.stream_id)
    if reply is None:
        return False

    if isinstance(event, Fragment):
        reply.content += event.text
        return True

    if isinstance(event, StreamFailed):
        state.last_error = event.reason
    _finalize(state, reply)
    return True
