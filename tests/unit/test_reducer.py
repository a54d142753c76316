"""Unit tests for the session reducer.

Tests every transition of the idle/streaming state machine on a bare
SessionState, without any controller or network.
"""

import pytest

from streamchat.errors import EmptySubmissionError, SessionBusyError
from streamchat.models.schemas import MessageRole
from streamchat.session import (
    AttachmentRef,
    AttachmentSelected,
    DraftCleared,
    DraftTextChanged,
    Fragment,
    PreviewReady,
    SessionReset,
    SessionState,
    SessionStatus,
    StreamCancelled,
    StreamCompleted,
    StreamFailed,
    Submit,
    reduce,
)


def make_attachment(name: str = "photo.png", mime_type: str = "image/png") -> AttachmentRef:
    return AttachmentRef(name=name, mime_type=mime_type, size_bytes=3, content_locator="blob:x")


def submitted(text: str = "hello") -> SessionState:
    """Return a state that has just submitted ``text``."""
    state = SessionState()
    reduce(state, DraftTextChanged(text=text))
    reduce(state, Submit())
    return state


class TestSubmit:
    """Tests for the idle -> streaming transition."""

    def test_submit_appends_user_message_and_placeholder(self) -> None:
        """Submit appends a final user message and a mutable assistant placeholder."""
        state = submitted("hello")

        assert state.status is SessionStatus.STREAMING
        assert [m.role for m in state.messages] == [MessageRole.USER, MessageRole.ASSISTANT]

        user, reply = state.messages
        assert user.content == "hello"
        assert user.final is True
        assert reply.content == ""
        assert reply.final is False
        assert state.active_stream_id == reply.id

    def test_submit_clears_draft(self) -> None:
        """Draft text and attachment are cleared on submit."""
        state = SessionState()
        attachment = make_attachment()
        reduce(state, DraftTextChanged(text="look"))
        reduce(state, AttachmentSelected(attachment=attachment))
        reduce(state, Submit())

        assert state.draft_text == ""
        assert state.draft_attachment is None
        assert state.messages[0].attachments == [attachment]
        assert state.messages[0].attachments[0] is attachment

    def test_attachment_only_submit(self) -> None:
        """An attachment without text is a valid submission with empty content."""
        state = SessionState()
        reduce(state, AttachmentSelected(attachment=make_attachment()))
        reduce(state, Submit())

        assert state.messages[0].content == ""
        assert len(state.messages[0].attachments) == 1

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_submit_is_rejected_without_state_change(self, text: str) -> None:
        """Empty or whitespace-only submit raises and leaves state untouched."""
        state = SessionState()
        reduce(state, DraftTextChanged(text=text))
        before = state.model_dump()

        with pytest.raises(EmptySubmissionError):
            reduce(state, Submit())

        assert state.model_dump() == before
        assert state.messages == []

    def test_submit_while_streaming_is_rejected(self) -> None:
        """A second submit while streaming appends nothing."""
        state = submitted("first")
        reduce(state, DraftTextChanged(text="second"))

        with pytest.raises(SessionBusyError):
            reduce(state, Submit())

        assert len(state.messages) == 2
        assert state.draft_text == "second"

    def test_submit_keeps_text_as_typed(self) -> None:
        """Whitespace only decides emptiness; the message keeps the exact draft."""
        state = submitted("  indented\ncode  ")

        assert state.messages[0].content == "  indented\ncode  "


class TestStreaming:
    """Tests for fragment, completion, failure and cancellation."""

    def test_fragments_concatenate_in_order(self) -> None:
        """Final content equals the in-order concatenation of fragments."""
        state = submitted()
        stream_id = state.active_stream_id
        for text in ["He", "llo", " there"]:
            reduce(state, Fragment(stream_id=stream_id, text=text))
        reduce(state, StreamCompleted(stream_id=stream_id))

        reply = state.messages[-1]
        assert reply.content == "Hello there"
        assert reply.final is True
        assert state.status is SessionStatus.IDLE
        assert state.active_stream_id is None

    def test_failure_keeps_partial_content(self) -> None:
        """A failed stream finalizes with what arrived and records the error."""
        state = submitted()
        stream_id = state.active_stream_id
        reduce(state, Fragment(stream_id=stream_id, text="partial"))
        reduce(state, StreamFailed(stream_id=stream_id, reason="boom"))

        assert state.messages[-1].content == "partial"
        assert state.messages[-1].final is True
        assert state.last_error == "boom"
        assert state.status is SessionStatus.IDLE

    def test_cancel_finalizes_once(self) -> None:
        """Only the first terminal event for a stream is applied."""
        state = submitted()
        stream_id = state.active_stream_id
        reduce(state, Fragment(stream_id=stream_id, text="part"))

        assert reduce(state, StreamCancelled(stream_id=stream_id)) is True
        assert reduce(state, StreamCompleted(stream_id=stream_id)) is False
        assert reduce(state, StreamCancelled(stream_id=stream_id)) is False

        replies = [m for m in state.messages if m.role is MessageRole.ASSISTANT]
        assert len(replies) == 1
        assert replies[0].content == "part"

    def test_late_fragment_after_finalize_is_ignored(self) -> None:
        """A fragment racing a cancellation does not change the final message."""
        state = submitted()
        stream_id = state.active_stream_id
        reduce(state, StreamCancelled(stream_id=stream_id))

        assert reduce(state, Fragment(stream_id=stream_id, text="late")) is False
        assert state.messages[-1].content == ""

    def test_stale_stream_cannot_write_into_new_reply(self) -> None:
        """Events of an earlier stream are dropped once a new one is active."""
        state = submitted("one")
        old_id = state.active_stream_id
        reduce(state, StreamCancelled(stream_id=old_id))
        reduce(state, DraftTextChanged(text="two"))
        reduce(state, Submit())

        assert reduce(state, Fragment(stream_id=old_id, text="stale")) is False
        assert state.messages[-1].content == ""
        assert state.is_streaming

    def test_new_submission_after_failure(self) -> None:
        """The session accepts a new submission after an error."""
        state = submitted()
        reduce(state, StreamFailed(stream_id=state.active_stream_id, reason="down"))
        reduce(state, DraftTextChanged(text="again"))
        reduce(state, Submit())

        assert len(state.messages) == 4
        assert state.last_error is None
        assert state.is_streaming


class TestDraftAttachment:
    """Tests for draft attachment events."""

    def test_new_selection_replaces_draft(self) -> None:
        state = SessionState()
        first, second = make_attachment("a.png"), make_attachment("b.png")
        reduce(state, AttachmentSelected(attachment=first))
        reduce(state, AttachmentSelected(attachment=second))

        assert state.draft_attachment is second

    def test_preview_applies_to_matching_draft(self) -> None:
        state = SessionState()
        attachment = make_attachment()
        reduce(state, AttachmentSelected(attachment=attachment))
        reduce(state, PreviewReady(attachment_id=attachment.id, preview="data:image/png;base64,AA=="))

        assert state.draft_attachment is not None
        assert state.draft_attachment.id == attachment.id
        assert state.draft_attachment.preview == "data:image/png;base64,AA=="

    def test_stale_preview_is_dropped(self) -> None:
        """A preview for a replaced selection never overwrites the newer one."""
        state = SessionState()
        first, second = make_attachment("a.png"), make_attachment("b.png")
        reduce(state, AttachmentSelected(attachment=first))
        reduce(state, AttachmentSelected(attachment=second))

        assert reduce(state, PreviewReady(attachment_id=first.id, preview="data:,a")) is False
        assert state.draft_attachment is second
        assert state.draft_attachment.preview is None

    def test_clear_is_idempotent(self) -> None:
        state = SessionState()
        reduce(state, AttachmentSelected(attachment=make_attachment()))

        assert reduce(state, DraftCleared()) is True
        assert reduce(state, DraftCleared()) is False
        assert state.draft_attachment is None


class TestReset:
    """Tests for starting a new chat."""

    def test_reset_clears_everything_when_idle(self) -> None:
        state = submitted()
        reduce(state, StreamCompleted(stream_id=state.active_stream_id))
        reduce(state, DraftTextChanged(text="draft"))
        reduce(state, SessionReset())

        assert state.messages == []
        assert state.draft_text == ""

    def test_reset_while_streaming_is_rejected(self) -> None:
        state = submitted()

        with pytest.raises(SessionBusyError):
            reduce(state, SessionReset())

        assert len(state.messages) == 2
