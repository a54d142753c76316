"""Chat session controller driving the state machine from user actions.

``ChatSession`` owns the session state, the attachment pipeline and the one
stream task that may be active at a time. Every change goes through
``dispatch``, which applies the event with the reducer and notifies the UI.

Stream failures of any kind are resolved here: the reply keeps whatever
content arrived, the session goes back to idle, and the error is reported
through ``last_exception``, ``state.last_error`` and the ``on_error`` callback.
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from streamchat.attachments.pipeline import MAX_ATTACHMENT_BYTES, AttachmentPipeline, SelectedFile
from streamchat.client.relay_client import FragmentSource, HttpRelayClient, to_conversation
from streamchat.errors import ChatError, ProviderError, ValidationError
from streamchat.session.events import (
    DraftTextChanged,
    Fragment,
    SessionEvent,
    SessionReset,
    StreamCancelled,
    StreamCompleted,
    StreamFailed,
    Submit,
)
from streamchat.session.reducer import reduce
from streamchat.session.state import AttachmentRef, Message, SessionState

logger = logging.getLogger(__name__)


class StreamOutcome(str, Enum):
    """How a stream ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ChatSession:
    """Manages chat state for a user session."""

    def __init__(
        self,
        source: FragmentSource | None = None,
        *,
        on_change: Callable[[SessionState], None] | None = None,
        on_error: Callable[[ChatError], None] | None = None,
        max_attachment_bytes: int = MAX_ATTACHMENT_BYTES,
    ) -> None:
        """Initialize the session.

        Args:
            source: Where reply fragments come from. Defaults to the HTTP relay.
            on_change: Called with the state after every applied event.
            on_error: Called with the error that ended a stream.
            max_attachment_bytes: Largest file accepted as an attachment.
        """
        self.state = SessionState()
        self.last_exception: ChatError | None = None
        self._source = source or HttpRelayClient()
        self._on_change = on_change
        self._on_error = on_error
        self._pipeline = AttachmentPipeline(self.dispatch, max_bytes=max_attachment_bytes)
        self._stream_task: asyncio.Task[StreamOutcome] | None = None
        self._stream_id: str | None = None

    @property
    def attachments(self) -> AttachmentPipeline:
        return self._pipeline

    def dispatch(self, event: SessionEvent) -> bool:
        """Apply an event and notify the listener if anything changed."""
        changed = reduce(self.state, event)
        if changed and self._on_change is not None:
            self._on_change(self.state)
        return changed

    def set_draft_text(self, text: str) -> None:
        self.dispatch(DraftTextChanged(text=text))

    def select_file(self, file: SelectedFile) -> AttachmentRef:
        """Replace the draft attachment with ``file``."""
        return self._pipeline.select_file(file)

    def clear_draft(self) -> None:
        """Remove the draft attachment."""
        self._pipeline.clear_draft()

    def submit(self) -> bool:
        """Send the draft and start streaming the reply.

        Returns:
            True if a stream was opened, False if the submission was rejected
            (empty draft, or a reply is still streaming).

        Raises:
            RuntimeError: If called outside a running event loop. The session
                state is left unchanged.
        """
        # Raises RuntimeError outside a running loop, before any state change
        loop = asyncio.get_running_loop()
        try:
            self.dispatch(Submit())
        except ValidationError as e:
            logger.warning(f"Submission rejected: {e}")
            return False

        self._pipeline.cancel_preview()
        stream_id = self.state.active_stream_id
        # Everything up to and including the new user message
        history = list(self.state.messages[:-1])

        self._stream_id = stream_id
        self._stream_task = loop.create_task(
            self._run_stream(stream_id, history)
        )
        return True

    async def _run_stream(self, stream_id: str, history: list[Message]) -> StreamOutcome:
        logger.info(f"Opening stream {stream_id} with {len(history)} messages")
        try:
            conversation = await to_conversation(history)
            async for fragment in self._source.stream(conversation):
                self.dispatch(Fragment(stream_id=stream_id, text=fragment))
        except asyncio.CancelledError:
            self.dispatch(StreamCancelled(stream_id=stream_id))
            logger.info(f"Stream {stream_id} cancelled")
            raise
        except ChatError as e:
            self._fail(stream_id, e)
            return StreamOutcome.FAILED
        except Exception as e:
            logger.exception(f"Unexpected failure in stream {stream_id}")
            self._fail(stream_id, ProviderError(str(e)))
            return StreamOutcome.FAILED

        self.dispatch(StreamCompleted(stream_id=stream_id))
        logger.info(f"Stream {stream_id} completed")
        return StreamOutcome.COMPLETED

    def _fail(self, stream_id: str, error: ChatError) -> None:
        logger.warning(f"Stream {stream_id} failed: {type(error).__name__}: {error}")
        self.last_exception = error
        self.dispatch(StreamFailed(stream_id=stream_id, reason=str(error)))
        if self._on_error is not None:
            self._on_error(error)

    async def wait(self) -> StreamOutcome | None:
        """Wait for the current (or last) stream to end.

        Returns:
            The stream outcome, or None if nothing was ever submitted.
        """
        task = self._stream_task
        if task is None:
            return None
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            self._finalize_cancelled()
            return StreamOutcome.CANCELLED

    async def cancel(self) -> bool:
        """Stop the active stream, keeping the partial reply.

        Returns:
            True if a stream was cancelled, False if none was active.
        """
        task = self._stream_task
        if task is None or task.done():
            return False

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # The task may have been cancelled before it ever ran
        self._finalize_cancelled()
        return True

    def _finalize_cancelled(self) -> None:
        if self._stream_id is not None:
            self.dispatch(StreamCancelled(stream_id=self._stream_id))

    async def reset(self) -> None:
        """Start a new chat: stop streaming and drop messages and draft."""
        await self.cancel()
        self._pipeline.cancel_preview()
        self.dispatch(SessionReset())
