"""Attachment pipeline turning selected files into draft attachments.

Any file is accepted. Image files additionally get an inline preview, derived
in the background so selection never blocks the event loop. The attachment is
submittable right away; the preview only improves how it is rendered.

At most one draft attachment exists. Selecting a new file cancels the preview
still being derived for the previous one, and the reducer drops any preview
whose attachment id is no longer the draft's, so a late result cannot
overwrite a newer selection.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from pydantic import BaseModel, Field

from streamchat.errors import AttachmentTooLargeError
from streamchat.models.encoding import encode_data_url, guess_mime_type
from streamchat.models.schemas import AttachmentDescriptor
from streamchat.session.events import AttachmentSelected, DraftCleared, PreviewReady, SessionEvent
from streamchat.session.state import AttachmentRef, new_id

logger = logging.getLogger(__name__)

# Constants
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024  # 10MB
REMOTE_PREFIXES = ("http://", "https://", "data:")


class SelectedFile(BaseModel):
    """A file picked by the user.

    Attributes:
        name: File name as shown to the user.
        data: Raw file content.
        mime_type: Media type; guessed from the name when missing.
        path: Local path, when the file came from disk.
    """

    name: str = Field(..., min_length=1)
    data: bytes
    mime_type: str | None = None
    path: Path | None = None

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "SelectedFile":
        """Read a file from disk."""
        path = Path(path)
        return cls(name=path.name, data=path.read_bytes(), mime_type=mime_type, path=path)


class AttachmentPipeline:
    """Builds draft attachments and derives their previews.

    The pipeline only talks to the session through ``dispatch``; it never
    touches the message log.
    """

    def __init__(
        self,
        dispatch: Callable[[SessionEvent], bool],
        *,
        max_bytes: int = MAX_ATTACHMENT_BYTES,
    ) -> None:
        """Initialize the pipeline.

        Args:
            dispatch: Session event sink (usually ``ChatSession.dispatch``).
            max_bytes: Largest accepted file size.
        """
        self._dispatch = dispatch
        self._max_bytes = max_bytes
        self._preview_task: asyncio.Task[None] | None = None

    @property
    def pending_preview(self) -> asyncio.Task[None] | None:
        """The preview derivation still running, if any."""
        if self._preview_task is None or self._preview_task.done():
            return None
        return self._preview_task

    def select_file(self, file: SelectedFile) -> AttachmentRef:
        """Make ``file`` the draft attachment.

        Must be called from a running event loop when the file is an image,
        since the preview is derived in a background task.

        Args:
            file: The selected file.

        Returns:
            The new draft attachment reference.

        Raises:
            AttachmentTooLargeError: If the file exceeds the size limit.
        """
        size = len(file.data)
        if size > self._max_bytes:
            size_mb = size / (1024 * 1024)
            limit_mb = self._max_bytes / (1024 * 1024)
            raise AttachmentTooLargeError(
                f"File size ({size_mb:.1f}MB) exceeds maximum allowed ({limit_mb:.0f}MB)"
            )

        attachment_id = new_id()
        ref = AttachmentRef(
            id=attachment_id,
            name=file.name,
            mime_type=file.mime_type or guess_mime_type(file.name),
            size_bytes=size,
            content_locator=(
                file.path.resolve().as_uri() if file.path else f"blob:{attachment_id}"
            ),
        ).with_payload(file.data)

        loop = asyncio.get_running_loop() if ref.is_previewable else None

        self.cancel_preview()
        self._dispatch(AttachmentSelected(attachment=ref))
        logger.info(f"Selected attachment {ref.name} ({ref.mime_type}, {size} bytes)")

        if loop is not None:
            self._preview_task = loop.create_task(self._derive_preview(ref, file.data))
        return ref

    def clear_draft(self) -> None:
        """Remove the draft attachment and any pending preview. Idempotent."""
        self.cancel_preview()
        self._dispatch(DraftCleared())

    def cancel_preview(self) -> None:
        """Stop deriving the preview of the current draft, if still running."""
        if self._preview_task is not None and not self._preview_task.done():
            self._preview_task.cancel()
        self._preview_task = None

    async def _derive_preview(self, ref: AttachmentRef, data: bytes) -> None:
        preview = await asyncio.to_thread(encode_data_url, data, ref.mime_type)
        self._dispatch(PreviewReady(attachment_id=ref.id, preview=preview))


async def to_descriptor(ref: AttachmentRef) -> AttachmentDescriptor:
    """Build the wire descriptor for an attachment.

    Uses the derived preview when available, passes remote and inline URLs
    through, and otherwise inlines the held file bytes, reading them from a
    ``file://`` locator when the reference carries none.

    Raises:
        ValueError: If the attachment has no transmittable content.
    """
    if ref.preview:
        url = ref.preview
    elif ref.content_locator.startswith(REMOTE_PREFIXES):
        url = ref.content_locator
    elif ref.payload is not None:
        url = await asyncio.to_thread(encode_data_url, ref.payload, ref.mime_type)
    elif ref.content_locator.startswith("file://"):
        path = Path(url2pathname(urlparse(ref.content_locator).path))
        data = await asyncio.to_thread(path.read_bytes)
        url = await asyncio.to_thread(encode_data_url, data, ref.mime_type)
    else:
        raise ValueError(f"Attachment {ref.name} has no transmittable content")

    return AttachmentDescriptor(name=ref.name, mime_type=ref.mime_type, url=url)
