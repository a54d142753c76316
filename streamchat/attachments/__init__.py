"""Attachment handling for the chat draft.

Turns user-selected files into attachment references the session can send.

Responsibilities:
    - Accepting any file type, with a size ceiling
    - Background base64 preview derivation for images
    - Guarding against stale previews from replaced selections
    - Building wire descriptors with inline or remote URLs
"""

from streamchat.attachments.pipeline import (
    MAX_ATTACHMENT_BYTES,
    AttachmentPipeline,
    SelectedFile,
    to_descriptor,
)

__all__ = ["MAX_ATTACHMENT_BYTES", "AttachmentPipeline", "SelectedFile", "to_descriptor"]
