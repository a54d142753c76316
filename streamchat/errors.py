"""Error taxonomy shared by the chat session and the streaming relay.

Validation errors are raised before any session state changes. Transport,
provider and timeout errors end an active stream and are resolved by the
session into a failed (but recoverable) stream.
"""


class ChatError(Exception):
    """Base class for all chat errors."""

    pass


class ValidationError(ChatError):
    """Raised when a request is rejected before any state change."""

    pass


class EmptySubmissionError(ValidationError):
    """Raised when submitting with no text and no attachment."""

    pass


class SessionBusyError(ValidationError):
    """Raised when submitting while a reply is still streaming."""

    pass


class AttachmentTooLargeError(ValidationError):
    """Raised when a selected file exceeds the attachment size limit."""

    pass


class TransportError(ChatError):
    """Raised when the relay cannot be reached or answers with an HTTP error."""

    pass


class ProviderError(ChatError):
    """Raised when the model backend fails mid-stream."""

    pass


class RelayTimeoutError(ChatError, TimeoutError):
    """Raised when a stream exceeds the relay's execution ceiling."""

    pass


class RelayNotConfiguredError(ChatError):
    """Raised when the relay cannot be built from its configuration."""

    pass
