"""Inline ``data:`` URL encoding for attachment payloads on the wire."""

import base64
import binascii
import mimetypes
from urllib.parse import unquote_to_bytes

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(name: str) -> str:
    """Guess a media type from a file name, falling back to octet-stream."""
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or DEFAULT_MIME_TYPE


def encode_data_url(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 ``data:`` URL."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def decode_data_url(url: str) -> tuple[str, bytes]:
    """Split a ``data:`` URL into its media type and decoded bytes.

    Args:
        url: A ``data:[<mime>][;base64],<payload>`` URL.

    Returns:
        Tuple of (mime type, payload bytes).

    Raises:
        ValueError: If the URL is not a well-formed data URL.
    """
    if not url.startswith("data:") or "," not in url:
        raise ValueError("Not a data URL")

    header, payload = url[len("data:"):].split(",", 1)
    params = header.split(";")
    mime_type = params[0] or "text/plain"

    if "base64" in params[1:]:
        try:
            return mime_type, base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e

    return mime_type, unquote_to_bytes(payload)
