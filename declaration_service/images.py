"""
Image normalization for submitted base64 images.

Strips the data-URI prefix from signature and portrait payloads, decodes
them strictly and infers a file extension from the MIME type.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidImageEncoding, ValidationError

DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(?:;[\w.+-]+=[\w.+-]+)*);base64,(?P<payload>.*)$",
    re.DOTALL,
)

# Subtypes whose extension differs from the subtype itself
EXTENSION_OVERRIDES = {
    "jpeg": "jpg",
    "svg+xml": "svg",
    "x-icon": "ico",
    "vnd.microsoft.icon": "ico",
}

DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class DecodedImage:
    """Binary image payload with the MIME type it was submitted as."""

    data: bytes
    mime_type: str

    @property
    def extension(self) -> str:
        subtype = self.mime_type.split("/", 1)[1]
        return EXTENSION_OVERRIDES.get(subtype, subtype)

    @property
    def data_uri(self) -> str:
        """Canonical data URI rebuilt from the decoded bytes."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def __len__(self) -> int:
        return len(self.data)


def split_data_uri(value: str) -> tuple:
    """
    Split a data URI into (mime_type, base64 payload).

    A bare payload without the `data:` prefix is treated as PNG, which is
    what signature pads post to /save-signature.

    Raises:
        InvalidImageEncoding: prefix present but malformed, or not an image
    """
    if not value.startswith("data:"):
        return DEFAULT_MIME_TYPE, value

    match = DATA_URI_PATTERN.match(value)
    if not match:
        raise InvalidImageEncoding("Image must be a base64 data URI (data:image/<type>;base64,...)")

    mime_type = match.group("mime").lower()
    if not mime_type.startswith("image/"):
        raise InvalidImageEncoding(f"Unsupported image type: {mime_type}")
    return mime_type, match.group("payload")


def normalize_image(value: Optional[str], max_bytes: Optional[int] = None) -> Optional[DecodedImage]:
    """
    Decode a submitted image.

    Args:
        value: Empty string, data URI, or bare base64 payload
        max_bytes: Reject decoded images larger than this (maxImageBytes)

    Returns:
        None for empty input, otherwise the decoded image

    Raises:
        InvalidImageEncoding: payload missing or not valid base64
        ValidationError: decoded image exceeds max_bytes
    """
    if value is None or not value.strip():
        return None

    mime_type, payload = split_data_uri(value.strip())
    payload = "".join(payload.split())
    if not payload:
        raise InvalidImageEncoding("Image data URI has an empty payload")

    # Cheap pre-check before decoding: base64 expands by 4/3
    if max_bytes is not None and len(payload) * 3 // 4 > max_bytes + 2:
        raise ValidationError(f"Image exceeds the maximum size of {max_bytes} bytes")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageEncoding(f"Image payload is not valid base64: {e}")

    if not data:
        raise InvalidImageEncoding("Image payload decoded to zero bytes")
    if max_bytes is not None and len(data) > max_bytes:
        raise ValidationError(f"Image exceeds the maximum size of {max_bytes} bytes")

    return DecodedImage(data=data, mime_type=mime_type)
