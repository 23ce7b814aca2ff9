"""Image type detection from file signatures (magic numbers).

The client-declared MIME type and filename are never trusted: the stored
object's extension is derived from its leading bytes only.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Signature prefix -> extension used for the stored key
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", ".jpg"),
    (b"\x89PNG\r\n\x1a\n", ".png"),
    (b"GIF87a", ".gif"),
    (b"GIF89a", ".gif"),
)


def detect_image_extension(data: bytes) -> str | None:
    """Return the extension matching the image signature, or None.

    Supports JPEG, PNG, GIF and WebP.
    """
    for signature, extension in _SIGNATURES:
        if data.startswith(signature):
            return extension

    # WebP: "RIFF" <4-byte size> "WEBP"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ".webp"

    logger.warning(
        "file_signature.unsupported",
        extra={"actual_prefix": data[:12].hex() if data else "EMPTY"},
    )
    return None
