"""Magic bytes detection for uploaded images.

Used (when enabled) to make sure an upload named ``*.png`` really is one of
the accepted image formats and not some other file with a renamed extension.
"""

from typing import NamedTuple


# Minimum bytes needed for detection
MIN_BYTES_FOR_DETECTION = 4
WEBP_HEADER_LENGTH = 12


class MagicSignature(NamedTuple):
    """Magic bytes signature for a file type."""

    bytes_pattern: bytes
    mime_type: str


# Reference: https://en.wikipedia.org/wiki/List_of_file_signatures
MAGIC_SIGNATURES: list[MagicSignature] = [
    MagicSignature(b"\xff\xd8\xff", "image/jpeg"),
    MagicSignature(b"\x89PNG\r\n\x1a\n", "image/png"),
    MagicSignature(b"GIF87a", "image/gif"),
    MagicSignature(b"GIF89a", "image/gif"),
    MagicSignature(b"BM", "image/bmp"),
]

EXTENSION_MIME_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".webp": "image/webp",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def detect_content_type(data: bytes) -> str | None:
    """Detect content type from file magic bytes.

    Args:
        data: First 16+ bytes of file content.

    Returns:
        Detected MIME type or None if unknown.
    """
    if len(data) < MIN_BYTES_FOR_DETECTION:
        return None

    # WebP: RIFF....WEBP
    if (
        data[:4] == b"RIFF"
        and len(data) >= WEBP_HEADER_LENGTH
        and data[8:12] == b"WEBP"
    ):
        return "image/webp"

    for sig in MAGIC_SIGNATURES:
        if data.startswith(sig.bytes_pattern):
            return sig.mime_type

    return None


def matches_extension(data: bytes, extension: str) -> bool:
    """Whether the content is an image of a format allowed for uploads.

    The check is per media family: a ``.jpg`` that is really a PNG passes,
    a ``.png`` that is really a GIF (or not an image at all) does not.
    """
    expected = EXTENSION_MIME_TYPES.get(extension.lower())
    if expected is None:
        return False
    detected = detect_content_type(data)
    return detected in EXTENSION_MIME_TYPES.values()
