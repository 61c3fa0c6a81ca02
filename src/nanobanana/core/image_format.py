"""Magic-byte image format detection.

This is a deliberately shallow check: it answers "does this buffer start
like a PNG/JPEG/GIF/WebP/BMP container?", not "is this a well-formed image?".
Full decoding happens later, when :func:`nanobanana.core.validation.validate_image`
or Pillow re-opens a written file.

Signature Table
---------------
=======  ======  ==========================  ==========
Format   Offset  Bytes                       Min length
=======  ======  ==========================  ==========
PNG      0       ``89 50 4E 47``             33
JPEG     0       ``FF D8 FF``                3
GIF      0       ``GIF8``                    4
WebP     0, 8    ``RIFF`` ... ``WEBP``       12
BMP      0       ``BM``                      2
=======  ======  ==========================  ==========

The PNG minimum covers the 8-byte signature plus the 25-byte IHDR chunk, so a
file cut off before its header is complete is not mistaken for a PNG.
"""

from __future__ import annotations

from enum import Enum

# Shortest buffer considered at all.
MIN_SIGNATURE_LENGTH = 4


class ImageFormat(str, Enum):
    """Image container formats recognised by magic bytes."""

    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"
    WEBP = "webp"
    BMP = "bmp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"


# (format, min_length, ((offset, signature), ...)); every signature must match.
_SIGNATURES: tuple[tuple[ImageFormat, int, tuple[tuple[int, bytes], ...]], ...] = (
    (ImageFormat.PNG, 33, ((0, b"\x89PNG"),)),
    (ImageFormat.JPEG, 3, ((0, b"\xff\xd8\xff"),)),
    (ImageFormat.GIF, 4, ((0, b"GIF8"),)),
    (ImageFormat.WEBP, 12, ((0, b"RIFF"), (8, b"WEBP"))),
    (ImageFormat.BMP, 2, ((0, b"BM"),)),
)


def classify_image_bytes(data: bytes) -> ImageFormat | None:
    """Identify the image container format of *data* from its leading bytes.

    Args:
        data: Raw file or decoded payload bytes.

    Returns:
        The matching :class:`ImageFormat`, or ``None`` when the buffer is
        shorter than four bytes or matches no known signature.
    """
    if len(data) < MIN_SIGNATURE_LENGTH:
        return None

    for image_format, min_length, markers in _SIGNATURES:
        if len(data) < min_length:
            continue
        if all(data[offset : offset + len(sig)] == sig for offset, sig in markers):
            return image_format
    return None


def is_supported_image(data: bytes) -> bool:
    """Return ``True`` when *data* looks like a supported image container."""
    return classify_image_bytes(data) is not None
