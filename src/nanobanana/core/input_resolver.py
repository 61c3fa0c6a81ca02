"""Resolve image references into raw bytes and a mime type.

An image reference arrives from the client as a single ``data`` string plus an
optional ``mimeType``.  The string may be any of:

- a **data URL** — ``data:image/png;base64,iVBORw0...``
- **bare base64** — ``iVBORw0KGgo...``
- a **filesystem path** — ``./assets/hero.png``

:func:`detect_reference_kind` decides which, and
:func:`resolve_image_reference` turns the reference into a
:class:`ResolvedImage`, raising a specific :class:`ImageInputError` subclass
when it cannot.  Inline payloads go through a two-stage check: the decoded
bytes must be non-empty, then they must carry a recognised magic-byte
signature.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from nanobanana.core.errors import (
    EmptyImageDataError,
    ImageNotFoundError,
    ImagePermissionError,
    ImageReadError,
    InvalidBase64Error,
    MalformedDataUrlError,
    UnrecognizedFormatError,
)
from nanobanana.core.image_format import is_supported_image

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"

# File extension -> mime type for path references.
EXTENSION_MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

_IMAGE_SUFFIXES = frozenset(EXTENSION_MIME_TYPES) | {".bmp"}

_DATA_URL_PATTERN = re.compile(r"^data:([^;,]+);base64,(.+)$", re.DOTALL)
_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")
_PATH_PREFIXES = ("/", "./", "../", "~", ".\\", "..\\")
_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:[\\/]")


class ReferenceKind(str, Enum):
    FILE_PATH = "file_path"
    DATA_URL = "data_url"
    INLINE_BASE64 = "inline_base64"


@dataclass(frozen=True)
class ImageReference:
    """An image as supplied by the client: a string plus an optional mime type."""

    data: str
    mime_type: str | None = None


@dataclass(frozen=True)
class ResolvedImage:
    """Raw image bytes ready to be sent to the model."""

    data: bytes
    mime_type: str

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


def _strip_whitespace(value: str) -> str:
    return "".join(value.split())


def _path_exists(value: str) -> bool:
    try:
        return Path(value).expanduser().exists()
    except (OSError, ValueError):
        # Very long base64 strings can exceed the OS path length limit.
        return False


def _is_base64_shaped(value: str) -> bool:
    compact = _strip_whitespace(value)
    return len(compact) % 4 == 0 and bool(_BASE64_PATTERN.match(compact))


def detect_reference_kind(value: str, mime_type: str | None = None) -> ReferenceKind:
    """Decide whether *value* is a data URL, bare base64, or a file path.

    Base64 for JPEG starts with ``/9j/``, so a leading slash alone does not
    make a path: long (or mime-typed) base64-shaped strings win over path
    prefixes, while existing files and image extensions win over both.
    """
    if value.startswith("data:") or "base64," in value:
        return ReferenceKind.DATA_URL
    if _path_exists(value) or Path(value).suffix.lower() in _IMAGE_SUFFIXES:
        return ReferenceKind.FILE_PATH

    base64_shaped = _is_base64_shaped(value)
    if base64_shaped and (len(value) >= 32 or mime_type):
        return ReferenceKind.INLINE_BASE64
    if value.startswith(_PATH_PREFIXES) or _DRIVE_PATTERN.match(value):
        return ReferenceKind.FILE_PATH
    if base64_shaped:
        return ReferenceKind.INLINE_BASE64
    return ReferenceKind.FILE_PATH


def _check_image_bytes(data: bytes, source: str) -> None:
    if not data:
        raise EmptyImageDataError(f"Empty image data: {source}")
    if not is_supported_image(data):
        raise UnrecognizedFormatError(f"{source} is not a valid image format")


def _decode_base64(payload: str) -> bytes:
    try:
        return base64.b64decode(_strip_whitespace(payload), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidBase64Error(f"Invalid base64 image data: {e}") from e


def _resolve_file(reference: ImageReference) -> ResolvedImage:
    path = Path(reference.data).expanduser()
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except FileNotFoundError as e:
        raise ImageNotFoundError(f"Image file not found: {reference.data}") from e
    except PermissionError as e:
        raise ImagePermissionError(
            f"Permission denied accessing image file: {reference.data}"
        ) from e
    except OSError as e:
        raise ImageReadError(f"Failed to read image file: {reference.data} - {e}") from e

    _check_image_bytes(data, f"File {reference.data}")

    mime_type = EXTENSION_MIME_TYPES.get(
        path.suffix.lower(), reference.mime_type or DEFAULT_MIME_TYPE
    )
    logger.debug("Resolved image file %s (%d bytes, %s)", path, len(data), mime_type)
    return ResolvedImage(data=data, mime_type=mime_type)


def _resolve_data_url(reference: ImageReference) -> ResolvedImage:
    match = _DATA_URL_PATTERN.match(reference.data.strip())
    if not match:
        raise MalformedDataUrlError(
            "Invalid data URL format. Expected: data:[mimeType];base64,[data]"
        )
    mime_type, payload = match.groups()
    data = _decode_base64(payload)
    _check_image_bytes(data, "Base64 data")
    return ResolvedImage(data=data, mime_type=mime_type)


def _resolve_base64(reference: ImageReference) -> ResolvedImage:
    data = _decode_base64(reference.data)
    _check_image_bytes(data, "Base64 data")
    return ResolvedImage(data=data, mime_type=reference.mime_type or DEFAULT_MIME_TYPE)


def resolve_image_reference(reference: ImageReference) -> ResolvedImage:
    """Turn an image reference into bytes plus mime type.

    Args:
        reference: The client-supplied reference.

    Returns:
        The resolved image.

    Raises:
        ImageNotFoundError: The referenced file does not exist.
        ImagePermissionError: The referenced file cannot be opened.
        ImageReadError: Any other I/O failure while reading the file.
        MalformedDataUrlError: A ``data:`` string does not match
            ``data:<mime>;base64,<payload>``.
        InvalidBase64Error: The inline payload is not valid base64.
        EmptyImageDataError: The file or payload holds zero bytes.
        UnrecognizedFormatError: The bytes carry no known image signature.
    """
    kind = detect_reference_kind(reference.data, reference.mime_type)
    if kind is ReferenceKind.DATA_URL:
        return _resolve_data_url(reference)
    if kind is ReferenceKind.INLINE_BASE64:
        return _resolve_base64(reference)
    return _resolve_file(reference)
