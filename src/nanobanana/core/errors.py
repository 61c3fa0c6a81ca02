"""Error taxonomy and classification for the generation pipeline.

Every failure that can reach an MCP client is reported as one of the codes in
:class:`ErrorCode`.  Failures raised by this package carry their code on the
exception class; failures raised by collaborators (the Gemini SDK, the
operating system) are classified by :func:`classify_error` using an ordered
rule table.

Classification Order
--------------------
Some messages could match more than one rule (for example a generic I/O error
whose text mentions "permission"), so rules are evaluated most-specific first:

1. API key problems          -> INVALID_API_KEY
2. Existing-file collisions  -> FILE_EXISTS
3. Quota / rate limiting     -> QUOTA_EXCEEDED
4. Permission / access       -> FILE_ACCESS_ERROR
5. Missing files             -> FILE_NOT_FOUND
6. Unrecognised format       -> INVALID_IMAGE_FORMAT
7. Malformed base64          -> INVALID_BASE64
8. Empty image data          -> EMPTY_IMAGE_DATA
9. Other OS errors           -> FILE_WRITE_ERROR
10. Other Gemini API errors  -> API_ERROR

Anything left over is ``UNKNOWN_ERROR``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Closed set of error codes returned to MCP clients."""

    INVALID_API_KEY = "INVALID_API_KEY"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    API_ERROR = "API_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    FILE_EXISTS = "FILE_EXISTS"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_ACCESS_ERROR = "FILE_ACCESS_ERROR"
    FILE_WRITE_ERROR = "FILE_WRITE_ERROR"
    INVALID_IMAGE_FORMAT = "INVALID_IMAGE_FORMAT"
    INVALID_BASE64 = "INVALID_BASE64"
    EMPTY_IMAGE_DATA = "EMPTY_IMAGE_DATA"
    NO_IMAGES_GENERATED = "NO_IMAGES_GENERATED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# ---------------------------------------------------------------------------
# Exception hierarchy.
# ---------------------------------------------------------------------------


class NanoBananaError(Exception):
    """Base class for failures raised by this package.

    The message is intended to be shown directly to the MCP client.
    """

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR


class InvalidRequestError(NanoBananaError):
    """The request is well-formed JSON but violates a request invariant."""

    code = ErrorCode.INVALID_INPUT


class NoContentError(InvalidRequestError):
    """Neither a prompt nor any image was available to send."""


class ImageInputError(NanoBananaError):
    """An input image reference could not be turned into image bytes."""


class ImageNotFoundError(ImageInputError):
    code = ErrorCode.FILE_NOT_FOUND


class ImagePermissionError(ImageInputError):
    code = ErrorCode.FILE_ACCESS_ERROR


class ImageReadError(ImageInputError):
    code = ErrorCode.FILE_ACCESS_ERROR


class UnrecognizedFormatError(ImageInputError):
    code = ErrorCode.INVALID_IMAGE_FORMAT


class MalformedDataUrlError(ImageInputError):
    code = ErrorCode.INVALID_BASE64


class InvalidBase64Error(ImageInputError):
    code = ErrorCode.INVALID_BASE64


class EmptyImageDataError(ImageInputError):
    code = ErrorCode.EMPTY_IMAGE_DATA


class OutputCollisionError(NanoBananaError):
    """A planned output path already exists.

    Always fatal for the whole request, whether detected at planning time or
    immediately before a write.
    """

    code = ErrorCode.FILE_EXISTS

    def __init__(self, path: str) -> None:
        super().__init__(f"Output file already exists: {path}")
        self.path = path


class OutputWriteError(NanoBananaError):
    code = ErrorCode.FILE_WRITE_ERROR


class NoImagesGeneratedError(NanoBananaError):
    code = ErrorCode.NO_IMAGES_GENERATED

    def __init__(self, message: str = "No images were generated") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Classification.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ErrorInfo:
    """Structured error returned inside a failed result."""

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


def _is_api_error(exc: BaseException) -> bool:
    # Imported lazily so the classifier works without the SDK installed.
    try:
        from google.genai import errors as genai_errors
    except ImportError:
        return False
    return isinstance(exc, genai_errors.APIError)


def _status_code(exc: BaseException) -> int | None:
    code = getattr(exc, "code", None)
    return code if isinstance(code, int) else None


def _message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


# Each rule: (code, predicate, fixed user-facing message or None to keep the
# exception message).
_Rule = tuple[ErrorCode, Callable[[BaseException, str], bool], str | None]

_RULES: list[_Rule] = [
    (
        ErrorCode.INVALID_API_KEY,
        lambda exc, msg: "api key" in msg or "api_key" in msg,
        "Invalid or missing API key",
    ),
    (
        ErrorCode.FILE_EXISTS,
        lambda exc, msg: isinstance(exc, FileExistsError) or "already exists" in msg,
        None,
    ),
    (
        ErrorCode.QUOTA_EXCEEDED,
        lambda exc, msg: _status_code(exc) == 429
        or "quota" in msg
        or "rate limit" in msg
        or "resource_exhausted" in msg,
        "API quota exceeded or rate limit reached",
    ),
    (
        ErrorCode.FILE_ACCESS_ERROR,
        lambda exc, msg: isinstance(exc, PermissionError) or "permission denied" in msg,
        None,
    ),
    (
        ErrorCode.FILE_NOT_FOUND,
        lambda exc, msg: isinstance(exc, FileNotFoundError) or "file not found" in msg,
        None,
    ),
    (
        ErrorCode.INVALID_IMAGE_FORMAT,
        lambda exc, msg: "not a valid image" in msg,
        None,
    ),
    (
        ErrorCode.INVALID_BASE64,
        lambda exc, msg: "invalid base64" in msg,
        None,
    ),
    (
        ErrorCode.EMPTY_IMAGE_DATA,
        lambda exc, msg: "empty base64" in msg or "empty image data" in msg,
        None,
    ),
    (
        ErrorCode.FILE_WRITE_ERROR,
        lambda exc, msg: isinstance(exc, OSError),
        None,
    ),
    (
        ErrorCode.API_ERROR,
        lambda exc, msg: _is_api_error(exc),
        None,
    ),
]


def classify_error(exc: BaseException) -> ErrorInfo:
    """Map an exception onto the closed error taxonomy.

    Args:
        exc: The failure to classify.

    Returns:
        An :class:`ErrorInfo` with the most specific applicable code.
    """
    message = _message(exc)
    details: dict[str, Any] = {"type": exc.__class__.__name__}

    status = _status_code(exc)
    if status is not None:
        details["status"] = status

    if isinstance(exc, NanoBananaError):
        return ErrorInfo(code=exc.code, message=message, details=details)

    lowered = message.lower()
    for code, predicate, fixed_message in _RULES:
        if predicate(exc, lowered):
            return ErrorInfo(code=code, message=fixed_message or message, details=details)

    logger.debug("Unclassified error %s: %s", exc.__class__.__name__, message)
    return ErrorInfo(code=ErrorCode.UNKNOWN_ERROR, message=message, details=details)
