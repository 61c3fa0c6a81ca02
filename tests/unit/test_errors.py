"""Tests for nanobanana.core.errors — error taxonomy and classification."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from nanobanana.core.errors import (
    EmptyImageDataError,
    ErrorCode,
    ErrorInfo,
    ImageNotFoundError,
    InvalidBase64Error,
    NoImagesGeneratedError,
    OutputCollisionError,
    UnrecognizedFormatError,
    classify_error,
)


class _StatusError(Exception):
    """Mimics SDK errors that carry an HTTP status in ``code``."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


class TestTypedErrors:
    """Exceptions raised by this package carry their own code."""

    @pytest.mark.parametrize(
        "exc, code",
        [
            (ImageNotFoundError("Image file not found: x.png"), ErrorCode.FILE_NOT_FOUND),
            (UnrecognizedFormatError("x is not a valid image format"), ErrorCode.INVALID_IMAGE_FORMAT),
            (InvalidBase64Error("Invalid base64 image data"), ErrorCode.INVALID_BASE64),
            (EmptyImageDataError("Empty image data"), ErrorCode.EMPTY_IMAGE_DATA),
            (OutputCollisionError("out.png"), ErrorCode.FILE_EXISTS),
            (NoImagesGeneratedError(), ErrorCode.NO_IMAGES_GENERATED),
        ],
    )
    def test_code_from_class(self, exc, code):
        assert classify_error(exc).code is code

    def test_message_is_kept(self):
        info = classify_error(NoImagesGeneratedError())
        assert info.message == "No images were generated"
        assert info.details == {"type": "NoImagesGeneratedError"}


class TestForeignErrors:
    """Exceptions from collaborators go through the ordered rule table."""

    def test_api_key(self):
        info = classify_error(ValueError("API key not valid. Please pass a valid API key."))
        assert info.code is ErrorCode.INVALID_API_KEY
        assert info.message == "Invalid or missing API key"

    def test_quota_by_message(self):
        info = classify_error(RuntimeError("Quota exceeded for metric"))
        assert info.code is ErrorCode.QUOTA_EXCEEDED
        assert info.message == "API quota exceeded or rate limit reached"

    def test_quota_by_status(self):
        info = classify_error(_StatusError("Too many requests", 429))
        assert info.code is ErrorCode.QUOTA_EXCEEDED
        assert info.details["status"] == 429

    @pytest.mark.parametrize(
        "exc, code",
        [
            (FileExistsError("exists"), ErrorCode.FILE_EXISTS),
            (PermissionError("nope"), ErrorCode.FILE_ACCESS_ERROR),
            (FileNotFoundError("gone"), ErrorCode.FILE_NOT_FOUND),
            (OSError("No space left on device"), ErrorCode.FILE_WRITE_ERROR),
            (RuntimeError("something broke"), ErrorCode.UNKNOWN_ERROR),
        ],
    )
    def test_builtin_errors(self, exc, code):
        assert classify_error(exc).code is code

    def test_api_key_wins_over_permission(self):
        """Earlier rules take precedence when several match."""
        exc = PermissionError("permission denied: API key lacks access")
        assert classify_error(exc).code is ErrorCode.INVALID_API_KEY

    def test_quota_wins_over_write_error(self):
        assert classify_error(OSError("rate limit reached")).code is ErrorCode.QUOTA_EXCEEDED

    def test_generic_api_error(self):
        from google.genai import errors as genai_errors

        exc = MagicMock(spec=genai_errors.APIError)
        assert classify_error(exc).code is ErrorCode.API_ERROR

    def test_empty_message_uses_type_name(self):
        assert classify_error(RuntimeError()).message == "RuntimeError"


class TestErrorInfo:
    def test_to_dict_without_details(self):
        info = ErrorInfo(code=ErrorCode.INVALID_INPUT, message="bad")
        assert info.to_dict() == {"code": "INVALID_INPUT", "message": "bad"}

    def test_to_dict_with_details(self):
        info = ErrorInfo(code=ErrorCode.API_ERROR, message="x", details={"status": 500})
        assert info.to_dict()["details"] == {"status": 500}
