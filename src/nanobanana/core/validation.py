"""Post-hoc validation of image files on disk.

Backs the ``validate_image`` tool.  Each call re-reads the file; nothing is
cached between calls.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from PIL import Image

logger = logging.getLogger(__name__)

DEFAULT_MIN_DIMENSION = 10


@dataclass(frozen=True)
class ValidationReport:
    """Result of validating one image file."""

    exists: bool
    valid: bool
    width: int | None = None
    height: int | None = None
    format: str | None = None
    file_size_bytes: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"exists": self.exists, "valid": self.valid}
        if self.width is not None and self.height is not None:
            data["dimensions"] = {"width": self.width, "height": self.height}
        if self.format is not None:
            data["format"] = self.format
        if self.file_size_bytes is not None:
            data["fileSizeBytes"] = self.file_size_bytes
        if self.error is not None:
            data["error"] = self.error
        return data


def validate_image(path: str, min_dimension: int = DEFAULT_MIN_DIMENSION) -> ValidationReport:
    """Check that *path* is a decodable image of at least *min_dimension* pixels.

    Args:
        path: File to inspect.
        min_dimension: Minimum accepted width and height.

    Returns:
        A :class:`ValidationReport`.  Zero-byte and undecodable files report
        ``exists=True, valid=False`` with an ``"Invalid image file: ..."``
        error.
    """
    if not os.path.exists(path):
        return ValidationReport(exists=False, valid=False, error="File does not exist")

    try:
        with Image.open(path) as img:
            width, height = img.size
            image_format = (img.format or "unknown").lower()
            img.verify()
        file_size = os.path.getsize(path)
    except Exception as e:
        logger.debug("Validation of %s failed: %s", path, e)
        return ValidationReport(exists=True, valid=False, error=f"Invalid image file: {e}")

    if width < min_dimension or height < min_dimension:
        return ValidationReport(
            exists=True,
            valid=False,
            width=width,
            height=height,
            error=(
                f"Image is too small (less than {min_dimension}x{min_dimension} pixels)"
            ),
        )

    return ValidationReport(
        exists=True,
        valid=True,
        width=width,
        height=height,
        format=image_format,
        file_size_bytes=file_size,
    )
