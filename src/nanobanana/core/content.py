"""Assemble the ordered content parts sent to the image model.

Text-to-image, single-image editing, and multi-image composition are not
separate code paths: they differ only in how many images accompany the
prompt.  :func:`assemble_content` handles all three, and
:func:`describe_mode` names the result for logging.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from nanobanana.core.errors import NoContentError
from nanobanana.core.input_resolver import ImageReference, resolve_image_reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentPart:
    """One text segment or one inline image segment."""

    text: str | None = None
    data: bytes | None = None
    mime_type: str | None = None

    @property
    def is_image(self) -> bool:
        return self.data is not None


def assemble_content(
    prompt: str | None,
    images: Sequence[ImageReference] | None = None,
) -> list[ContentPart]:
    """Build the content parts for one generation call.

    The prompt (when non-blank) comes first, followed by one inline part per
    image in the order given.  Every image reference is resolved afresh.

    Args:
        prompt: Optional text prompt.
        images: Optional image references.

    Returns:
        Ordered list of content parts.

    Raises:
        ImageInputError: An image reference could not be resolved.
        NoContentError: Neither prompt nor images produced a part.
    """
    parts: list[ContentPart] = []

    if prompt and prompt.strip():
        parts.append(ContentPart(text=prompt))

    for reference in images or ():
        resolved = resolve_image_reference(reference)
        parts.append(ContentPart(data=resolved.data, mime_type=resolved.mime_type))

    if not parts:
        raise NoContentError("Either prompt or images must be provided")

    logger.debug("Assembled %d content part(s) for %s", len(parts), describe_mode(parts))
    return parts


def describe_mode(parts: Sequence[ContentPart]) -> str:
    """Name the generation mode implied by *parts*."""
    image_count = sum(1 for part in parts if part.is_image)
    if image_count == 0:
        return "text-to-image"
    if image_count == 1:
        return "edit"
    return "composition"
