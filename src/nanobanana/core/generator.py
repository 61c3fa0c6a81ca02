"""Generation orchestrator: one tool call in, zero or more image files out.

:class:`ImageGenerator` runs the whole ``generate_image`` pipeline for a
single request:

1. **Planning** — validate ``count``, compute the output plan and refuse to
   start if any planned path already exists.
2. **Per-unit loop** (sequential, one unit per planned path):

   - assemble content (every image reference is re-resolved),
   - call the backend,
   - take the first inline image of the first candidate and check its
     magic bytes,
   - write it with exclusive-create semantics,
   - re-open the written file with Pillow for its dimensions.

3. **Reporting** — turn the accumulated images (or the fatal error) into a
   :class:`GenerationResult`.

Failure Semantics
-----------------
- A unit failure while no image has been produced yet is fatal: the request
  fails with that unit's error.
- Once at least one image exists, later unit failures are recorded as
  :class:`UnitFailure` entries and the batch continues.
- An :class:`~nanobanana.core.errors.OutputCollisionError` is fatal at any
  point, even after earlier units succeeded.
- A batch in which every unit returned no image fails with
  ``NO_IMAGES_GENERATED``.

:meth:`ImageGenerator.generate` never raises; every failure is classified
into the returned result.

Usage Example
-------------
::

    from nanobanana.core.config import config
    from nanobanana.core.gemini_backend import GeminiBackend
    from nanobanana.core.generator import GenerationRequest, ImageGenerator

    generator = ImageGenerator(GeminiBackend(config.gemini_api_key))
    result = generator.generate(
        GenerationRequest(prompt="pixel-art goblin", output_path="./goblin.png", count=3)
    )
    result.to_dict()
    # {"success": True, "images": [{"path": "./goblin-1.png", ...}, ...]}

See Also
--------
- :mod:`nanobanana.core.output_paths` — planning and exclusive writes
- :mod:`nanobanana.core.errors` — error taxonomy and classification
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from PIL import Image

from nanobanana.core.config import config as default_config
from nanobanana.core.content import assemble_content, describe_mode
from nanobanana.core.errors import (
    ErrorInfo,
    InvalidRequestError,
    NoContentError,
    NoImagesGeneratedError,
    OutputCollisionError,
    UnrecognizedFormatError,
    classify_error,
)
from nanobanana.core.gemini_backend import GenerationBackend
from nanobanana.core.image_format import classify_image_bytes
from nanobanana.core.input_resolver import ImageReference
from nanobanana.core.output_paths import (
    check_plan_available,
    plan_output_paths,
    write_exclusive,
)
from nanobanana.imaging.transparency import make_transparent_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    """A validated ``generate_image`` call."""

    output_path: str
    prompt: str | None = None
    images: Sequence[ImageReference] = ()
    count: int = 1
    model: str | None = None
    make_transparent: bool = False
    transparency_color: str = "white"


@dataclass(frozen=True)
class GeneratedImage:
    """An image file written by the orchestrator."""

    path: str
    width: int
    height: int

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "dimensions": {"width": self.width, "height": self.height}}


@dataclass(frozen=True)
class UnitFailure:
    """A non-fatal failure of one batch unit."""

    index: int
    error: ErrorInfo

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, **self.error.to_dict()}


@dataclass
class GenerationResult:
    """Outcome of one ``generate_image`` call.

    Partial success (some units failed after the first image was written)
    is reported as ``success=True`` with fewer images than requested; the
    failed units are listed in ``failures``.
    """

    success: bool
    images: list[GeneratedImage] = field(default_factory=list)
    error: ErrorInfo | None = None
    failures: list[UnitFailure] = field(default_factory=list)

    @classmethod
    def failed(cls, error: ErrorInfo) -> GenerationResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.success:
            data["images"] = [image.to_dict() for image in self.images]
        if self.error is not None:
            data["error"] = self.error.to_dict()
        if self.failures:
            data["failures"] = [failure.to_dict() for failure in self.failures]
        return data


class ImageGenerator:
    """Runs generation requests against a backend.

    Args:
        backend: Object with ``generate_content(model, parts)``.
        default_model: Model used when the request names none.
        min_count: Smallest accepted batch size.
        max_count: Largest accepted batch size.
        transparency_tolerance: Colour tolerance (percent) for the optional
            background-removal post-step.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        default_model: str | None = None,
        min_count: int | None = None,
        max_count: int | None = None,
        transparency_tolerance: int | None = None,
    ) -> None:
        self.backend = backend
        self.default_model = default_model or default_config.default_model
        self.min_count = min_count if min_count is not None else default_config.min_count
        self.max_count = max_count if max_count is not None else default_config.max_count
        self.transparency_tolerance = (
            transparency_tolerance
            if transparency_tolerance is not None
            else default_config.transparency_tolerance
        )

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run *request* to completion and report the outcome.

        Never raises.
        """
        try:
            result = self._run(request)
        except Exception as e:
            info = classify_error(e)
            logger.error("Generation failed [%s]: %s", info.code.value, info.message)
            return GenerationResult.failed(info)

        if request.make_transparent:
            self._apply_transparency(result.images, request.transparency_color)
        return result

    # -- Pipeline -----------------------------------------------------------

    def _run(self, request: GenerationRequest) -> GenerationResult:
        self._validate(request)

        plan = plan_output_paths(request.output_path, request.count)
        check_plan_available(plan)

        model = request.model or self.default_model
        logger.info(
            "Generating %d image(s) with %s (%d input image(s))",
            request.count,
            model,
            len(request.images),
        )

        images: list[GeneratedImage] = []
        failures: list[UnitFailure] = []

        for index, path in enumerate(plan):
            try:
                image = self._run_unit(index, path, model, request)
            except OutputCollisionError:
                raise
            except Exception as e:
                if not images:
                    raise
                failure = UnitFailure(index=index, error=classify_error(e))
                failures.append(failure)
                logger.warning(
                    "Unit %d/%d failed [%s]: %s",
                    index + 1,
                    len(plan),
                    failure.error.code.value,
                    failure.error.message,
                )
                continue

            if image is not None:
                images.append(image)

        if not images:
            raise NoImagesGeneratedError()

        logger.info("Generated %d of %d requested image(s)", len(images), len(plan))
        return GenerationResult(success=True, images=images, failures=failures)

    def _validate(self, request: GenerationRequest) -> None:
        if not self.min_count <= request.count <= self.max_count:
            raise InvalidRequestError(
                f"count must be between {self.min_count} and {self.max_count}, "
                f"got {request.count}"
            )
        if not (request.prompt and request.prompt.strip()) and not request.images:
            raise NoContentError("Either prompt or images must be provided")

    def _run_unit(
        self,
        index: int,
        path: str,
        model: str,
        request: GenerationRequest,
    ) -> GeneratedImage | None:
        parts = assemble_content(request.prompt, request.images)
        logger.debug("Unit %d: %s request with %d part(s)", index + 1, describe_mode(parts), len(parts))

        response = self.backend.generate_content(model, parts)
        data = _first_inline_image(response, index)
        if data is None:
            return None

        if classify_image_bytes(data) is None:
            raise UnrecognizedFormatError(
                f"Model response for image {index + 1} is not a valid image format"
            )

        write_exclusive(path, data)
        try:
            with Image.open(path) as img:
                width, height = img.size
        except Exception as e:
            Path(path).unlink(missing_ok=True)
            raise UnrecognizedFormatError(
                f"Model response for image {index + 1} could not be decoded: {e}"
            ) from e
        return GeneratedImage(path=path, width=width, height=height)

    def _apply_transparency(self, images: Sequence[GeneratedImage], color: str) -> None:
        for image in images:
            try:
                make_transparent_file(image.path, image.path, color, self.transparency_tolerance)
            except Exception as e:
                logger.warning("Failed to apply transparency to %s: %s", image.path, e)


def _first_inline_image(response: Any, index: int) -> bytes | None:
    """Return the first inline image of the first candidate, if any."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        logger.warning("Unit %d: response contained no candidates", index + 1)
        return None

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []

    payloads = []
    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            payloads.append(inline.data)

    if not payloads:
        logger.warning("Unit %d: response contained no image data", index + 1)
        return None
    if len(payloads) > 1:
        logger.info("Unit %d: ignoring %d extra image part(s)", index + 1, len(payloads) - 1)

    data = payloads[0]
    if isinstance(data, str):
        data = base64.b64decode(data)
    return data
