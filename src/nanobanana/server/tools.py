"""Tool implementations behind the MCP server.

:class:`ImageTools` holds one method per MCP tool.  Every method takes the
raw argument dictionary from the client, validates it against the matching
model in :mod:`nanobanana.server.models` and returns a JSON-ready dict.  No
exception crosses this boundary:

- schema violations become ``INVALID_INPUT`` (or the tool's own failure
  shape for tools without error codes);
- ``generate_image`` failures are already classified by the orchestrator;
- raster tool failures become ``{"success": False, "error": "..."}``.

The methods are synchronous and may block on disk or network I/O; the server
runs them in a worker thread.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from nanobanana.core.errors import ErrorCode
from nanobanana.core.generator import ImageGenerator
from nanobanana.core.validation import DEFAULT_MIN_DIMENSION, validate_image
from nanobanana.imaging import operations, transparency
from nanobanana.server.models import (
    AdjustImageRequest,
    BatchProcessRequest,
    CombineImagesRequest,
    CompositeImagesRequest,
    GenerateImageRequest,
    InspectTransparencyRequest,
    MakeTransparentRequest,
    TransformImageRequest,
    ValidateImageRequest,
)

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Invalid input parameters"


def _validation_details(error: ValidationError) -> list[dict[str, Any]]:
    return json.loads(error.json(include_url=False))


def _invalid_input(error: ValidationError) -> dict[str, Any]:
    return {
        "success": False,
        "error": {
            "code": ErrorCode.INVALID_INPUT.value,
            "message": INVALID_INPUT_MESSAGE,
            "details": _validation_details(error),
        },
    }


class ImageTools:
    """One method per MCP tool.

    Args:
        generator: Orchestrator used by ``generate_image``.
        min_image_dimension: Minimum size accepted by ``validate_image``.
    """

    def __init__(
        self,
        generator: ImageGenerator,
        min_image_dimension: int = DEFAULT_MIN_DIMENSION,
    ) -> None:
        self.generator = generator
        self.min_image_dimension = min_image_dimension

    # -- Generation ---------------------------------------------------------

    def generate_image(self, arguments: dict[str, Any]) -> dict[str, Any]:
        try:
            request = GenerateImageRequest.model_validate(arguments)
        except ValidationError as e:
            logger.warning("generate_image rejected: %d validation error(s)", e.error_count())
            return _invalid_input(e)

        return self.generator.generate(request.to_generation_request()).to_dict()

    def validate_image(self, arguments: dict[str, Any]) -> dict[str, Any]:
        try:
            request = ValidateImageRequest.model_validate(arguments)
        except ValidationError:
            return {"exists": False, "valid": False, "error": INVALID_INPUT_MESSAGE}

        return validate_image(request.path, self.min_image_dimension).to_dict()

    # -- Transparency -------------------------------------------------------

    def make_transparent(self, arguments: dict[str, Any]) -> dict[str, Any]:
        def run(request: MakeTransparentRequest) -> dict[str, Any]:
            return transparency.make_transparent(
                request.input_path,
                output_path=request.output_path,
                background_color=request.background_color,
                tolerance=request.tolerance,
                overwrite=request.overwrite,
            ).to_dict()

        return self._run("make_transparent", MakeTransparentRequest, arguments, run, processed=[])

    def inspect_transparency(self, arguments: dict[str, Any]) -> dict[str, Any]:
        def run(request: InspectTransparencyRequest) -> dict[str, Any]:
            try:
                report = transparency.inspect_transparency(request.path)
            except Exception as e:
                raise RuntimeError(f"Failed to inspect image: {e}") from e
            return {"success": True, **report.to_dict()}

        return self._run("inspect_transparency", InspectTransparencyRequest, arguments, run)

    # -- Raster operations --------------------------------------------------

    def combine_images(self, arguments: dict[str, Any]) -> dict[str, Any]:
        def run(request: CombineImagesRequest) -> dict[str, Any]:
            return operations.combine_images(
                request.images,
                request.output_path,
                direction=request.direction,
                gap=request.gap,
                background_color=request.background_color,
                columns=request.columns,
                align=request.align,
            ).to_dict()

        return self._run("combine_images", CombineImagesRequest, arguments, run)

    def transform_image(self, arguments: dict[str, Any]) -> dict[str, Any]:
        def run(request: TransformImageRequest) -> dict[str, Any]:
            ops = request.operations
            return operations.transform_image(
                request.input_path,
                request.output_path,
                crop=ops.crop.to_box() if ops.crop else None,
                resize=ops.resize.to_spec() if ops.resize else None,
                rotate=ops.rotate,
                flip=ops.flip,
                flop=ops.flop,
            ).to_dict()

        return self._run("transform_image", TransformImageRequest, arguments, run)

    def adjust_image(self, arguments: dict[str, Any]) -> dict[str, Any]:
        def run(request: AdjustImageRequest) -> dict[str, Any]:
            adj = request.adjustments
            return operations.adjust_image(
                request.input_path,
                request.output_path,
                blur=adj.blur,
                sharpen=adj.sharpen.to_spec() if adj.sharpen else None,
                grayscale=adj.grayscale,
                tint=adj.tint,
                brightness=adj.brightness,
                saturation=adj.saturation,
                hue=adj.hue,
                normalize=adj.normalize,
            ).to_dict()

        return self._run("adjust_image", AdjustImageRequest, arguments, run)

    def composite_images(self, arguments: dict[str, Any]) -> dict[str, Any]:
        def run(request: CompositeImagesRequest) -> dict[str, Any]:
            return operations.composite_images(
                request.base_image,
                [overlay.to_spec() for overlay in request.overlays],
                request.output_path,
            ).to_dict()

        return self._run("composite_images", CompositeImagesRequest, arguments, run)

    def batch_process(self, arguments: dict[str, Any]) -> dict[str, Any]:
        def run(request: BatchProcessRequest) -> dict[str, Any]:
            ops = request.operations
            resize = (
                operations.ResizeSpec(width=ops.resize.width, height=ops.resize.height)
                if ops.resize
                else None
            )
            return operations.batch_process(
                request.input_path,
                request.output_dir,
                resize=resize,
                output_format=ops.format,
                quality=ops.quality,
                prefix=ops.prefix,
                suffix=ops.suffix,
            ).to_dict()

        return self._run(
            "batch_process",
            BatchProcessRequest,
            arguments,
            run,
            processed=[],
            totalProcessed=0,
            totalFailed=0,
        )

    # -- Internals ----------------------------------------------------------

    def _run(
        self,
        tool: str,
        model: type[BaseModel],
        arguments: dict[str, Any],
        run: Callable[[Any], dict[str, Any]],
        **failure_fields: Any,
    ) -> dict[str, Any]:
        """Validate *arguments*, call *run* and convert failures to results."""
        try:
            request = model.model_validate(arguments)
        except ValidationError as e:
            logger.warning("%s rejected: %d validation error(s)", tool, e.error_count())
            return {
                "success": False,
                **failure_fields,
                "error": INVALID_INPUT_MESSAGE,
                "details": _validation_details(e),
            }

        try:
            return run(request)
        except Exception as e:
            logger.exception("%s failed", tool)
            return {"success": False, **failure_fields, "error": str(e) or e.__class__.__name__}
