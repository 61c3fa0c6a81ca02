"""Pydantic input models for every MCP tool.

Tool arguments arrive as camelCase JSON (``outputPath``, ``mimeType``, ...).
Each model accepts the camelCase names and exposes snake_case attributes.
The tool layer validates arguments against these models itself, so schema
violations come back as structured ``INVALID_INPUT`` results instead of
protocol errors.

Models
------
GenerateImageRequest
    ``generate_image``: prompt and/or images, output path, batch count.
ValidateImageRequest
    ``validate_image``: a single file path.
MakeTransparentRequest / InspectTransparencyRequest
    Background removal and alpha inspection.
CombineImagesRequest / TransformImageRequest / AdjustImageRequest /
CompositeImagesRequest / BatchProcessRequest
    Local raster operations.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nanobanana.core.generator import GenerationRequest
from nanobanana.core.input_resolver import ImageReference
from nanobanana.imaging.operations import CropBox, OverlaySpec, ResizeSpec, SharpenSpec


class ToolModel(BaseModel):
    """Base for tool inputs: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# generate_image / validate_image
# ---------------------------------------------------------------------------


class ImageInput(ToolModel):
    """One input image: a file path, a data URL or bare base64."""

    data: str = Field(..., description="Base64 data, data URL or file path.")
    mime_type: str | None = Field(
        default=None,
        description="Mime type for bare base64 input (default image/png).",
    )


class GenerateOptions(ToolModel):
    """Pass-through model options."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    model: str | None = Field(default=None, description="Gemini model identifier.")


class GenerateImageRequest(ToolModel):
    """Arguments of the ``generate_image`` tool.

    Attributes:
        prompt: Optional text prompt.
        images: Optional input images, in order.
        output_path: Where to save; with ``count > 1`` each image gets a
            ``-N`` suffix before the extension.
        count: Number of images (1-10).
        options: Model options.
        make_transparent: Remove the background of each generated image.
        transparency_color: Background colour to remove.
    """

    prompt: str | None = Field(default=None, description="Text prompt for generation.")
    images: list[ImageInput] | None = Field(default=None, description="Optional input images.")
    output_path: str = Field(
        ...,
        min_length=1,
        description='Where to save (e.g. "./assets/enemies/boss.png").',
    )
    count: int = Field(default=1, ge=1, le=10, description="Generate multiple (1-10).")
    options: GenerateOptions | None = Field(default=None, description="Model options.")
    make_transparent: bool = Field(
        default=False,
        description="Remove the background after generation.",
    )
    transparency_color: str = Field(
        default="white",
        description="Background colour to remove (name or #rrggbb).",
    )

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            output_path=self.output_path,
            prompt=self.prompt,
            images=tuple(
                ImageReference(data=image.data, mime_type=image.mime_type)
                for image in self.images or ()
            ),
            count=self.count,
            model=self.options.model if self.options else None,
            make_transparent=self.make_transparent,
            transparency_color=self.transparency_color,
        )


class ValidateImageRequest(ToolModel):
    path: str = Field(..., min_length=1, description="File path to validate.")


# ---------------------------------------------------------------------------
# Transparency
# ---------------------------------------------------------------------------


class MakeTransparentRequest(ToolModel):
    input_path: str = Field(..., min_length=1, description="Image file or directory path.")
    output_path: str | None = Field(
        default=None,
        description="Output path (defaults to <name>_transparent<ext>).",
    )
    background_color: str = Field(
        default="white",
        description="Colour to make transparent (name or #rrggbb).",
    )
    tolerance: float = Field(default=10, ge=0, le=100, description="Colour matching tolerance %.")
    overwrite: bool = Field(default=False, description="Overwrite the original file.")


class InspectTransparencyRequest(ToolModel):
    path: str = Field(..., min_length=1, description="Image file to inspect.")


# ---------------------------------------------------------------------------
# Raster operations
# ---------------------------------------------------------------------------


class CombineImagesRequest(ToolModel):
    images: list[str] = Field(..., min_length=2, description="Image file paths to combine.")
    output_path: str = Field(..., min_length=1, description="Output file path.")
    direction: Literal["horizontal", "vertical", "grid"] = Field(
        default="horizontal",
        description="How to combine images.",
    )
    gap: int = Field(default=0, ge=0, description="Gap between images in pixels.")
    background_color: str = Field(
        default="transparent",
        description="Background colour (transparent, name or #rrggbb).",
    )
    columns: int | None = Field(default=None, ge=1, description="Columns for grid layout.")
    align: Literal["start", "center", "end"] = Field(
        default="center",
        description="Alignment for images of different sizes.",
    )


class ResizeOperation(ToolModel):
    width: int | None = Field(default=None, ge=1, description="Target width.")
    height: int | None = Field(default=None, ge=1, description="Target height.")
    fit: Literal["cover", "contain", "fill", "inside", "outside"] = "inside"

    def to_spec(self) -> ResizeSpec:
        return ResizeSpec(width=self.width, height=self.height, fit=self.fit)


class CropOperation(ToolModel):
    left: int = Field(..., ge=0, description="Left offset.")
    top: int = Field(..., ge=0, description="Top offset.")
    width: int = Field(..., ge=1, description="Width to extract.")
    height: int = Field(..., ge=1, description="Height to extract.")

    def to_box(self) -> CropBox:
        return CropBox(left=self.left, top=self.top, width=self.width, height=self.height)


class TransformOperations(ToolModel):
    resize: ResizeOperation | None = None
    crop: CropOperation | None = None
    rotate: float | None = Field(default=None, ge=-360, le=360, description="Degrees, clockwise.")
    flip: bool = Field(default=False, description="Flip vertically.")
    flop: bool = Field(default=False, description="Flop horizontally.")


class TransformImageRequest(ToolModel):
    input_path: str = Field(..., min_length=1, description="Input image file path.")
    output_path: str = Field(..., min_length=1, description="Output file path.")
    operations: TransformOperations = Field(..., description="Transform operations to apply.")


class SharpenOptions(ToolModel):
    """Unsharp-mask options.

    ``m1``, ``y2`` and ``y3`` are accepted so existing clients validate, but
    Pillow's unsharp mask has no equivalent and ignores them.
    """

    sigma: float | None = Field(
        default=None, ge=0.5, le=10, description="Mask radius; sharpening is skipped without it."
    )
    m1: float = Field(default=1, ge=0, le=10, description="Ignored.")
    m2: float = Field(default=2, ge=0, le=10, description="Strength (percent = m2 * 100).")
    x1: float = Field(default=2, ge=0, le=10, description="Threshold.")
    y2: float = Field(default=10, ge=0, le=10, description="Ignored.")
    y3: float = Field(default=20, ge=0, le=20, description="Ignored.")

    def to_spec(self) -> SharpenSpec:
        return SharpenSpec(sigma=self.sigma, m2=self.m2, x1=self.x1)


class Adjustments(ToolModel):
    blur: float | None = Field(default=None, ge=0.3, le=1000, description="Blur sigma.")
    sharpen: SharpenOptions | None = None
    grayscale: bool = False
    tint: str | None = Field(default=None, description="Tint colour (#rrggbb).")
    brightness: float | None = Field(default=None, ge=0, le=2)
    saturation: float | None = Field(default=None, ge=0, le=2)
    hue: float | None = Field(default=None, ge=-360, le=360, description="Hue rotation in degrees.")
    normalize: bool = Field(default=False, description="Auto-enhance contrast.")


class AdjustImageRequest(ToolModel):
    input_path: str = Field(..., min_length=1, description="Input image file path.")
    output_path: str = Field(..., min_length=1, description="Output file path.")
    adjustments: Adjustments = Field(..., description="Image adjustments to apply.")


class OverlayInput(ToolModel):
    input: str = Field(..., min_length=1, description="Overlay image path.")
    gravity: (
        Literal[
            "north",
            "northeast",
            "east",
            "southeast",
            "south",
            "southwest",
            "west",
            "northwest",
            "center",
        ]
        | None
    ) = None
    left: int | None = Field(default=None, description="Left offset (overrides gravity).")
    top: int | None = Field(default=None, description="Top offset (overrides gravity).")
    blend: Literal[
        "over", "multiply", "screen", "overlay", "darken", "lighten", "add", "subtract"
    ] = "over"

    def to_spec(self) -> OverlaySpec:
        return OverlaySpec(
            input=self.input, gravity=self.gravity, left=self.left, top=self.top, blend=self.blend
        )


class CompositeImagesRequest(ToolModel):
    base_image: str = Field(..., min_length=1, description="Base image file path.")
    overlays: list[OverlayInput] = Field(..., description="Images to overlay on the base.")
    output_path: str = Field(..., min_length=1, description="Output file path.")


class BatchResize(ToolModel):
    width: int | None = Field(default=None, ge=1)
    height: int | None = Field(default=None, ge=1)


class BatchOperations(ToolModel):
    resize: BatchResize | None = None
    format: Literal["png", "jpg", "webp"] | None = None
    quality: int | None = Field(default=None, ge=1, le=100)
    prefix: str = Field(default="", description="Prefix for output files.")
    suffix: str = Field(default="", description="Suffix for output files.")


class BatchProcessRequest(ToolModel):
    input_path: str = Field(..., min_length=1, description="Input file or directory.")
    output_dir: str = Field(..., min_length=1, description="Output directory.")
    operations: BatchOperations = Field(..., description="Operations to apply to all images.")
