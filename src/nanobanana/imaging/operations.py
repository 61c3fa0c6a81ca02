"""Local raster operations built on Pillow.

Each public function reads its inputs from disk, writes one output file (or
one per input for :func:`batch_process`) and returns a small result object
whose ``to_dict()`` is the tool response.  Failures raise; the tool layer in
:mod:`nanobanana.server.tools` turns them into ``{"success": False, ...}``.

Operations
----------
- :func:`transform_image` — crop, resize, rotate, flip, flop (in that order)
- :func:`adjust_image` — blur, sharpen, grayscale, tint, brightness,
  saturation, hue, normalize (in that order)
- :func:`composite_images` — layer overlays onto a base image
- :func:`combine_images` — lay several images out on one canvas
- :func:`batch_process` — resize / re-encode every image in a directory

Unlike generated images, outputs of these tools overwrite existing files.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from PIL import Image, ImageChops, ImageEnhance, ImageFilter, ImageOps

from nanobanana.imaging.colors import parse_background, require_rgb
from nanobanana.imaging.layout import Align, Direction, compute_layout

logger = logging.getLogger(__name__)

Fit = Literal["cover", "contain", "fill", "inside", "outside"]
Gravity = Literal[
    "north", "northeast", "east", "southeast", "south", "southwest", "west", "northwest", "center"
]
Blend = Literal["over", "multiply", "screen", "overlay", "darken", "lighten", "add", "subtract"]
BatchFormat = Literal["png", "jpg", "webp"]

BATCH_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp", ".tif", ".tiff"})
DEFAULT_QUALITY = 80

_BLEND_OPS: dict[str, Callable[[Image.Image, Image.Image], Image.Image]] = {
    "multiply": ImageChops.multiply,
    "screen": ImageChops.screen,
    "overlay": ImageChops.overlay,
    "darken": ImageChops.darker,
    "lighten": ImageChops.lighter,
    "add": ImageChops.add,
    "subtract": ImageChops.subtract,
}

_PIL_FORMATS = {"png": "PNG", "jpg": "JPEG", "webp": "WEBP"}


# ---------------------------------------------------------------------------
# Operation specs and results.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CropBox:
    left: int
    top: int
    width: int
    height: int


@dataclass(frozen=True)
class ResizeSpec:
    width: int | None = None
    height: int | None = None
    fit: Fit = "inside"


@dataclass(frozen=True)
class SharpenSpec:
    """Unsharp-mask parameters.

    ``sigma`` is the mask radius, ``m2`` the strength (``percent = m2 * 100``)
    and ``x1`` the threshold.
    """

    sigma: float | None = None
    m2: float = 2.0
    x1: float = 2.0


@dataclass(frozen=True)
class OverlaySpec:
    input: str
    gravity: Gravity | None = None
    left: int | None = None
    top: int | None = None
    blend: Blend = "over"


@dataclass(frozen=True)
class TransformResult:
    output_path: str
    width: int
    height: int
    operations: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "outputPath": self.output_path,
            "dimensions": {"width": self.width, "height": self.height},
            "operations": self.operations,
        }


@dataclass(frozen=True)
class AdjustResult:
    output_path: str
    adjustments_applied: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "outputPath": self.output_path,
            "adjustmentsApplied": self.adjustments_applied,
        }


@dataclass(frozen=True)
class CompositeResult:
    output_path: str
    layers_composited: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "outputPath": self.output_path,
            "layersComposited": self.layers_composited,
        }


@dataclass(frozen=True)
class CombineResult:
    output_path: str
    width: int
    height: int
    images_processed: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "outputPath": self.output_path,
            "dimensions": {"width": self.width, "height": self.height},
            "imagesProcessed": self.images_processed,
        }


@dataclass(frozen=True)
class BatchItem:
    input_path: str
    output_path: str
    success: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "inputPath": self.input_path,
            "outputPath": self.output_path,
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BatchResult:
    processed: list[BatchItem] = field(default_factory=list)
    error: str | None = None

    @property
    def total_processed(self) -> int:
        return sum(1 for item in self.processed if item.success)

    @property
    def total_failed(self) -> int:
        return sum(1 for item in self.processed if not item.success)

    @property
    def success(self) -> bool:
        return self.error is None and self.total_failed == 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "processed": [item.to_dict() for item in self.processed],
            "totalProcessed": self.total_processed,
            "totalFailed": self.total_failed,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _load(path: str) -> Image.Image:
    with Image.open(path) as img:
        img.load()
        return img.copy()


def save_image(
    image: Image.Image,
    path: str,
    image_format: str | None = None,
    quality: int | None = None,
) -> None:
    """Save *image*, creating parent directories and dropping alpha for JPEG."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if image_format is None:
        ext = os.path.splitext(path)[1].lower()
        image_format = Image.registered_extensions().get(ext, "PNG")

    if image_format == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    params: dict[str, Any] = {}
    if quality is not None and image_format in ("JPEG", "WEBP"):
        params["quality"] = quality
    image.save(path, format=image_format, **params)
    logger.debug("Saved %s (%s, %dx%d)", path, image_format, *image.size)


def resize_image(image: Image.Image, width: int | None, height: int | None, fit: Fit) -> Image.Image:
    """Resize with the given fit strategy.

    With only one dimension the other follows the aspect ratio, whatever
    the fit.  With both:

    - ``fill`` stretches to exactly ``width x height``;
    - ``cover`` scales to cover the box, then centre-crops to it;
    - ``contain`` scales to fit the box, then pads with transparency;
    - ``inside`` scales to fit within the box;
    - ``outside`` scales so both sides are at least the box.
    """
    src_w, src_h = image.size
    if width is None and height is None:
        return image
    if width is None:
        return image.resize((max(1, round(src_w * height / src_h)), height))
    if height is None:
        return image.resize((width, max(1, round(src_h * width / src_w))))

    if fit == "fill":
        return image.resize((width, height))
    if fit == "cover":
        return ImageOps.fit(image, (width, height))
    if fit == "contain":
        return ImageOps.pad(image.convert("RGBA"), (width, height), color=(0, 0, 0, 0))

    pick = min if fit == "inside" else max
    scale = pick(width / src_w, height / src_h)
    return image.resize((max(1, round(src_w * scale)), max(1, round(src_h * scale))))


def _map_rgb(image: Image.Image, fn: Callable[[Image.Image], Image.Image]) -> Image.Image:
    """Apply *fn* to the colour channels of *image*, keeping its alpha."""
    rgba = image.convert("RGBA")
    alpha = rgba.getchannel("A")
    result = fn(rgba.convert("RGB")).convert("RGBA")
    result.putalpha(alpha)
    return result


def _rotate_hue(image: Image.Image, degrees: float) -> Image.Image:
    shift = round(degrees / 360 * 256) % 256
    hue, saturation, value = image.convert("HSV").split()
    hue = hue.point(lambda h: (h + shift) % 256)
    return Image.merge("HSV", (hue, saturation, value)).convert("RGB")


def _tint(image: Image.Image, rgb: tuple[int, int, int]) -> Image.Image:
    return ImageOps.colorize(ImageOps.grayscale(image), black=(0, 0, 0), white=(255, 255, 255), mid=rgb)


def _gravity_offset(base: tuple[int, int], size: tuple[int, int], gravity: str) -> tuple[int, int]:
    free_w, free_h = base[0] - size[0], base[1] - size[1]
    x = 0 if "west" in gravity else free_w if "east" in gravity else free_w // 2
    y = 0 if "north" in gravity else free_h if "south" in gravity else free_h // 2
    return x, y


# ---------------------------------------------------------------------------
# Operations.
# ---------------------------------------------------------------------------


def transform_image(
    input_path: str,
    output_path: str,
    crop: CropBox | None = None,
    resize: ResizeSpec | None = None,
    rotate: float | None = None,
    flip: bool = False,
    flop: bool = False,
) -> TransformResult:
    """Apply geometric operations in the order crop, resize, rotate, flip, flop.

    Rotation is clockwise in degrees; the canvas grows to fit the rotated
    image.

    Raises:
        ValueError: The crop box falls outside the image.
    """
    image = _load(input_path)
    applied: list[str] = []

    if crop is not None:
        if (
            crop.left < 0
            or crop.top < 0
            or crop.width <= 0
            or crop.height <= 0
            or crop.left + crop.width > image.width
            or crop.top + crop.height > image.height
        ):
            raise ValueError(
                f"Crop area {crop.width}x{crop.height}+{crop.left}+{crop.top} "
                f"exceeds image bounds {image.width}x{image.height}"
            )
        image = image.crop((crop.left, crop.top, crop.left + crop.width, crop.top + crop.height))
        applied.append(f"crop({crop.left},{crop.top},{crop.width}x{crop.height})")

    if resize is not None:
        image = resize_image(image, resize.width, resize.height, resize.fit)
        applied.append(
            f"resize({resize.width or 'auto'}x{resize.height or 'auto'},{resize.fit})"
        )

    if rotate is not None:
        image = image.rotate(-rotate, expand=True)
        applied.append(f"rotate({rotate:g}°)")

    if flip:
        image = ImageOps.flip(image)
        applied.append("flip")

    if flop:
        image = ImageOps.mirror(image)
        applied.append("flop")

    save_image(image, output_path)
    logger.info("Transformed %s -> %s: %s", input_path, output_path, ", ".join(applied) or "none")
    return TransformResult(
        output_path=output_path, width=image.width, height=image.height, operations=applied
    )


def adjust_image(
    input_path: str,
    output_path: str,
    blur: float | None = None,
    sharpen: SharpenSpec | None = None,
    grayscale: bool = False,
    tint: str | None = None,
    brightness: float | None = None,
    saturation: float | None = None,
    hue: float | None = None,
    normalize: bool = False,
) -> AdjustResult:
    """Apply colour and filter adjustments, preserving any alpha channel.

    Sharpening uses an unsharp mask with ``radius=sigma``, ``percent=m2*100``
    and ``threshold=x1``; it is skipped when ``sigma`` is not set.

    Raises:
        ValueError: *tint* is not a recognised colour.
    """
    image = _load(input_path)
    applied: list[str] = []

    if blur is not None:
        image = image.filter(ImageFilter.GaussianBlur(radius=blur))
        applied.append(f"blur({blur:g})")

    if sharpen is not None and sharpen.sigma is not None:
        mask = ImageFilter.UnsharpMask(
            radius=sharpen.sigma,
            percent=round(sharpen.m2 * 100),
            threshold=round(sharpen.x1),
        )
        image = _map_rgb(image, lambda rgb: rgb.filter(mask))
        applied.append(f"sharpen(σ={sharpen.sigma:g})")

    if grayscale:
        image = _map_rgb(image, lambda rgb: ImageOps.grayscale(rgb).convert("RGB"))
        applied.append("grayscale")

    if tint:
        tint_rgb = require_rgb(tint)
        image = _map_rgb(image, lambda rgb: _tint(rgb, tint_rgb))
        applied.append(f"tint({tint})")

    if brightness is not None:
        image = _map_rgb(image, lambda rgb: ImageEnhance.Brightness(rgb).enhance(brightness))
        applied.append(f"brightness({brightness:g})")

    if saturation is not None:
        image = _map_rgb(image, lambda rgb: ImageEnhance.Color(rgb).enhance(saturation))
        applied.append(f"saturation({saturation:g})")

    if hue is not None:
        image = _map_rgb(image, lambda rgb: _rotate_hue(rgb, hue))
        applied.append(f"hue({hue:g}°)")

    if normalize:
        image = _map_rgb(image, lambda rgb: ImageOps.autocontrast(rgb, cutoff=1))
        applied.append("normalize")

    save_image(image, output_path)
    logger.info("Adjusted %s -> %s: %s", input_path, output_path, ", ".join(applied) or "none")
    return AdjustResult(output_path=output_path, adjustments_applied=applied)


def composite_images(
    base_image: str,
    overlays: Sequence[OverlaySpec],
    output_path: str,
) -> CompositeResult:
    """Layer *overlays* onto *base_image* in order.

    An overlay is placed at ``(left, top)`` when both are given, otherwise by
    ``gravity`` (default ``center``).  Overlays extending past the base are
    clipped.
    """
    base = _load(base_image).convert("RGBA")

    for overlay in overlays:
        layer_image = _load(overlay.input).convert("RGBA")
        if overlay.left is not None and overlay.top is not None:
            position = (overlay.left, overlay.top)
        else:
            position = _gravity_offset(base.size, layer_image.size, overlay.gravity or "center")

        layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        layer.paste(layer_image, position)

        if overlay.blend == "over":
            base = Image.alpha_composite(base, layer)
            continue

        blended = _BLEND_OPS[overlay.blend](base.convert("RGB"), layer.convert("RGB")).convert("RGBA")
        blended.putalpha(base.getchannel("A"))
        base = Image.composite(blended, base, layer.getchannel("A"))

    save_image(base, output_path)
    logger.info("Composited %d layer(s) onto %s -> %s", len(overlays), base_image, output_path)
    return CompositeResult(output_path=output_path, layers_composited=len(overlays))


def combine_images(
    images: Sequence[str],
    output_path: str,
    direction: Direction = "horizontal",
    gap: int = 0,
    background_color: str = "transparent",
    columns: int | None = None,
    align: Align = "center",
) -> CombineResult:
    """Lay *images* out on one canvas (see :mod:`nanobanana.imaging.layout`).

    Raises:
        ValueError: An input could not be loaded, or the layout is invalid.
    """
    loaded: list[Image.Image] = []
    for path in images:
        try:
            loaded.append(_load(path).convert("RGBA"))
        except Exception as e:
            raise ValueError(f"Failed to load image {path}: {e}") from e

    layout = compute_layout(
        [img.size for img in loaded], direction=direction, gap=gap, columns=columns, align=align
    )
    canvas = Image.new("RGBA", (layout.width, layout.height), parse_background(background_color))
    for img, offset in zip(loaded, layout.offsets):
        canvas.alpha_composite(img, dest=offset)

    save_image(canvas, output_path)
    logger.info(
        "Combined %d image(s) %s into %s (%dx%d)",
        len(loaded),
        direction,
        output_path,
        layout.width,
        layout.height,
    )
    return CombineResult(
        output_path=output_path,
        width=layout.width,
        height=layout.height,
        images_processed=len(loaded),
    )


def batch_process(
    input_path: str,
    output_dir: str,
    resize: ResizeSpec | None = None,
    output_format: BatchFormat | None = None,
    quality: int | None = None,
    prefix: str = "",
    suffix: str = "",
) -> BatchResult:
    """Resize and/or re-encode one file or every image in a directory.

    Outputs are named ``<prefix><stem><suffix><ext>`` inside *output_dir*,
    where ``ext`` is the new format's extension or the original one.  A
    resize with both dimensions uses the ``cover`` fit.  Per-file failures
    are recorded and do not stop the batch.
    """
    source = Path(input_path)
    if not source.exists():
        return BatchResult(error=f"Input path not found: {input_path}")

    if source.is_dir():
        files = sorted(
            p for p in source.iterdir() if p.is_file() and p.suffix.lower() in BATCH_SUFFIXES
        )
    else:
        files = [source]

    os.makedirs(output_dir, exist_ok=True)
    image_format = _PIL_FORMATS[output_format] if output_format else None
    if image_format in ("JPEG", "WEBP") and quality is None:
        quality = DEFAULT_QUALITY

    result = BatchResult()
    for file in files:
        ext = f".{output_format}" if output_format else file.suffix
        target = os.path.join(output_dir, f"{prefix}{file.stem}{suffix}{ext}")
        try:
            image = _load(str(file))
            if resize is not None:
                image = resize_image(image, resize.width, resize.height, "cover")
            save_image(image, target, image_format=image_format, quality=quality)
        except Exception as e:
            logger.warning("Batch item %s failed: %s", file, e)
            result.processed.append(
                BatchItem(input_path=str(file), output_path="", success=False, error=str(e))
            )
            continue
        result.processed.append(BatchItem(input_path=str(file), output_path=target, success=True))

    logger.info(
        "Batch processed %d file(s), %d failed", result.total_processed, result.total_failed
    )
    return result
