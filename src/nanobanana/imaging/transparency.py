"""Background removal and alpha-channel inspection.

Game and UI assets are usually generated on a flat background.  This module
turns such a background transparent (:func:`make_transparent`) and reports
how much of an image is already transparent (:func:`inspect_transparency`).

Colour Matching
---------------
A pixel is cleared when every RGB channel is within ``tolerance% * 255`` of
the background colour.  With the default tolerance of 10 that is roughly
±25 per channel.

Output is always written as PNG.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from PIL import Image, ImageChops

from nanobanana.imaging.colors import WHITE, parse_rgb, to_hex

logger = logging.getLogger(__name__)

TRANSPARENCY_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})


@dataclass(frozen=True)
class ProcessedFile:
    input_path: str
    output_path: str
    has_transparency: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputPath": self.input_path,
            "outputPath": self.output_path,
            "hasTransparency": self.has_transparency,
        }


@dataclass
class TransparencyResult:
    success: bool
    processed: list[ProcessedFile] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "processed": [item.to_dict() for item in self.processed],
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class TransparencyReport:
    has_alpha_channel: bool
    transparent_pixel_percentage: float
    format: str
    width: int
    height: int
    dominant_background_color: str | None = None
    recommendation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "hasAlphaChannel": self.has_alpha_channel,
            "transparentPixelPercentage": self.transparent_pixel_percentage,
            "format": self.format,
            "dimensions": {"width": self.width, "height": self.height},
        }
        if self.dominant_background_color is not None:
            data["dominantBackgroundColor"] = self.dominant_background_color
        if self.recommendation is not None:
            data["recommendation"] = self.recommendation
        return data


def clear_background(
    image: Image.Image,
    rgb: tuple[int, int, int],
    tolerance: float,
) -> Image.Image:
    """Return an RGBA copy of *image* with pixels near *rgb* made transparent.

    Args:
        image: Source image, any mode.
        rgb: Background colour to remove.
        tolerance: Percentage (0-100) of the channel range to accept.
    """
    rgba = image.convert("RGBA")
    limit = tolerance / 100 * 255

    red, green, blue, alpha = rgba.split()
    mask = None
    for band, target in zip((red, green, blue), rgb):
        band_mask = band.point(lambda v, t=target: 255 if abs(v - t) <= limit else 0)
        mask = band_mask if mask is None else ImageChops.darker(mask, band_mask)

    alpha.paste(0, mask=mask)
    rgba.putalpha(alpha)
    return rgba


def make_transparent_file(
    input_path: str,
    output_path: str,
    background_color: str = "white",
    tolerance: float = 10,
) -> None:
    """Clear the background of one file and save the result as PNG.

    *output_path* may equal *input_path*; the source is fully loaded before
    the output is written.
    """
    rgb = parse_rgb(background_color, WHITE)
    with Image.open(input_path) as img:
        img.load()
        result = clear_background(img, rgb, tolerance)

    parent = os.path.dirname(output_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    result.save(output_path, format="PNG")
    logger.info("Cleared %s background of %s -> %s", to_hex(rgb), input_path, output_path)


def _default_output_path(path: Path) -> str:
    return str(path.with_name(f"{path.stem}_transparent{path.suffix}"))


def _collect_inputs(input_path: Path) -> list[Path]:
    if input_path.is_dir():
        return sorted(
            p for p in input_path.iterdir() if p.is_file() and p.suffix.lower() in TRANSPARENCY_SUFFIXES
        )
    return [input_path]


def make_transparent(
    input_path: str,
    output_path: str | None = None,
    background_color: str = "white",
    tolerance: float = 10,
    overwrite: bool = False,
) -> TransparencyResult:
    """Make the background of a file, or of every image in a directory, transparent.

    Args:
        input_path: Image file or directory of images.
        output_path: Output file for a single input.  Ignored for
            directories, whose outputs are named ``<stem>_transparent<ext>``.
        background_color: Colour name or ``#rrggbb`` to remove.
        tolerance: Matching tolerance in percent (0-100).
        overwrite: Replace each input file in place.

    Returns:
        A :class:`TransparencyResult`; ``success`` is ``True`` when at least
        one file was processed.
    """
    source = Path(input_path)
    if not source.exists():
        return TransparencyResult(success=False, error=f"Input path not found: {input_path}")

    processed: list[ProcessedFile] = []
    for file in _collect_inputs(source):
        if overwrite:
            target = str(file)
        elif output_path and not source.is_dir():
            target = output_path
        else:
            target = _default_output_path(file)

        try:
            make_transparent_file(str(file), target, background_color, tolerance)
        except Exception as e:
            logger.warning("Failed to process %s: %s", file, e)
            continue
        processed.append(ProcessedFile(input_path=str(file), output_path=target))

    if not processed:
        return TransparencyResult(success=False, error="No images were processed")
    return TransparencyResult(success=True, processed=processed)


def _recommendation(has_alpha: bool, percentage: float, dominant: str | None) -> str | None:
    if not has_alpha:
        return "Image lacks alpha channel. Use make_transparent to add transparency."
    if percentage == 0:
        return (
            "No transparent pixels found. Consider using make_transparent with "
            f'backgroundColor="{dominant or "white"}".'
        )
    if percentage < 5:
        return "Image has minimal transparency. May need adjustment for game assets."
    return None


def inspect_transparency(path: str) -> TransparencyReport:
    """Report alpha-channel presence, transparent pixel share and dominant colour.

    Raises:
        FileNotFoundError: *path* does not exist.
        PIL.UnidentifiedImageError: *path* is not a decodable image.
    """
    with Image.open(path) as img:
        image_format = (img.format or "unknown").lower()
        has_alpha = "A" in img.getbands() or "transparency" in img.info
        rgba = img.convert("RGBA")

    width, height = rgba.size
    total = width * height
    alpha_histogram = rgba.getchannel("A").histogram()
    transparent = sum(alpha_histogram[:255])

    colors = rgba.getcolors(maxcolors=max(total, 1)) or []
    opaque = [(count, color) for count, color in colors if color[3] == 255]
    dominant = None
    if opaque:
        _, color = max(opaque, key=lambda item: item[0])
        dominant = to_hex(color[:3])

    percentage = round(transparent / total * 100, 2) if total else 0.0
    return TransparencyReport(
        has_alpha_channel=has_alpha,
        transparent_pixel_percentage=percentage,
        format=image_format,
        width=width,
        height=height,
        dominant_background_color=dominant,
        recommendation=_recommendation(has_alpha, percentage, dominant),
    )
