"""Colour parsing shared by the raster tools."""

from __future__ import annotations

import logging

from PIL import ImageColor

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]
RGBA = tuple[int, int, int, int]

TRANSPARENT: RGBA = (0, 0, 0, 0)
WHITE: RGB = (255, 255, 255)


def parse_rgb(value: str | None, fallback: RGB = WHITE) -> RGB:
    """Parse a colour name or ``#rrggbb`` string into an RGB tuple.

    Unknown colours resolve to *fallback*.

    Examples:
        >>> parse_rgb("black")
        (0, 0, 0)
        >>> parse_rgb("#ff8800")
        (255, 136, 0)
        >>> parse_rgb("not-a-colour")
        (255, 255, 255)
    """
    if not value:
        return fallback
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError:
        logger.warning("Unrecognised colour %r, using %s", value, fallback)
        return fallback
    return rgb[0], rgb[1], rgb[2]


def require_rgb(value: str) -> RGB:
    """Parse *value* like :func:`parse_rgb` but raise ``ValueError`` if unknown."""
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError as e:
        raise ValueError(f"Invalid colour: {value}") from e
    return rgb[0], rgb[1], rgb[2]


def parse_background(value: str | None) -> RGBA:
    """Parse a canvas background; ``"transparent"`` and unknown colours are clear."""
    if not value or value.strip().lower() == "transparent":
        return TRANSPARENT
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError:
        logger.warning("Unrecognised background %r, using transparent", value)
        return TRANSPARENT
    return rgb[0], rgb[1], rgb[2], 255


def to_hex(rgb: RGB) -> str:
    """Format an RGB tuple as lowercase ``#rrggbb``."""
    return "#{:02x}{:02x}{:02x}".format(*rgb)
