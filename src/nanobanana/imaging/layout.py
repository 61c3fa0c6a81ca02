"""Canvas layout arithmetic for ``combine_images``.

Pure functions over ``(width, height)`` sizes; no pixels are touched here, so
every layout rule can be tested without Pillow.

Layouts
-------
``horizontal``
    Images side by side.  Canvas width is the sum of widths plus
    ``gap * (n - 1)``; height is the tallest image.  Each image is placed
    vertically according to ``align``.
``vertical``
    The same, rotated: widths are aligned, heights summed.
``grid``
    ``columns`` defaults to ``ceil(sqrt(n))``; rows follow.  Every cell is as
    large as the largest width and largest height, and each image is aligned
    inside its cell on both axes.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

Direction = Literal["horizontal", "vertical", "grid"]
Align = Literal["start", "center", "end"]
Size = tuple[int, int]


@dataclass(frozen=True)
class Layout:
    """Canvas size plus the top-left offset of every image."""

    width: int
    height: int
    offsets: list[tuple[int, int]]


def _align_offset(space: int, extent: int, align: Align) -> int:
    if align == "start":
        return 0
    if align == "end":
        return space - extent
    return (space - extent) // 2


def compute_layout(
    sizes: Sequence[Size],
    direction: Direction = "horizontal",
    gap: int = 0,
    columns: int | None = None,
    align: Align = "center",
) -> Layout:
    """Place *sizes* on a canvas.

    Args:
        sizes: ``(width, height)`` of each image, in order.
        direction: ``"horizontal"``, ``"vertical"`` or ``"grid"``.
        gap: Pixels between neighbouring images.
        columns: Grid column count (grid only).
        align: Placement of smaller images within the available space.

    Returns:
        The computed :class:`Layout`.

    Raises:
        ValueError: On an empty *sizes*, a negative gap, a non-positive
            column count or an unknown direction.

    Examples:
        >>> compute_layout([(10, 20), (30, 10)], "horizontal", gap=5).width
        45
    """
    if not sizes:
        raise ValueError("At least one image is required")
    if gap < 0:
        raise ValueError(f"gap must be non-negative, got {gap}")

    max_width = max(w for w, _ in sizes)
    max_height = max(h for _, h in sizes)
    offsets: list[tuple[int, int]] = []

    if direction == "horizontal":
        x = 0
        for w, h in sizes:
            offsets.append((x, _align_offset(max_height, h, align)))
            x += w + gap
        width = sum(w for w, _ in sizes) + gap * (len(sizes) - 1)
        return Layout(width=width, height=max_height, offsets=offsets)

    if direction == "vertical":
        y = 0
        for w, h in sizes:
            offsets.append((_align_offset(max_width, w, align), y))
            y += h + gap
        height = sum(h for _, h in sizes) + gap * (len(sizes) - 1)
        return Layout(width=max_width, height=height, offsets=offsets)

    if direction == "grid":
        cols = columns or math.ceil(math.sqrt(len(sizes)))
        if cols < 1:
            raise ValueError(f"columns must be at least 1, got {cols}")
        rows = math.ceil(len(sizes) / cols)

        for i, (w, h) in enumerate(sizes):
            col, row = i % cols, i // cols
            x_base = col * (max_width + gap)
            y_base = row * (max_height + gap)
            offsets.append(
                (
                    x_base + _align_offset(max_width, w, align),
                    y_base + _align_offset(max_height, h, align),
                )
            )
        return Layout(
            width=max_width * cols + gap * (cols - 1),
            height=max_height * rows + gap * (rows - 1),
            offsets=offsets,
        )

    raise ValueError(f"Unknown direction: {direction}")
