"""Output path planning and collision-safe writes.

A request for ``count`` images writes to a deterministic set of paths:

- ``count == 1`` writes to the base path exactly as given.
- ``count > 1`` writes ``<dir>/<stem>-1<ext>`` ... ``<dir>/<stem>-N<ext>``.

Existing files are never overwritten.  The whole plan is checked before any
remote call (:func:`check_plan_available`), and each path is checked again
immediately before it is written (:func:`write_exclusive`), which also opens
the file in exclusive-create mode.  There is no lock: a file created by
another process between the second check and the open is caught by the
exclusive open instead.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

from nanobanana.core.errors import OutputCollisionError, OutputWriteError

logger = logging.getLogger(__name__)


def plan_output_paths(base_path: str, count: int) -> list[str]:
    """Compute the output path for every unit of a batch.

    Args:
        base_path: Caller-supplied output path, e.g. ``"./assets/boss.png"``.
        count: Number of images in the batch (at least 1).

    Returns:
        List of ``count`` path strings.

    Raises:
        ValueError: If *count* is less than 1.

    Examples:
        >>> plan_output_paths("out/boss.png", 1)
        ['out/boss.png']
        >>> plan_output_paths("out/boss.png", 3)
        ['out/boss-1.png', 'out/boss-2.png', 'out/boss-3.png']
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    if count == 1:
        return [base_path]

    directory = os.path.dirname(base_path)
    stem, ext = os.path.splitext(os.path.basename(base_path))
    return [os.path.join(directory, f"{stem}-{i + 1}{ext}") for i in range(count)]


def check_plan_available(plan: Sequence[str]) -> None:
    """Fail if any planned path already exists.

    Raises:
        OutputCollisionError: Naming the first existing path.
    """
    for path in plan:
        if Path(path).exists():
            raise OutputCollisionError(path)


def write_exclusive(path: str, data: bytes) -> None:
    """Write *data* to *path*, refusing to replace an existing file.

    Parent directories are created as needed.

    Raises:
        OutputCollisionError: The path exists (checked, then enforced by the
            exclusive open).
        OutputWriteError: Any other filesystem failure.
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(f"Unable to create directory for {path}: {e}") from e

    if target.exists():
        raise OutputCollisionError(path)

    try:
        handle = open(target, "xb")
    except FileExistsError as e:
        raise OutputCollisionError(path) from e
    except OSError as e:
        raise OutputWriteError(f"Unable to write file to {path}: {e}") from e

    try:
        with handle:
            handle.write(data)
    except OSError as e:
        # Created by the exclusive open above, so safe to remove.
        target.unlink(missing_ok=True)
        raise OutputWriteError(f"Unable to write file to {path}: {e}") from e

    logger.info("Wrote %d bytes to %s", len(data), path)
