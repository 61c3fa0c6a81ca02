"""Nano Banana MCP Server — FastMCP application.

This module is the single entry point for the server.  It wires the
configuration, the Gemini backend, the generation orchestrator and the tool
implementations into a :class:`~mcp.server.fastmcp.FastMCP` instance, and
defines the ``main()`` CLI function that serves it over stdio.

Architecture
------------
- **Transport**: MCP JSON-RPC over stdin/stdout.  Stdout belongs to the
  protocol, so all logging goes to stderr.
- **Tools**: thin async wrappers that forward their arguments to
  :class:`~nanobanana.server.tools.ImageTools` in a worker thread
  (``asyncio.to_thread``), so a slow generation does not block other calls.
- **State**: none beyond the filesystem; every call is independent.

Tools
-----
======================  ==============================================
Name                    Purpose
======================  ==============================================
``generate_image``      Generate / edit / compose images with Gemini
``validate_image``      Check that a file is a usable image
``make_transparent``    Remove a flat background colour
``inspect_transparency``  Report alpha-channel statistics
``combine_images``      Lay images out horizontally, vertically, in a grid
``transform_image``     Crop, resize, rotate, flip, flop
``adjust_image``        Blur, sharpen, colour adjustments
``composite_images``    Layer overlays onto a base image
``batch_process``       Resize / convert a directory of images
======================  ==============================================

Usage
-----
CLI (installed entry point)::

    GEMINI_API_KEY=... nanobanana-mcp

Direct invocation::

    python -m nanobanana.server.main
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from nanobanana import __version__
from nanobanana.core.config import NanoBananaConfig, config
from nanobanana.core.gemini_backend import GeminiBackend
from nanobanana.core.generator import ImageGenerator
from nanobanana.server.tools import ImageTools

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

INSTRUCTIONS = """Image generation and editing for game and app assets.

Use generate_image to create images from a text prompt, edit one input image,
or compose several input images. Images are written to outputPath; with
count > 1 each file gets a -1, -2, ... suffix. Existing files are never
overwritten. Use validate_image to check a written file and the raster tools
(make_transparent, combine_images, transform_image, adjust_image,
composite_images, batch_process) to post-process assets locally.
"""


def configure_logging(level: str = "INFO") -> None:
    """Send all log records to stderr at *level*."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def _arguments(**kwargs: Any) -> dict[str, Any]:
    """Drop unset arguments so model defaults apply."""
    return {key: value for key, value in kwargs.items() if value is not None}


def create_server(tools: ImageTools, settings: NanoBananaConfig = config) -> FastMCP:
    """Build the FastMCP application and register every tool.

    Args:
        tools: Tool implementations.
        settings: Configuration (server name).

    Returns:
        A FastMCP instance ready for ``run()``.
    """
    mcp = FastMCP(settings.server_name, instructions=INSTRUCTIONS)

    @mcp.tool(name="generate_image")
    async def generate_image(
        outputPath: str = Field(  # noqa: N803
            description='Where to save (e.g. "./assets/enemies/boss.png")',
        ),
        prompt: str | None = Field(default=None, description="Text prompt for generation"),
        images: list[dict[str, Any]] | None = Field(
            default=None,
            description="Optional input images: [{data: base64, data URL or file path, mimeType?}]",
        ),
        count: int | None = Field(default=None, description="Generate multiple (1-10, default 1)"),
        options: dict[str, Any] | None = Field(
            default=None,
            description="Pass-through model options, e.g. {model: ...}",
        ),
        makeTransparent: bool | None = Field(  # noqa: N803
            default=None,
            description="Remove the background after generation",
        ),
        transparencyColor: str | None = Field(  # noqa: N803
            default=None,
            description="Background colour to remove (default: white)",
        ),
    ) -> dict[str, Any]:
        """Generate images with Gemini from a prompt and/or input images.

        Text only generates a new image, one input image edits it, several
        input images are composed.  Returns the written paths and sizes.
        """
        arguments = _arguments(
            outputPath=outputPath,
            prompt=prompt,
            images=images,
            count=count,
            options=options,
            makeTransparent=makeTransparent,
            transparencyColor=transparencyColor,
        )
        return await asyncio.to_thread(tools.generate_image, arguments)

    @mcp.tool(name="validate_image")
    async def validate_image(
        path: str = Field(description="File path to validate"),
    ) -> dict[str, Any]:
        """Check that a file exists, decodes as an image and is at least 10x10."""
        return await asyncio.to_thread(tools.validate_image, {"path": path})

    @mcp.tool(name="make_transparent")
    async def make_transparent(
        inputPath: str = Field(description="Image file or directory path"),  # noqa: N803
        outputPath: str | None = Field(  # noqa: N803
            default=None,
            description="Output path (defaults to <name>_transparent<ext>)",
        ),
        backgroundColor: str | None = Field(  # noqa: N803
            default=None,
            description="Colour to make transparent (white/black/hex, default white)",
        ),
        tolerance: float | None = Field(
            default=None,
            description="Colour matching tolerance % (0-100, default 10)",
        ),
        overwrite: bool | None = Field(default=None, description="Overwrite the original file"),
    ) -> dict[str, Any]:
        """Make a background colour transparent in one image or a directory of images."""
        arguments = _arguments(
            inputPath=inputPath,
            outputPath=outputPath,
            backgroundColor=backgroundColor,
            tolerance=tolerance,
            overwrite=overwrite,
        )
        return await asyncio.to_thread(tools.make_transparent, arguments)

    @mcp.tool(name="inspect_transparency")
    async def inspect_transparency(
        path: str = Field(description="Image file to inspect"),
    ) -> dict[str, Any]:
        """Report alpha channel, transparent pixel percentage and dominant colour."""
        return await asyncio.to_thread(tools.inspect_transparency, {"path": path})

    @mcp.tool(name="combine_images")
    async def combine_images(
        images: list[str] = Field(description="Image file paths to combine (at least 2)"),
        outputPath: str = Field(description="Output file path"),  # noqa: N803
        direction: Literal["horizontal", "vertical", "grid"] | None = Field(
            default=None,
            description="How to combine images (default horizontal)",
        ),
        gap: int | None = Field(default=None, description="Gap between images in pixels"),
        backgroundColor: str | None = Field(  # noqa: N803
            default=None,
            description="Background colour (transparent/white/black/hex)",
        ),
        columns: int | None = Field(default=None, description="Number of columns for grid layout"),
        align: Literal["start", "center", "end"] | None = Field(
            default=None,
            description="Alignment for images of different sizes (default center)",
        ),
    ) -> dict[str, Any]:
        """Combine several images into one, side by side, stacked or in a grid."""
        arguments = _arguments(
            images=images,
            outputPath=outputPath,
            direction=direction,
            gap=gap,
            backgroundColor=backgroundColor,
            columns=columns,
            align=align,
        )
        return await asyncio.to_thread(tools.combine_images, arguments)

    @mcp.tool(name="transform_image")
    async def transform_image(
        inputPath: str = Field(description="Input image file path"),  # noqa: N803
        outputPath: str = Field(description="Output file path"),  # noqa: N803
        operations: dict[str, Any] = Field(
            description="{crop?: {left, top, width, height}, resize?: {width?, height?, fit?}, "
            "rotate?: degrees, flip?: bool, flop?: bool}",
        ),
    ) -> dict[str, Any]:
        """Crop, resize, rotate, flip (vertical) and flop (horizontal), in that order."""
        arguments = {"inputPath": inputPath, "outputPath": outputPath, "operations": operations}
        return await asyncio.to_thread(tools.transform_image, arguments)

    @mcp.tool(name="adjust_image")
    async def adjust_image(
        inputPath: str = Field(description="Input image file path"),  # noqa: N803
        outputPath: str = Field(description="Output file path"),  # noqa: N803
        adjustments: dict[str, Any] = Field(
            description="{blur?, sharpen?: {sigma, ...}, grayscale?, tint?: hex, "
            "brightness? (0-2), saturation? (0-2), hue? (degrees), normalize?}",
        ),
    ) -> dict[str, Any]:
        """Apply blur, sharpening and colour adjustments to an image."""
        arguments = {"inputPath": inputPath, "outputPath": outputPath, "adjustments": adjustments}
        return await asyncio.to_thread(tools.adjust_image, arguments)

    @mcp.tool(name="composite_images")
    async def composite_images(
        baseImage: str = Field(description="Base image file path"),  # noqa: N803
        overlays: list[dict[str, Any]] = Field(
            description="[{input, gravity?, left?, top?, blend?}] layered in order",
        ),
        outputPath: str = Field(description="Output file path"),  # noqa: N803
    ) -> dict[str, Any]:
        """Layer overlay images onto a base image."""
        arguments = {"baseImage": baseImage, "overlays": overlays, "outputPath": outputPath}
        return await asyncio.to_thread(tools.composite_images, arguments)

    @mcp.tool(name="batch_process")
    async def batch_process(
        inputPath: str = Field(description="Input directory or file"),  # noqa: N803
        outputDir: str = Field(description="Output directory"),  # noqa: N803
        operations: dict[str, Any] = Field(
            description="{resize?: {width?, height?}, format?: png|jpg|webp, quality? (1-100), "
            "prefix?, suffix?}",
        ),
    ) -> dict[str, Any]:
        """Resize and/or convert every image in a directory."""
        arguments = {"inputPath": inputPath, "outputDir": outputDir, "operations": operations}
        return await asyncio.to_thread(tools.batch_process, arguments)

    return mcp


def build_tools(settings: NanoBananaConfig = config) -> ImageTools:
    """Create the tool implementations backed by the real Gemini client."""
    generator = ImageGenerator(
        GeminiBackend(settings.gemini_api_key or ""),
        default_model=settings.default_model,
        min_count=settings.min_count,
        max_count=settings.max_count,
        transparency_tolerance=settings.transparency_tolerance,
    )
    return ImageTools(generator, min_image_dimension=settings.min_image_dimension)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Serve the MCP tools over stdio.

    Exits with status 1, before the transport starts, when no API key is
    configured (``GEMINI_API_KEY`` or ``NANOBANANA_API_KEY``).

    This function is registered as the ``nanobanana-mcp`` console script in
    ``pyproject.toml``.
    """
    configure_logging(config.log_level)

    if not config.has_api_key:
        logger.error("GEMINI_API_KEY environment variable is required")
        sys.exit(1)

    server = create_server(build_tools(config), config)
    logger.info("Starting %s %s on stdio (model %s)", config.server_name, __version__, config.default_model)
    server.run()


if __name__ == "__main__":
    main()
