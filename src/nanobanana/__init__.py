"""Nano Banana MCP - Gemini image generation and local image tools over MCP."""

__version__ = "1.0.0"

from nanobanana.core.config import NanoBananaConfig, config
from nanobanana.core.generator import GenerationRequest, ImageGenerator

__all__ = [
    "GenerationRequest",
    "ImageGenerator",
    "NanoBananaConfig",
    "config",
]
