"""Core functionality for image generation.

This module provides the generation pipeline behind the ``generate_image``
and ``validate_image`` tools:

- **ImageGenerator**: Runs one request from output planning to written files
- **GeminiBackend**: Lazy wrapper around the Google Gen AI client
- **NanoBananaConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)
- **validate_image**: Post-hoc check of an image file on disk

Architecture Overview
---------------------
The core module follows a layered architecture:

1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - ``GEMINI_API_KEY`` plus ``NANOBANANA_``-prefixed settings in .env files

2. **Input Layer** (image_format.py, input_resolver.py, content.py):
   - Magic-byte format detection
   - File path / data URL / bare base64 resolution
   - Ordered text + image content parts

3. **Output Layer** (output_paths.py):
   - Deterministic output plans for batches
   - Exclusive-create writes that never overwrite

4. **Orchestration Layer** (generator.py, gemini_backend.py):
   - Sequential per-unit loop with partial-failure accumulation
   - Remote calls through the backend

5. **Reporting** (errors.py):
   - Closed error-code taxonomy and exception classification

Usage Example
-------------
::

    from nanobanana.core import GeminiBackend, GenerationRequest, ImageGenerator, config

    generator = ImageGenerator(GeminiBackend(config.gemini_api_key))
    result = generator.generate(
        GenerationRequest(prompt="isometric tavern", output_path="./tavern.png")
    )

See Also
--------
- ImageGenerator: Orchestration and failure semantics
- ErrorCode: Error codes returned to clients
- NanoBananaConfig: Configuration options and environment variables
"""

from nanobanana.core.config import NanoBananaConfig, config
from nanobanana.core.errors import ErrorCode, ErrorInfo, NanoBananaError, classify_error
from nanobanana.core.gemini_backend import GeminiBackend
from nanobanana.core.generator import (
    GeneratedImage,
    GenerationRequest,
    GenerationResult,
    ImageGenerator,
)
from nanobanana.core.input_resolver import ImageReference
from nanobanana.core.validation import ValidationReport, validate_image

__all__ = [
    "ErrorCode",
    "ErrorInfo",
    "GeminiBackend",
    "GeneratedImage",
    "GenerationRequest",
    "GenerationResult",
    "ImageGenerator",
    "ImageReference",
    "NanoBananaConfig",
    "NanoBananaError",
    "ValidationReport",
    "classify_error",
    "config",
    "validate_image",
]
