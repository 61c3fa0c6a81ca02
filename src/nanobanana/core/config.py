"""Configuration management for the Nano Banana MCP server.

This module provides centralized configuration management using Pydantic Settings.
Configuration is loaded from environment variables with the NANOBANANA_ prefix,
allowing easy customization without code changes.  The Gemini API key is the
one exception: it is read from ``GEMINI_API_KEY`` (the name every Gemini tool
uses) and also accepted as ``NANOBANANA_API_KEY``.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (NANOBANANA_* prefix, plus GEMINI_API_KEY)
2. .env file in the working directory
3. Default values defined in NanoBananaConfig

Example .env file:
    GEMINI_API_KEY=your-key-here
    NANOBANANA_DEFAULT_MODEL=gemini-2.5-flash-image-preview
    NANOBANANA_LOG_LEVEL=DEBUG

Global Configuration Instance
------------------------------
A global ``config`` instance is created automatically at module import time.
The API key is optional at construction so that importing the package never
fails; :func:`nanobanana.server.main.main` refuses to start without it.

Usage Example
-------------
    from nanobanana.core.config import config

    print(config.default_model)
    print(config.max_count)

Generation Limits
-----------------
- ``min_count`` / ``max_count`` bound the ``count`` argument of
  ``generate_image`` (1-10).
- ``min_image_dimension`` is the smallest width/height ``validate_image``
  accepts (10 pixels).

See Also
--------
- NanoBananaConfig: Full configuration class documentation
- nanobanana.core.generator.ImageGenerator: consumes the generation settings
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NanoBananaConfig(BaseSettings):
    """Main configuration for the Nano Banana MCP server.

    Values are loaded from environment variables with the NANOBANANA_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Credentials:
        gemini_api_key : str | None
            Bearer key for the Gemini API (GEMINI_API_KEY)

    Generation Settings:
        default_model : str
            Gemini model used when a request does not override it
        min_count : int
            Smallest accepted batch size
        max_count : int
            Largest accepted batch size

    Validation Settings:
        min_image_dimension : int
            Minimum width and height for ``validate_image``
        transparency_tolerance : int
            Default colour tolerance (percent) for ``make_transparent``

    Server Settings:
        server_name : str
            Name advertised to MCP clients
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            Logging level (logs always go to stderr)

    Notes
    -----
    - Configuration is immutable after initialization
    - To modify config, set environment variables and restart the server

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = NanoBananaConfig(
        ...     gemini_api_key="test-key",
        ...     default_model="gemini-2.5-flash-image",
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NANOBANANA_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Credentials
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "NANOBANANA_API_KEY", "gemini_api_key"),
        description="Gemini API key (required to start the server)",
    )

    # Generation settings
    default_model: str = Field(
        default="gemini-2.5-flash-image-preview",
        description="Gemini model used when the request does not name one",
    )
    min_count: int = Field(default=1, ge=1, description="Smallest accepted batch size")
    max_count: int = Field(default=10, ge=1, le=100, description="Largest accepted batch size")

    # Validation settings
    min_image_dimension: int = Field(
        default=10,
        ge=1,
        description="Minimum width/height accepted by validate_image",
    )
    transparency_tolerance: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Default colour tolerance percentage for make_transparent",
    )

    # Server settings
    server_name: str = Field(
        default="nano-banana-mcp",
        description="Server name advertised to MCP clients",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for stderr output",
    )

    @property
    def has_api_key(self) -> bool:
        """Whether a non-blank API key is configured."""
        return bool(self.gemini_api_key and self.gemini_api_key.strip())


# Global configuration instance
# Loads values from environment variables (NANOBANANA_* prefix, GEMINI_API_KEY)
# and the .env file.
config = NanoBananaConfig()
