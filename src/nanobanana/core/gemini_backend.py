"""Gemini client lifecycle for the Nano Banana MCP server.

This module provides :class:`GeminiBackend`, the single point of contact with
the remote image model.  It owns one ``google.genai.Client`` and converts the
package's :class:`~nanobanana.core.content.ContentPart` values into SDK parts.

Key Responsibilities
--------------------
- **Lazy client creation** — the SDK client is only built on the first call
  to :meth:`GeminiBackend.generate_content`, so constructing a backend never
  touches the network.
- **Part conversion** — text parts become ``types.Part.from_text`` and inline
  images become ``types.Part.from_bytes``.
- **No retries** — failures from the SDK propagate unchanged; the
  orchestrator decides what a failure means for the batch.

The orchestrator only needs an object with a ``generate_content(model,
parts)`` method, so tests substitute small fakes for this class.

Usage
-----
::

    from nanobanana.core.config import config
    from nanobanana.core.gemini_backend import GeminiBackend

    backend = GeminiBackend(config.gemini_api_key)
    response = backend.generate_content(
        "gemini-2.5-flash-image-preview",
        [ContentPart(text="a goblin workshop")],
    )
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

from nanobanana.core.content import ContentPart

if TYPE_CHECKING:
    from google import genai

logger = logging.getLogger(__name__)


class GenerationBackend(Protocol):
    """Anything that can run one generation call against an image model."""

    def generate_content(self, model: str, parts: Sequence[ContentPart]) -> Any:
        """Return a response exposing ``candidates[*].content.parts[*]``."""
        ...


class GeminiBackend:
    """Wraps the Google Gen AI SDK client.

    Attributes:
        _api_key (str):
            Bearer key passed to ``genai.Client``.
        _client:
            The SDK client, or ``None`` until first use.
    """

    def __init__(self, api_key: str) -> None:
        """Initialise the backend without creating the SDK client.

        Args:
            api_key: Gemini API key.

        Raises:
            ValueError: If *api_key* is empty.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")
        self._api_key = api_key
        self._client: genai.Client | None = None

    # -- Public interface ---------------------------------------------------

    def generate_content(self, model: str, parts: Sequence[ContentPart]) -> Any:
        """Send one ``generate_content`` request.

        Args:
            model: Gemini model identifier.
            parts: Ordered text and inline image parts.

        Returns:
            The SDK ``GenerateContentResponse``.

        Raises:
            google.genai.errors.APIError: For any error reported by the API.
        """
        client = self._get_client()
        contents = [self._to_sdk_part(part) for part in parts]

        logger.info("Calling model '%s' with %d part(s).", model, len(contents))
        return client.models.generate_content(model=model, contents=contents)

    @property
    def is_connected(self) -> bool:
        """Whether the SDK client has been created."""
        return self._client is not None

    # -- Internals ----------------------------------------------------------

    def _get_client(self) -> genai.Client:
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._api_key)
            logger.info("Gemini client created (API key configured).")
        return self._client

    @staticmethod
    def _to_sdk_part(part: ContentPart) -> Any:
        from google.genai import types

        if part.is_image:
            return types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
        return types.Part.from_text(text=part.text or "")
