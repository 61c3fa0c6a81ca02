"""Shared pytest fixtures for Nano Banana tests."""

from __future__ import annotations

import io
import shutil
import tempfile
from collections.abc import Callable, Generator, Sequence
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from PIL import Image

from nanobanana.core.config import NanoBananaConfig
from nanobanana.core.content import ContentPart


def encode_image(
    width: int = 64,
    height: int = 64,
    color: tuple[int, ...] = (255, 0, 0),
    image_format: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Encode a solid-colour image with Pillow."""
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=image_format)
    return buffer.getvalue()


def make_response(*payloads: Any) -> SimpleNamespace:
    """Build an object shaped like a ``GenerateContentResponse``.

    Each payload becomes one part: ``bytes``/``str`` become inline image
    data, anything else a text part.
    """
    parts = []
    for payload in payloads:
        if isinstance(payload, (bytes, str)):
            parts.append(SimpleNamespace(inline_data=SimpleNamespace(data=payload), text=None))
        else:
            parts.append(SimpleNamespace(inline_data=None, text="no image"))
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts))
    return SimpleNamespace(candidates=[candidate])


class FakeBackend:
    """Backend returning scripted outcomes, one per call.

    Each outcome is a response object, or an exception instance to raise.
    The last outcome repeats once the script runs out.
    """

    def __init__(self, outcomes: Sequence[Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, list[ContentPart]]] = []

    def generate_content(self, model: str, parts: Sequence[ContentPart]) -> Any:
        self.calls.append((model, list(parts)))
        index = min(len(self.calls) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config() -> NanoBananaConfig:
    """Create a test configuration that ignores the environment's .env file."""
    return NanoBananaConfig(
        gemini_api_key="test-key",
        default_model="test-model",
        _env_file=None,
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A valid 64x64 red PNG."""
    return encode_image()


@pytest.fixture
def png_file(temp_dir: Path, png_bytes: bytes) -> Path:
    """A valid 64x64 PNG written to disk."""
    path = temp_dir / "input.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
def make_image_file(temp_dir: Path) -> Callable[..., Path]:
    """Factory writing a solid-colour image file under ``temp_dir``."""

    def _make(name: str, width: int = 32, height: int = 32, color=(255, 0, 0), mode="RGB") -> Path:
        path = temp_dir / name
        image_format = Image.registered_extensions()[path.suffix.lower()]
        path.write_bytes(encode_image(width, height, color, image_format, mode))
        return path

    return _make


@pytest.fixture
def fake_backend_factory() -> Callable[..., FakeBackend]:
    """Factory for :class:`FakeBackend` instances."""
    return FakeBackend


@pytest.fixture
def image_encoder() -> Callable[..., bytes]:
    """Expose :func:`encode_image` to tests."""
    return encode_image


@pytest.fixture
def response_factory() -> Callable[..., SimpleNamespace]:
    """Expose :func:`make_response` to tests."""
    return make_response
