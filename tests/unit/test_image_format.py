"""Tests for nanobanana.core.image_format — magic-byte detection."""

from __future__ import annotations

import pytest

from nanobanana.core.image_format import ImageFormat, classify_image_bytes, is_supported_image


class TestRecognisedFormats:
    """Buffers produced by real encoders are recognised."""

    def test_png(self, image_encoder):
        assert classify_image_bytes(image_encoder(image_format="PNG")) is ImageFormat.PNG

    def test_jpeg(self, image_encoder):
        assert classify_image_bytes(image_encoder(image_format="JPEG")) is ImageFormat.JPEG

    def test_gif(self, image_encoder):
        assert classify_image_bytes(image_encoder(image_format="GIF")) is ImageFormat.GIF

    def test_bmp(self, image_encoder):
        assert classify_image_bytes(image_encoder(image_format="BMP")) is ImageFormat.BMP

    def test_webp_needs_both_markers(self):
        """RIFF at offset 0 and WEBP at offset 8 identify WebP."""
        assert classify_image_bytes(b"RIFF\x00\x00\x00\x00WEBPVP8 ") is ImageFormat.WEBP
        assert classify_image_bytes(b"RIFF\x00\x00\x00\x00WAVEfmt ") is None

    def test_gif87a_and_gif89a(self):
        assert classify_image_bytes(b"GIF87a") is ImageFormat.GIF
        assert classify_image_bytes(b"GIF89a") is ImageFormat.GIF


class TestRejectedBuffers:
    """Empty, short, truncated and foreign buffers are rejected."""

    @pytest.mark.parametrize("data", [b"", b"\x89", b"\x89PN", b"BM"])
    def test_shorter_than_four_bytes(self, data: bytes):
        assert classify_image_bytes(data) is None

    def test_truncated_png_header(self, png_bytes: bytes):
        """A PNG cut off before its IHDR chunk completes is not a PNG."""
        assert classify_image_bytes(png_bytes[:20]) is None

    def test_plain_text(self):
        assert not is_supported_image(b"this is definitely not an image")

    def test_arbitrary_bytes(self):
        assert not is_supported_image(bytes(range(16)))


class TestImageFormat:
    def test_mime_type(self):
        assert ImageFormat.JPEG.mime_type == "image/jpeg"
        assert ImageFormat.PNG.mime_type == "image/png"
