"""End-to-end asset pipeline through :class:`ImageTools`.

A scripted backend stands in for Gemini; everything else (input resolution,
output planning, file writes, validation and the raster tools) runs for real.
"""

from __future__ import annotations

import base64
from pathlib import Path

import pytest
from PIL import Image

from nanobanana.core.generator import ImageGenerator
from nanobanana.server.tools import ImageTools


def _tools(backend) -> ImageTools:
    generator = ImageGenerator(
        backend, default_model="test-model", min_count=1, max_count=10, transparency_tolerance=10
    )
    return ImageTools(generator)


class TestGenerateThenPostProcess:
    """Generate a batch, then validate, combine and clean it up locally."""

    def test_batch_to_sprite_sheet(self, fake_backend_factory, response_factory, image_encoder, temp_dir):
        payloads = [
            image_encoder(16, 16, color=(255, 255, 255)),
            image_encoder(16, 16, color=(0, 128, 0)),
            image_encoder(16, 16, color=(0, 0, 200)),
        ]
        backend = fake_backend_factory([response_factory(p) for p in payloads])
        tools = _tools(backend)

        generated = tools.generate_image(
            {"prompt": "three slimes", "outputPath": str(temp_dir / "slimes" / "slime.png"), "count": 3}
        )
        assert generated["success"] is True
        paths = [image["path"] for image in generated["images"]]
        assert [Path(p).name for p in paths] == ["slime-1.png", "slime-2.png", "slime-3.png"]

        for path in paths:
            assert tools.validate_image({"path": path})["valid"] is True

        sheet = temp_dir / "sheet.png"
        combined = tools.combine_images(
            {"images": paths, "outputPath": str(sheet), "gap": 2, "backgroundColor": "white"}
        )
        assert combined["dimensions"] == {"width": 52, "height": 16}

        cleaned = tools.make_transparent({"inputPath": str(sheet), "overwrite": True})
        assert cleaned["success"] is True
        report = tools.inspect_transparency({"path": str(sheet)})
        assert report["hasAlphaChannel"] is True
        assert report["transparentPixelPercentage"] > 0

    def test_generate_with_transparency(self, fake_backend_factory, response_factory, image_encoder, temp_dir):
        backend = fake_backend_factory([response_factory(image_encoder(20, 20, color=(255, 255, 255)))])
        tools = _tools(backend)
        out = temp_dir / "icon.png"

        result = tools.generate_image({"prompt": "icon", "outputPath": str(out), "makeTransparent": True})

        assert result["success"] is True
        with Image.open(out) as img:
            assert img.mode == "RGBA"
            assert img.getpixel((0, 0))[3] == 0


class TestEditAndCompose:
    """Input images reach the backend in order, whatever form they take."""

    def test_edit_from_file(self, fake_backend_factory, response_factory, png_bytes, png_file, temp_dir):
        backend = fake_backend_factory([response_factory(png_bytes)])
        tools = _tools(backend)

        result = tools.generate_image(
            {
                "prompt": "add a hat",
                "images": [{"data": str(png_file)}],
                "outputPath": str(temp_dir / "hat.png"),
            }
        )

        assert result["success"] is True
        model, parts = backend.calls[0]
        assert model == "test-model"
        assert parts[0].text == "add a hat"
        assert parts[1].data == png_bytes
        assert parts[1].mime_type == "image/png"

    def test_compose_mixed_inputs(
        self, fake_backend_factory, response_factory, image_encoder, png_file, temp_dir
    ):
        jpeg = image_encoder(image_format="JPEG")
        data_url = "data:image/jpeg;base64," + base64.b64encode(jpeg).decode()
        backend = fake_backend_factory([response_factory(image_encoder())])
        tools = _tools(backend)

        result = tools.generate_image(
            {
                "prompt": "merge",
                "images": [{"data": data_url}, {"data": str(png_file)}],
                "outputPath": str(temp_dir / "merged.png"),
                "options": {"model": "gemini-other"},
            }
        )

        assert result["success"] is True
        model, parts = backend.calls[0]
        assert model == "gemini-other"
        assert [part.mime_type for part in parts[1:]] == ["image/jpeg", "image/png"]

    def test_missing_input_image(self, fake_backend_factory, response_factory, png_bytes, temp_dir):
        backend = fake_backend_factory([response_factory(png_bytes)])
        tools = _tools(backend)

        result = tools.generate_image(
            {
                "prompt": "edit",
                "images": [{"data": str(temp_dir / "missing.png")}],
                "outputPath": str(temp_dir / "out.png"),
            }
        )

        assert result["success"] is False
        assert result["error"]["code"] == "FILE_NOT_FOUND"
        assert backend.calls == []
        assert not (temp_dir / "out.png").exists()


class TestPartialBatch:
    @pytest.mark.integration
    def test_later_failure_keeps_earlier_images(
        self, fake_backend_factory, response_factory, png_bytes, temp_dir
    ):
        backend = fake_backend_factory(
            [response_factory(png_bytes), RuntimeError("quota exceeded for today")]
        )
        tools = _tools(backend)

        result = tools.generate_image(
            {"prompt": "p", "outputPath": str(temp_dir / "a.png"), "count": 3}
        )

        assert result["success"] is True
        assert len(result["images"]) == 1
        assert [f["index"] for f in result["failures"]] == [1, 2]
        assert result["failures"][0]["code"] == "QUOTA_EXCEEDED"
