"""Tests for nanobanana.core.validation — validate_image."""

from __future__ import annotations

from pathlib import Path

from nanobanana.core.validation import validate_image


class TestValidateImage:
    def test_valid_png(self, png_file: Path):
        report = validate_image(str(png_file))
        assert report.exists is True
        assert report.valid is True
        assert (report.width, report.height) == (64, 64)
        assert report.format == "png"
        assert report.file_size_bytes == png_file.stat().st_size
        assert report.error is None

    def test_jpeg_format_is_lowercase(self, make_image_file):
        report = validate_image(str(make_image_file("photo.jpg")))
        assert report.format == "jpeg"

    def test_missing_file(self, temp_dir: Path):
        report = validate_image(str(temp_dir / "nope.png"))
        assert report.exists is False
        assert report.valid is False
        assert report.error == "File does not exist"

    def test_empty_file(self, temp_dir: Path):
        path = temp_dir / "empty.png"
        path.write_bytes(b"")
        report = validate_image(str(path))
        assert report.exists is True
        assert report.valid is False
        assert report.error.startswith("Invalid image file: ")

    def test_text_file(self, temp_dir: Path):
        path = temp_dir / "notes.png"
        path.write_text("hello")
        report = validate_image(str(path))
        assert report.valid is False
        assert report.error.startswith("Invalid image file: ")

    def test_too_small(self, make_image_file):
        report = validate_image(str(make_image_file("tiny.png", width=5, height=5)))
        assert report.exists is True
        assert report.valid is False
        assert (report.width, report.height) == (5, 5)
        assert report.error == "Image is too small (less than 10x10 pixels)"

    def test_exact_minimum_is_valid(self, make_image_file):
        assert validate_image(str(make_image_file("edge.png", width=10, height=10))).valid is True

    def test_custom_minimum(self, png_file: Path):
        report = validate_image(str(png_file), min_dimension=128)
        assert report.valid is False
        assert report.error == "Image is too small (less than 128x128 pixels)"


class TestValidationReportDict:
    def test_valid_report(self, png_file: Path):
        data = validate_image(str(png_file)).to_dict()
        assert data == {
            "exists": True,
            "valid": True,
            "dimensions": {"width": 64, "height": 64},
            "format": "png",
            "fileSizeBytes": png_file.stat().st_size,
        }

    def test_missing_report(self, temp_dir: Path):
        data = validate_image(str(temp_dir / "x.png")).to_dict()
        assert data == {"exists": False, "valid": False, "error": "File does not exist"}
