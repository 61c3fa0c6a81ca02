"""Tests for nanobanana.core.gemini_backend — SDK client lifecycle.

The ``google.genai`` SDK is replaced in ``sys.modules`` so no network calls
or credentials are needed.
"""

from __future__ import annotations

import logging
import sys
from unittest.mock import MagicMock

import pytest

from nanobanana.core.content import ContentPart
from nanobanana.core.gemini_backend import GeminiBackend


@pytest.fixture
def mock_genai(monkeypatch):
    """Install a fake ``google.genai`` package and return it."""
    mock_google = MagicMock()
    genai = MagicMock()
    types = MagicMock()
    mock_google.genai = genai
    genai.types = types

    monkeypatch.setitem(sys.modules, "google", mock_google)
    monkeypatch.setitem(sys.modules, "google.genai", genai)
    monkeypatch.setitem(sys.modules, "google.genai.types", types)
    return genai


class TestGeminiBackendInit:
    def test_empty_key_rejected(self):
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiBackend("")

    def test_client_not_created_eagerly(self, mock_genai):
        backend = GeminiBackend("secret-key")
        assert backend.is_connected is False
        mock_genai.Client.assert_not_called()


class TestGenerateContent:
    def test_client_created_once(self, mock_genai):
        backend = GeminiBackend("secret-key")

        backend.generate_content("model-a", [ContentPart(text="one")])
        backend.generate_content("model-a", [ContentPart(text="two")])

        mock_genai.Client.assert_called_once_with(api_key="secret-key")
        assert backend.is_connected is True

    def test_key_never_logged(self, mock_genai, caplog):
        caplog.set_level(logging.DEBUG, logger="nanobanana")
        GeminiBackend("AIzaSyTopSecret").generate_content("m", [ContentPart(text="x")])
        assert "Gemini client created" in caplog.text
        assert "AIza" not in caplog.text

    def test_parts_converted_in_order(self, mock_genai):
        types = mock_genai.types
        types.Part.from_text.return_value = "TEXT"
        types.Part.from_bytes.return_value = "IMAGE"
        backend = GeminiBackend("secret-key")

        backend.generate_content(
            "model-b",
            [ContentPart(text="merge these"), ContentPart(data=b"\x89PNG", mime_type="image/png")],
        )

        types.Part.from_text.assert_called_once_with(text="merge these")
        types.Part.from_bytes.assert_called_once_with(data=b"\x89PNG", mime_type="image/png")
        client = mock_genai.Client.return_value
        client.models.generate_content.assert_called_once_with(
            model="model-b", contents=["TEXT", "IMAGE"]
        )

    def test_returns_sdk_response(self, mock_genai):
        client = mock_genai.Client.return_value
        client.models.generate_content.return_value = "response"
        backend = GeminiBackend("secret-key")
        assert backend.generate_content("m", [ContentPart(text="x")]) == "response"

    def test_sdk_errors_propagate(self, mock_genai):
        client = mock_genai.Client.return_value
        client.models.generate_content.side_effect = RuntimeError("boom")
        backend = GeminiBackend("secret-key")
        with pytest.raises(RuntimeError, match="boom"):
            backend.generate_content("m", [ContentPart(text="x")])
