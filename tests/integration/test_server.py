"""Integration tests for nanobanana.server.main — FastMCP wiring and CLI.

Tests cover:

- Tool registration: every tool is listed with a camelCase input schema.
- ``main()``: exits with status 1 without an API key, otherwise builds and
  runs the server.
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from nanobanana.core.generator import ImageGenerator
from nanobanana.server import main as main_module
from nanobanana.server.tools import ImageTools

EXPECTED_TOOLS = {
    "generate_image",
    "validate_image",
    "make_transparent",
    "inspect_transparency",
    "combine_images",
    "transform_image",
    "adjust_image",
    "composite_images",
    "batch_process",
}


@pytest.fixture
def server(fake_backend_factory, test_config):
    generator = ImageGenerator(fake_backend_factory([None]), default_model="test-model")
    return main_module.create_server(ImageTools(generator), test_config)


def _schemas(server) -> dict:
    return {tool.name: tool.inputSchema for tool in asyncio.run(server.list_tools())}


# ---------------------------------------------------------------------------
# Tool registration.
# ---------------------------------------------------------------------------


class TestToolRegistration:
    """Test the tools exposed by create_server()."""

    def test_all_tools_listed(self, server):
        """Every image tool should be registered exactly once."""
        assert set(_schemas(server)) == EXPECTED_TOOLS

    def test_generate_image_schema(self, server):
        """outputPath is the only required generate_image argument."""
        schema = _schemas(server)["generate_image"]
        assert "outputPath" in schema["properties"]
        assert "makeTransparent" in schema["properties"]
        assert schema["required"] == ["outputPath"]

    def test_raster_tools_use_camel_case(self, server):
        """Raster tools should accept inputPath / outputPath."""
        schema = _schemas(server)["transform_image"]
        assert set(schema["required"]) == {"inputPath", "outputPath", "operations"}

    def test_server_name_from_config(self, server, test_config):
        assert server.name == test_config.server_name


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


class TestMain:
    """Test the nanobanana-mcp console script."""

    def test_exits_without_api_key(self, monkeypatch):
        """main() should exit with status 1 before starting the transport."""
        monkeypatch.setattr(main_module, "configure_logging", lambda level: None)
        monkeypatch.setattr(main_module.config, "gemini_api_key", None)
        create_server = MagicMock()
        monkeypatch.setattr(main_module, "create_server", create_server)

        with pytest.raises(SystemExit) as exc_info:
            main_module.main()

        assert exc_info.value.code == 1
        create_server.assert_not_called()

    def test_runs_server_with_api_key(self, monkeypatch):
        """main() should build the tools and run the server over stdio."""
        monkeypatch.setattr(main_module, "configure_logging", lambda level: None)
        monkeypatch.setattr(main_module.config, "gemini_api_key", "test-key")
        create_server = MagicMock()
        monkeypatch.setattr(main_module, "create_server", create_server)

        main_module.main()

        tools = create_server.call_args.args[0]
        assert isinstance(tools, ImageTools)
        create_server.return_value.run.assert_called_once_with()


class TestBuildTools:
    def test_generator_uses_config(self, test_config):
        tools = main_module.build_tools(test_config)
        assert tools.generator.default_model == "test-model"
        assert tools.generator.backend.is_connected is False
        assert tools.min_image_dimension == test_config.min_image_dimension
