"""MCP server: tool input models, tool implementations and the stdio entry point."""
