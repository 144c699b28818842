"""WordPress.com Reader OAuth broker and MCP server."""

__version__ = "1.0.0"
