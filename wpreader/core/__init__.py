"""Core functionality for the WordPress Reader auth broker and MCP server."""

from .decorators import track_request
from .exceptions import MCPToolError
from .logging import configure_logging, logger, mask_secret, request_id_ctx

__all__ = [
    "MCPToolError",
    "configure_logging",
    "logger",
    "mask_secret",
    "request_id_ctx",
    "track_request",
]
