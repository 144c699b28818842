"""Outbound clients used by the reader MCP server."""

from wpreader.services.auth_client import AuthServiceClient, create_auth_client
from wpreader.services.wordpress_api import build_api_url, call_wordpress_api

__all__ = [
    "AuthServiceClient",
    "build_api_url",
    "call_wordpress_api",
    "create_auth_client",
]
