"""
Middleware configuration for the auth broker.

Order (outermost first):
1. RequestIdMiddleware - request id in every log line
2. SecurityHeadersMiddleware - nosniff, frame deny, referrer policy
3. CORSMiddleware - only when MCP_SERVER_URL is configured
"""

from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

from wpreader.config import Settings
from wpreader.core import logger
from wpreader.middleware.request_id import RequestIdMiddleware, SecurityHeadersMiddleware


def setup_middleware(settings: Settings) -> list[Middleware]:
    """
    Configure HTTP middleware based on settings.

    Args:
        settings: application settings

    Returns:
        List of configured Middleware instances
    """
    middleware = [
        Middleware(RequestIdMiddleware),
        Middleware(SecurityHeadersMiddleware),
    ]

    if settings.mcp_server_url:
        middleware.append(
            Middleware(
                CORSMiddleware,
                allow_origins=[settings.mcp_server_url],
                allow_credentials=True,
                allow_methods=["GET", "POST"],
                allow_headers=["Authorization", "Content-Type"],
            )
        )
        logger.info("✓ CORS enabled for %s", settings.mcp_server_url)
    else:
        logger.info("CORS disabled (MCP_SERVER_URL not set)")

    return middleware
