"""
Entry point for the WordPress Reader MCP server.

Speaks MCP over stdio; WordPress.com tokens come from the auth broker
(see ``wpreader.services.auth_client``).
"""

import asyncio
import sys
import traceback

from fastmcp import FastMCP

from wpreader.config import get_settings
from wpreader.core import logger
from wpreader.services.auth_client import create_auth_client
from wpreader.tools import register_reader_tools


def create_mcp_server() -> FastMCP:
    """Create the MCP server with every reader tool registered."""
    settings = get_settings()
    mcp = FastMCP("wordpress-reader-mcp")
    register_reader_tools(mcp, create_auth_client(settings))
    logger.info("FastMCP server initialized (auth broker: %s)", settings.auth_server_url)
    return mcp


async def main() -> None:
    """Run the MCP server over stdio."""
    mcp = create_mcp_server()
    sys.stderr.flush()
    await mcp.run_async(transport="stdio")


def run() -> None:
    try:
        logger.info("Starting WordPress Reader MCP server...")
        asyncio.run(main())
    except Exception as e:
        logger.error(f"Error in main: {e}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        sys.exit(1)


if __name__ == "__main__":
    run()
