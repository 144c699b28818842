"""
WordPress.com Reader tools for the MCP server.

This module contains reader MCP tools including:
- get_reader_menu: default reader menu
- get_feed: details about a feed
- get_post: a single post
- get_following_posts / get_liked_posts: reader streams
- get_tag_posts / get_subscribed_tags: tag streams and subscriptions

Every tool resolves a WordPress.com token through the auth broker first.
"""

import json
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from wpreader.core import MCPToolError, track_request
from wpreader.core.exceptions import WordPressAPIError
from wpreader.services.auth_client import AuthServiceClient
from wpreader.services.wordpress_api import call_wordpress_api

if TYPE_CHECKING:
    from fastmcp import FastMCP

logger = logging.getLogger(__name__)


async def run_reader_call(
    auth_client: AuthServiceClient,
    endpoint: str,
    params: dict[str, Any] | None = None,
) -> str:
    """
    Resolve a token, call the WordPress.com endpoint and return JSON text.

    Raises:
        MCPToolError: no token available, or the API call failed
    """
    token = await auth_client.get_background_token()
    if not token:
        auth_url = auth_client.initiate_background_auth()
        msg = f"Authentication required. Open this URL to connect WordPress.com: {auth_url}"
        raise MCPToolError(msg)

    try:
        result = await call_wordpress_api(endpoint, token, params=params)
    except WordPressAPIError as e:
        if e.status_code in (401, 403):
            # the cached token was revoked or expired upstream
            auth_client.clear_cached_token()
        raise MCPToolError(str(e)) from e

    return json.dumps(result, indent=2)


def register_reader_tools(mcp: "FastMCP", auth_client: AuthServiceClient) -> None:
    """
    Register WordPress.com Reader MCP tools.

    Args:
        mcp: FastMCP instance to register tools with
        auth_client: client for the auth broker
    """

    @mcp.tool()
    @track_request("get_reader_menu")
    async def get_reader_menu() -> str:
        """Get the default WordPress.com Reader menu."""
        return await run_reader_call(auth_client, "/read/menu")

    @mcp.tool()
    @track_request("get_feed")
    async def get_feed(feed_url_or_id: str) -> str:
        """
        Get details about a feed.

        Args:
            feed_url_or_id: Feed URL or ID
        """
        return await run_reader_call(
            auth_client, f"/read/feed/{quote(feed_url_or_id, safe='')}"
        )

    @mcp.tool()
    @track_request("get_post")
    async def get_post(site: str, post_id: str) -> str:
        """
        Get a single post by ID.

        Args:
            site: Site domain or ID
            post_id: Post ID
        """
        return await run_reader_call(
            auth_client, f"/read/sites/{quote(site, safe='')}/posts/{quote(post_id, safe='')}"
        )

    @mcp.tool()
    @track_request("get_following_posts")
    async def get_following_posts(number: int = 20, page: int = 1) -> str:
        """
        Get a list of posts from the blogs the user follows.

        Args:
            number: Number of posts to return (default: 20)
            page: Page number
        """
        return await run_reader_call(
            auth_client, "/read/following", {"number": number, "page": page}
        )

    @mcp.tool()
    @track_request("get_liked_posts")
    async def get_liked_posts(number: int = 20, page: int = 1) -> str:
        """
        Get a list of posts the user likes.

        Args:
            number: Number of posts to return (default: 20)
            page: Page number
        """
        return await run_reader_call(
            auth_client, "/read/liked", {"number": number, "page": page}
        )

    @mcp.tool()
    @track_request("get_tag_posts")
    async def get_tag_posts(tag: str, number: int = 20) -> str:
        """
        Get a list of posts from a tag.

        Args:
            tag: Tag name
            number: Number of posts to return (default: 20)
        """
        return await run_reader_call(
            auth_client, f"/read/tags/{quote(tag, safe='')}/posts", {"number": number}
        )

    @mcp.tool()
    @track_request("get_subscribed_tags")
    async def get_subscribed_tags() -> str:
        """Get the tags the user is subscribed to."""
        return await run_reader_call(auth_client, "/read/tags")

    logger.info("✓ Reader tools registered")
