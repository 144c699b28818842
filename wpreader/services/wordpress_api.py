"""Minimal WordPress.com REST API client used by the reader tools."""

import logging
from typing import Any

import httpx

from wpreader.core.constants import (
    UPSTREAM_TIMEOUT_SECONDS,
    WORDPRESS_API_BASE,
    WORDPRESS_API_HOST,
)
from wpreader.core.exceptions import WordPressAPIError

logger = logging.getLogger(__name__)


def build_api_url(endpoint: str) -> str:
    """Resolve an endpoint against v1.1, or use it as-is for ``/rest/v1.2/`` paths."""
    if endpoint.startswith("/rest/v1.2/"):
        return f"{WORDPRESS_API_HOST}{endpoint}"
    return f"{WORDPRESS_API_BASE}{endpoint}"


async def call_wordpress_api(
    endpoint: str,
    token: str,
    method: str = "GET",
    body: dict[str, Any] | None = None,
    *,
    params: dict[str, Any] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Any:
    """
    Call a WordPress.com REST endpoint with a bearer token.

    Raises:
        WordPressAPIError: non-2xx response, transport failure (502), timeout (504)
            or a body that is not JSON
    """
    url = build_api_url(endpoint)
    headers = {"Authorization": f"Bearer {token}"}
    json_body = body if body is not None and method.upper() != "GET" else None
    query = {k: v for k, v in (params or {}).items() if v is not None}

    try:
        if http_client is not None:
            response = await http_client.request(
                method, url, headers=headers, json=json_body, params=query
            )
        else:
            async with httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT_SECONDS) as client:
                response = await client.request(
                    method, url, headers=headers, json=json_body, params=query
                )
    except httpx.TimeoutException as e:
        logger.warning("WordPress API %s %s timed out", method, endpoint)
        raise WordPressAPIError(504, f"Request timed out: {e!r}") from e
    except httpx.HTTPError as e:
        logger.warning("WordPress API %s %s transport error: %s", method, endpoint, e)
        raise WordPressAPIError(502, f"Transport error: {e!r}") from e

    if not response.is_success:
        logger.warning("WordPress API %s %s -> %d", method, endpoint, response.status_code)
        raise WordPressAPIError(response.status_code, response.text[:500])

    try:
        return response.json()
    except ValueError as e:
        raise WordPressAPIError(response.status_code, "Response is not JSON") from e
