"""WordPress.com OAuth client.

Builds the consent URL and performs the server-to-server authorization-code
exchange. Any failure on the upstream side becomes an ``UpstreamError``
whose detail is meant for logs only.
"""

import logging
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from wpreader.auth.storage import UserInfo
from wpreader.core.constants import (
    GRANT_TYPE_AUTHORIZATION_CODE,
    UPSTREAM_TIMEOUT_SECONDS,
    WORDPRESS_AUTHORIZE_URL,
    WORDPRESS_TOKEN_URL,
)
from wpreader.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class WordPressTokenResponse(BaseModel):
    """Token endpoint response from WordPress.com."""

    access_token: str
    token_type: str | None = None
    blog_id: str | int | None = None
    blog_url: str | None = None
    scope: str | None = None

    @property
    def user_info(self) -> UserInfo:
        return UserInfo(blog_id=self.blog_id, blog_url=self.blog_url)


class WordPressOAuthClient:
    """Client for the WordPress.com authorization and token endpoints."""

    def __init__(
        self,
        *,
        client_id: str | None,
        client_secret: str | None,
        redirect_uri: str,
        scope: str = "auth",
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        authorize_url: str = WORDPRESS_AUTHORIZE_URL,
        token_url: str = WORDPRESS_TOKEN_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self.redirect_uri = redirect_uri
        self.scope = scope
        self.authorize_url = authorize_url
        self.token_url = token_url
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    def build_authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> WordPressTokenResponse:
        """Exchange an upstream authorization code for an access token.

        Raises:
            UpstreamError: non-2xx status, timeout, transport failure or
                a body without an access token
        """
        try:
            res = await self._http.post(
                self.token_url,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "grant_type": GRANT_TYPE_AUTHORIZATION_CODE,
                    "redirect_uri": self.redirect_uri,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.TimeoutException as e:
            raise UpstreamError(f"Token exchange timed out: {e!r}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Token exchange transport error: {e!r}") from e

        if not res.is_success:
            raise UpstreamError(
                f"Token exchange returned HTTP {res.status_code}: {res.text[:500]}"
            )

        try:
            return WordPressTokenResponse.model_validate(res.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamError(f"Malformed token response: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
