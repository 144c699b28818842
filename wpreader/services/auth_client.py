"""Client used by the MCP server to obtain WordPress.com tokens from the broker.

Tokens are looked up in this order:

1. a local cache file written by a previous lookup, if not expired
2. the broker's guarded ``/auth/current-token`` endpoint (shared secret header)

When neither yields a token, ``initiate_background_auth`` produces a broker
authorize URL for the user to open.
"""

import json
import logging
import secrets
import time
from collections.abc import Callable
from pathlib import Path
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from wpreader.auth.pkce import generate_pkce_pair
from wpreader.config import Settings
from wpreader.core.constants import (
    DEFAULT_SECRET_HEADER,
    PKCE_METHOD_S256,
    SESSION_TTL_SECONDS,
    UPSTREAM_TIMEOUT_SECONDS,
)
from wpreader.core.logging import mask_secret

logger = logging.getLogger(__name__)


class CachedAuth(BaseModel):
    """Token cached on disk by the MCP server."""

    wordpress_token: str
    expires_at: float
    user_info: dict | None = None


class AuthServiceClient:
    """HTTP client for the auth broker's validation and token endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        shared_secret: str | None,
        secret_header: str = DEFAULT_SECRET_HEADER,
        cache_file: str | Path = ".mcp-auth-cache.json",
        state_file: str | Path = ".mcp-auth-state.json",
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._shared_secret = shared_secret
        self._secret_header = secret_header
        self._cache_file = Path(cache_file)
        self._state_file = Path(state_file)
        self._timeout = timeout
        self._clock = clock
        self._http = http_client

    async def _get(self, path: str, headers: dict[str, str]) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self._http is not None:
            return await self._http.get(url, headers=headers)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, headers=headers)

    async def validate_token(self, token: str) -> dict:
        """Ask the broker whether a bearer credential is valid.

        Returns ``{"valid": False}`` on any failure.
        """
        try:
            response = await self._get(
                "/auth/validate", {"Authorization": f"Bearer {token}"}
            )
            if not response.is_success:
                return {"valid": False}
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Token validation error: %s", e)
            return {"valid": False}
        if not isinstance(data, dict) or not data.get("valid"):
            return {"valid": False}
        return data

    async def get_background_token(self) -> str | None:
        """Return a live WordPress.com token, or None if the user must authorize."""
        cached = self._load_cached_token()
        if cached and cached.expires_at > self._clock():
            logger.info("Using cached WordPress token")
            return cached.wordpress_token

        if not self._shared_secret:
            logger.warning("MCP_SHARED_SECRET is not set; cannot ask the auth broker")
            return None

        try:
            response = await self._get(
                "/auth/current-token", {self._secret_header: self._shared_secret}
            )
        except httpx.HTTPError as e:
            logger.error("Background token retrieval error: %s", e)
            return None

        if not response.is_success:
            logger.info("Auth broker has no token for us (HTTP %d)", response.status_code)
            return None

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Malformed current-token response: %s", e)
            return None

        token = data.get("wordpress_token") if isinstance(data, dict) else None
        if not token:
            return None

        self._save_cached_token(
            CachedAuth(
                wordpress_token=token,
                expires_at=data.get("expires_at") or self._clock() + SESSION_TTL_SECONDS,
                user_info=data.get("user_info"),
            )
        )
        logger.info("Fetched WordPress token %s from auth broker", mask_secret(token))
        return token

    def initiate_background_auth(self) -> str:
        """Generate PKCE parameters, remember them, and return the authorize URL."""
        code_verifier, code_challenge = generate_pkce_pair()
        state = secrets.token_urlsafe(16)
        self._save_auth_state({"code_verifier": code_verifier, "state": state})
        params = {
            "code_challenge": code_challenge,
            "code_challenge_method": PKCE_METHOD_S256,
            "state": state,
            "redirect_uri": f"{self.base_url}/auth/callback",
        }
        return f"{self.base_url}/auth/authorize?{urlencode(params)}"

    def clear_cached_token(self) -> None:
        self._cache_file.unlink(missing_ok=True)

    def _load_cached_token(self) -> CachedAuth | None:
        if not self._cache_file.exists():
            return None
        try:
            return CachedAuth.model_validate_json(self._cache_file.read_text())
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable token cache %s: %s", self._cache_file, e)
            return None

    def _save_cached_token(self, cached: CachedAuth) -> None:
        try:
            self._cache_file.write_text(cached.model_dump_json(indent=2))
            self._cache_file.chmod(0o600)
        except OSError as e:
            logger.error("Failed to cache token: %s", e)

    def _save_auth_state(self, state: dict[str, str]) -> None:
        try:
            self._state_file.write_text(json.dumps(state, indent=2))
            self._state_file.chmod(0o600)
        except OSError as e:
            logger.error("Failed to save auth state: %s", e)


def create_auth_client(settings: Settings) -> AuthServiceClient:
    return AuthServiceClient(
        settings.auth_server_url,
        shared_secret=settings.mcp_shared_secret,
        secret_header=settings.mcp_secret_header,
        cache_file=settings.mcp_auth_cache_file,
        state_file=settings.mcp_auth_state_file,
        timeout=settings.upstream_timeout_seconds,
    )
