"""Configuration settings for the WordPress Reader services using Pydantic Settings.

This module provides type-safe configuration management with automatic validation,
environment variable loading, and documentation generation. The auth broker and
the reader MCP server share one environment namespace.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wpreader.core.constants import (
    AUTH_CODE_TTL_SECONDS,
    BEARER_TTL_SECONDS,
    DEFAULT_SECRET_HEADER,
    PENDING_STATE_TTL_SECONDS,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    SESSION_TTL_SECONDS,
    SWEEP_INTERVAL_SECONDS,
    UPSTREAM_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central configuration management with Pydantic validation.

    All settings are loaded from environment variables with automatic type conversion
    and validation. Default values are provided for non-critical settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
        populate_by_name=True,
    )

    # ========================================
    # Debug Settings
    # ========================================
    debug: bool = Field(
        default=False,
        alias="MCP_DEBUG",
        description="Enable debug mode with verbose logging",
    )

    # ========================================
    # Server Settings
    # ========================================
    host: str = Field(
        default="127.0.0.1",
        description="Auth broker listen address",
    )

    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Auth broker listen port",
    )

    public_base_url: str | None = Field(
        default=None,
        description="Externally visible base URL of the auth broker (JWT issuer)",
    )

    mcp_server_url: str | None = Field(
        default=None,
        description="Origin allowed by CORS (the MCP server URL)",
    )

    # ========================================
    # WordPress.com OAuth Settings
    # ========================================
    wordpress_client_id: str | None = Field(
        default=None,
        description="WordPress.com OAuth application client id",
    )

    wordpress_client_secret: str | None = Field(
        default=None,
        description="WordPress.com OAuth application client secret",
    )

    redirect_uri: str | None = Field(
        default=None,
        description="Callback URI registered with the WordPress.com application",
    )

    wordpress_oauth_scope: str = Field(
        default="auth",
        description="Scope requested on the WordPress.com consent screen",
    )

    upstream_timeout_seconds: float = Field(
        default=UPSTREAM_TIMEOUT_SECONDS,
        gt=0,
        le=60,
        description="Timeout for calls to WordPress.com",
    )

    # ========================================
    # Token Settings
    # ========================================
    jwt_secret: str | None = Field(
        default=None,
        description="Signing secret for bearer credentials issued by /auth/token",
    )

    mcp_callback_uri: str = Field(
        default="mcp://auth/callback",
        description="Private-scheme URI the authorization code is delivered to",
    )

    auth_storage_dir: Path = Field(
        default=Path(".wpreader_auth"),
        description="Directory holding tokens.json and auth_codes.json",
    )

    pending_state_ttl_seconds: int = Field(
        default=PENDING_STATE_TTL_SECONDS,
        ge=1,
        description="Lifetime of a pending authorization state",
    )

    auth_code_ttl_seconds: int = Field(
        default=AUTH_CODE_TTL_SECONDS,
        ge=1,
        description="Lifetime of an internal authorization code",
    )

    session_ttl_seconds: int = Field(
        default=SESSION_TTL_SECONDS,
        ge=1,
        description="Lifetime assumed for an upstream WordPress.com token",
    )

    bearer_ttl_seconds: int = Field(
        default=BEARER_TTL_SECONDS,
        ge=1,
        description="Lifetime of bearer credentials issued by /auth/token",
    )

    sweep_interval_seconds: int = Field(
        default=SWEEP_INTERVAL_SECONDS,
        ge=1,
        description="Interval of the background expiry sweep",
    )

    # ========================================
    # Access Guard Settings
    # ========================================
    mcp_shared_secret: str | None = Field(
        default=None,
        description="Secret shared between the auth broker and the MCP server",
    )

    mcp_secret_header: str = Field(
        default=DEFAULT_SECRET_HEADER,
        description="Request header carrying the shared secret",
    )

    rate_limit_max_requests: int = Field(
        default=RATE_LIMIT_MAX_REQUESTS,
        ge=1,
        description="Guarded requests allowed per origin per window",
    )

    rate_limit_window_seconds: int = Field(
        default=RATE_LIMIT_WINDOW_SECONDS,
        ge=1,
        description="Sliding rate-limit window",
    )

    # ========================================
    # MCP Server Settings
    # ========================================
    auth_server_url: str = Field(
        default="http://localhost:3000",
        description="Auth broker URL as seen by the MCP server",
    )

    mcp_auth_cache_file: Path = Field(
        default=Path(".mcp-auth-cache.json"),
        description="Cache of the last WordPress.com token fetched by the MCP server",
    )

    mcp_auth_state_file: Path = Field(
        default=Path(".mcp-auth-state.json"),
        description="PKCE verifier and state saved by a background authorization",
    )

    # ========================================
    # Validators
    # ========================================
    @field_validator("public_base_url", mode="before")
    @classmethod
    def set_public_base_url(cls, v: str | None, info: Any) -> str:
        """Default the public base URL to localhost on the configured port."""
        if v:
            return str(v).rstrip("/")
        port = info.data.get("port", 3000)
        return f"http://localhost:{port}"

    @field_validator("redirect_uri", mode="before")
    @classmethod
    def set_redirect_uri(cls, v: str | None, info: Any) -> str:
        """Default the upstream redirect URI to this broker's callback route."""
        if v:
            return v
        base_url = info.data.get("public_base_url") or "http://localhost:3000"
        return f"{base_url}/auth/callback"

    @field_validator("mcp_secret_header")
    @classmethod
    def normalize_header(cls, v: str) -> str:
        return v.strip().lower()

    # ========================================
    # Helper Methods
    # ========================================
    def has_wordpress_credentials(self) -> bool:
        """Check if the WordPress.com application credentials are configured."""
        return all([self.wordpress_client_id, self.wordpress_client_secret])

    def to_dict(self) -> dict[str, Any]:
        """Export settings as a dictionary (safe version without secrets)."""
        return {
            "debug": self.debug,
            "host": self.host,
            "port": self.port,
            "public_base_url": self.public_base_url,
            "redirect_uri": self.redirect_uri,
            "wordpress_oauth_scope": self.wordpress_oauth_scope,
            "has_wordpress_credentials": self.has_wordpress_credentials(),
            "has_jwt_secret": bool(self.jwt_secret),
            "has_shared_secret": bool(self.mcp_shared_secret),
            "mcp_callback_uri": self.mcp_callback_uri,
            "auth_storage_dir": str(self.auth_storage_dir),
            "session_ttl_seconds": self.session_ttl_seconds,
            "bearer_ttl_seconds": self.bearer_ttl_seconds,
            "rate_limit_max_requests": self.rate_limit_max_requests,
            "rate_limit_window_seconds": self.rate_limit_window_seconds,
            "auth_server_url": self.auth_server_url,
        }


# Singleton pattern with proper typing
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        logger.info("Settings initialized from environment")
        if not _settings_instance.has_wordpress_credentials():
            logger.warning(
                "WORDPRESS_CLIENT_ID / WORDPRESS_CLIENT_SECRET are missing. "
                "The OAuth flow cannot reach WordPress.com.",
            )
        if not _settings_instance.mcp_shared_secret:
            logger.warning(
                "MCP_SHARED_SECRET is missing. Guarded token endpoints will reject every request.",
            )
    return _settings_instance


def reset_settings() -> None:
    """Reset settings instance (useful for testing)."""
    global _settings_instance
    _settings_instance = None
