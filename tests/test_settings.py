"""Tests for configuration loading."""

from pathlib import Path

import pytest

from wpreader.config import Settings, get_settings, reset_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "PORT",
        "PUBLIC_BASE_URL",
        "REDIRECT_URI",
        "MCP_DEBUG",
        "MCP_SHARED_SECRET",
        "MCP_SECRET_HEADER",
        "WORDPRESS_CLIENT_ID",
        "WORDPRESS_CLIENT_SECRET",
        "JWT_SECRET",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.usefixtures("clean_env")
class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.port == 3000
        assert settings.public_base_url == "http://localhost:3000"
        assert settings.redirect_uri == "http://localhost:3000/auth/callback"
        assert settings.session_ttl_seconds == 3600
        assert settings.rate_limit_max_requests == 10
        assert settings.mcp_secret_header == "x-mcp-secret"
        assert settings.auth_storage_dir == Path(".wpreader_auth")
        assert not settings.has_wordpress_credentials()

    def test_public_url_follows_port(self, monkeypatch):
        monkeypatch.setenv("PORT", "4000")
        settings = Settings(_env_file=None)

        assert settings.public_base_url == "http://localhost:4000"
        assert settings.redirect_uri == "http://localhost:4000/auth/callback"

    def test_explicit_urls(self, monkeypatch):
        monkeypatch.setenv("PUBLIC_BASE_URL", "https://broker.example/")
        settings = Settings(_env_file=None)

        assert settings.public_base_url == "https://broker.example"
        assert settings.redirect_uri == "https://broker.example/auth/callback"

    def test_debug_alias_and_header_normalization(self, monkeypatch):
        monkeypatch.setenv("MCP_DEBUG", "true")
        monkeypatch.setenv("MCP_SECRET_HEADER", "  X-Custom-Secret ")
        settings = Settings(_env_file=None)

        assert settings.debug is True
        assert settings.mcp_secret_header == "x-custom-secret"

    def test_to_dict_hides_secrets(self, monkeypatch):
        monkeypatch.setenv("WORDPRESS_CLIENT_SECRET", "very-secret")
        monkeypatch.setenv("MCP_SHARED_SECRET", "shared")
        exported = Settings(_env_file=None).to_dict()

        assert "very-secret" not in exported.values()
        assert "shared" not in exported.values()
        assert exported["has_shared_secret"] is True

    def test_get_settings_is_cached(self):
        reset_settings()
        try:
            assert get_settings() is get_settings()
        finally:
            reset_settings()
