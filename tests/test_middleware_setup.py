"""Tests for middleware configuration."""

from starlette.middleware.cors import CORSMiddleware

from wpreader.config import Settings
from wpreader.middleware import (
    RequestIdMiddleware,
    SecurityHeadersMiddleware,
    setup_middleware,
)


class TestSetupMiddleware:
    def test_default_stack(self):
        middleware = setup_middleware(Settings(_env_file=None))

        assert [m.cls for m in middleware] == [RequestIdMiddleware, SecurityHeadersMiddleware]

    def test_cors_when_mcp_server_url_is_set(self):
        middleware = setup_middleware(
            Settings(_env_file=None, mcp_server_url="http://localhost:8080")
        )

        cors = middleware[-1]
        assert cors.cls is CORSMiddleware
        assert cors.kwargs["allow_origins"] == ["http://localhost:8080"]
