"""
Shared pytest fixtures for the auth broker and MCP server tests.

- ``clock``: controllable epoch-seconds clock shared by every component
- ``upstream``: stub of the WordPress.com token endpoint (httpx.MockTransport)
- ``controller`` / ``guard``: components wired exactly as in production
- ``make_client``: Starlette TestClient whose transport peer address is chosen
  by the test (the Access Guard reads the peer, not headers)
"""

import time
from dataclasses import dataclass, field

import httpx
import pytest
from starlette.testclient import TestClient

from wpreader.auth.pkce import generate_pkce_pair
from wpreader.auth.setup import create_access_guard, create_flow_controller
from wpreader.config import Settings
from wpreader.main import create_app

SHARED_SECRET = "shared-secret-for-tests"
JWT_SECRET = "jwt-secret-for-tests"


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float | None = None):
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class UpstreamStub:
    """Programmable WordPress.com token endpoint."""

    payload: object = field(
        default_factory=lambda: {
            "access_token": "tok123",
            "token_type": "bearer",
            "blog_id": "42",
            "blog_url": "http://example.com",
            "scope": "auth",
        }
    )
    status_code: int = 200
    error: Exception | None = None
    calls: list[httpx.Request] = field(default_factory=list)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, (bytes, str)):
            return httpx.Response(self.status_code, content=self.payload)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


class PeerOverride:
    """ASGI wrapper that sets the transport-level client address."""

    def __init__(self, app, host: str):
        self.app = app
        self.host = host

    async def __call__(self, scope, receive, send):
        if scope["type"] in ("http", "websocket"):
            scope = dict(scope, client=(self.host, 50000))
        await self.app(scope, receive, send)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def pkce_pair():
    """(code_verifier, code_challenge)"""
    return generate_pkce_pair()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        wordpress_client_id="client-123",
        wordpress_client_secret="client-secret-456",
        public_base_url="http://localhost:3000",
        jwt_secret=JWT_SECRET,
        mcp_shared_secret=SHARED_SECRET,
        auth_storage_dir=tmp_path / "auth",
        mcp_auth_cache_file=tmp_path / "mcp-cache.json",
        mcp_auth_state_file=tmp_path / "mcp-state.json",
    )


@pytest.fixture
def upstream():
    return UpstreamStub()


@pytest.fixture
def controller(settings, clock, upstream):
    http_client = httpx.AsyncClient(transport=upstream.transport)
    return create_flow_controller(settings, clock=clock, http_client=http_client)


@pytest.fixture
def guard(settings, clock):
    return create_access_guard(settings, clock=clock)


@pytest.fixture
def app(settings, controller, guard):
    return create_app(settings, controller=controller, guard=guard)


@pytest.fixture
def make_client(app):
    def _make_client(host: str = "127.0.0.1") -> TestClient:
        return TestClient(PeerOverride(app, host), follow_redirects=False)

    return _make_client


@pytest.fixture
def client(make_client):
    """TestClient whose requests come from 127.0.0.1."""
    return make_client("127.0.0.1")
