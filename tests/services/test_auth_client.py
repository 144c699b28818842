"""Tests for the MCP server's auth broker client."""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from wpreader.auth.pkce import compute_challenge
from wpreader.services.auth_client import AuthServiceClient, CachedAuth, create_auth_client


class BrokerStub:
    """Records requests and answers with a programmable response."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def make_auth_client(tmp_path, clock):
    def _make(handler, shared_secret="s3cret"):
        return AuthServiceClient(
            "http://broker.local/",
            shared_secret=shared_secret,
            cache_file=tmp_path / "cache.json",
            state_file=tmp_path / "state.json",
            clock=clock,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return _make


class TestValidateToken:
    @pytest.mark.asyncio
    async def test_valid(self, make_auth_client):
        stub = BrokerStub(payload={"valid": True, "wordpress_token": "wp"})
        client = make_auth_client(stub)

        result = await client.validate_token("bearer-1")

        assert result["wordpress_token"] == "wp"
        assert stub.requests[0].headers["authorization"] == "Bearer bearer-1"
        assert stub.requests[0].url.path == "/auth/validate"

    @pytest.mark.asyncio
    async def test_rejected(self, make_auth_client):
        client = make_auth_client(BrokerStub(401, {"valid": False, "error": "invalid_token"}))
        assert await client.validate_token("bearer-1") == {"valid": False}

    @pytest.mark.asyncio
    async def test_transport_failure(self, make_auth_client):
        def handler(request):
            raise httpx.ConnectError("refused")

        assert await make_auth_client(handler).validate_token("x") == {"valid": False}


class TestGetBackgroundToken:
    @pytest.mark.asyncio
    async def test_fetches_and_caches(self, make_auth_client, tmp_path, clock):
        stub = BrokerStub(
            payload={
                "wordpress_token": "wp-token",
                "expires_at": clock.now + 100,
                "user_info": {"blog_id": "42"},
            }
        )
        client = make_auth_client(stub)

        assert await client.get_background_token() == "wp-token"

        request = stub.requests[0]
        assert request.url.path == "/auth/current-token"
        assert request.headers["x-mcp-secret"] == "s3cret"
        cached = json.loads((tmp_path / "cache.json").read_text())
        assert cached["wordpress_token"] == "wp-token"

    @pytest.mark.asyncio
    async def test_uses_cache_until_expiry(self, make_auth_client, tmp_path, clock):
        (tmp_path / "cache.json").write_text(
            CachedAuth(wordpress_token="cached", expires_at=clock.now + 10).model_dump_json()
        )
        stub = BrokerStub(payload={"wordpress_token": "fresh", "expires_at": clock.now + 100})
        client = make_auth_client(stub)

        assert await client.get_background_token() == "cached"
        assert stub.requests == []

        clock.advance(11)
        assert await client.get_background_token() == "fresh"

    @pytest.mark.asyncio
    async def test_corrupt_cache_is_ignored(self, make_auth_client, tmp_path, clock):
        (tmp_path / "cache.json").write_text("{broken")
        stub = BrokerStub(payload={"wordpress_token": "fresh", "expires_at": clock.now + 100})

        assert await make_auth_client(stub).get_background_token() == "fresh"

    @pytest.mark.asyncio
    async def test_no_session_on_broker(self, make_auth_client):
        client = make_auth_client(BrokerStub(404, {"error": "no_valid_session"}))
        assert await client.get_background_token() is None

    @pytest.mark.asyncio
    async def test_without_shared_secret_broker_is_not_called(self, make_auth_client):
        stub = BrokerStub(payload={"wordpress_token": "wp"})
        client = make_auth_client(stub, shared_secret=None)

        assert await client.get_background_token() is None
        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_clear_cached_token(self, make_auth_client, tmp_path, clock):
        stub = BrokerStub(payload={"wordpress_token": "wp", "expires_at": clock.now + 100})
        client = make_auth_client(stub)
        await client.get_background_token()

        client.clear_cached_token()
        client.clear_cached_token()

        assert not (tmp_path / "cache.json").exists()


class TestInitiateBackgroundAuth:
    def test_saves_verifier_matching_challenge(self, make_auth_client, tmp_path):
        client = make_auth_client(BrokerStub())

        url = urlparse(client.initiate_background_auth())

        assert url.netloc == "broker.local"
        assert url.path == "/auth/authorize"
        query = parse_qs(url.query)
        saved = json.loads((tmp_path / "state.json").read_text())
        assert query["state"] == [saved["state"]]
        assert query["code_challenge_method"] == ["S256"]
        assert query["code_challenge"] == [compute_challenge(saved["code_verifier"])]


def test_create_auth_client_uses_settings(settings):
    client = create_auth_client(settings)
    assert client.base_url == "http://localhost:3000"
