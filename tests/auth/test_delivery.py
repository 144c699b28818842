"""Tests for authorization code delivery."""

from urllib.parse import parse_qs, urlparse

import pytest

from wpreader.auth.delivery import CodeDelivery, PageDelivery, RedirectDelivery, get_delivery
from wpreader.auth.oauth2_server import CallbackResult
from wpreader.auth.storage import SessionToken, UserInfo


@pytest.fixture
def result():
    return CallbackResult(
        code="code-1",
        state="state 1",
        session=SessionToken(
            id="sid",
            wordpress_token="wordpress-token-value",
            expires_at=100.0,
            created_at=0.0,
            user_info=UserInfo(blog_id="42"),
        ),
    )


class TestCodeDelivery:
    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            CodeDelivery()

    def test_subclass_must_implement_deliver(self):
        class Incomplete(CodeDelivery):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_modes_map_to_deliveries(self):
        assert isinstance(get_delivery("page", "mcp://auth/callback"), PageDelivery)
        assert isinstance(get_delivery("redirect", "mcp://auth/callback"), RedirectDelivery)
        with pytest.raises(ValueError):
            get_delivery("popup", "mcp://auth/callback")


class TestRedirectDelivery:
    def test_appends_to_existing_query(self, result):
        response = RedirectDelivery("mcp://auth/callback?client=x").deliver(result)

        location = urlparse(response.headers["location"])
        assert response.status_code == 302
        assert parse_qs(location.query) == {
            "client": ["x"],
            "code": ["code-1"],
            "state": ["state 1"],
        }


class TestPageDelivery:
    def test_masks_wordpress_token(self, result):
        response = PageDelivery().deliver(result)
        body = response.body.decode()

        assert "code-1" in body
        assert "word...****" in body
        assert "wordpress-token-value" not in body
