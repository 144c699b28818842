"""Pydantic models for OAuth entity storage.

These models define the records kept by the broker: pending authorizations
(in memory), session tokens and authorization codes (persisted as JSON).
All timestamps are epoch seconds taken from the same clock.
"""

from pydantic import BaseModel, Field, field_validator

from wpreader.core.constants import RESPONSE_MODE_REDIRECT


class ExpiringRecord(BaseModel):
    """Base for records that become invisible once expired."""

    expires_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


class PendingAuthorization(ExpiringRecord):
    """Authorize request waiting for the WordPress.com callback."""

    state: str
    code_challenge: str
    response_mode: str = RESPONSE_MODE_REDIRECT


class UserInfo(BaseModel):
    """WordPress.com account the session was authorized for."""

    blog_id: str | None = None
    blog_url: str | None = None

    @field_validator("blog_id", mode="before")
    @classmethod
    def stringify_blog_id(cls, v: object) -> object:
        # WordPress.com sends blog_id as a number or a string
        if isinstance(v, int):
            return str(v)
        return v


class SessionToken(ExpiringRecord):
    """Upstream WordPress.com token held under an internal session id."""

    id: str
    wordpress_token: str
    user_info: UserInfo = Field(default_factory=UserInfo)
    created_at: float


class StoredAuthCode(ExpiringRecord):
    """Single-use authorization code bound to a session and a PKCE challenge."""

    code: str
    session_id: str
    code_challenge: str
