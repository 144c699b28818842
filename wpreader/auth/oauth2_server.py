"""
OAuth2 authorization flow for the WordPress Reader broker.

Implements the three-step PKCE flow between an MCP client and WordPress.com:

- authorize: validate PKCE parameters, remember the state, send the user to
  the WordPress.com consent screen
- callback: consume the state, exchange the upstream code, persist a session
  and mint a single-use authorization code bound to the PKCE challenge
- redeem: check the code verifier and issue a signed bearer credential

Bearer credentials are HS256 JWTs that reference a session by id; the
WordPress.com token itself never leaves the broker except through
``validate`` and the guarded token endpoints.
"""

import logging
import secrets
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from jose import JWTError, jwt

from wpreader.auth.pending import PendingAuthorizationRegistry
from wpreader.auth.pkce import validate_challenge_params, verify_pkce
from wpreader.auth.sessions import AuthorizationCodeStore, SessionTokenStore
from wpreader.auth.storage import SessionToken, StoredAuthCode, UserInfo
from wpreader.auth.upstream import WordPressOAuthClient
from wpreader.core.constants import (
    AUTH_CODE_TTL_SECONDS,
    BEARER_TTL_SECONDS,
    JWT_ALGORITHM,
    PKCE_METHOD_S256,
    RESPONSE_MODE_REDIRECT,
    RESPONSE_MODES,
    SESSION_TTL_SECONDS,
    TOKEN_TYPE_BEARER,
)
from wpreader.core.exceptions import (
    ClientInputError,
    CredentialInvalidError,
    FileWriteError,
    ReplayOrExpiredError,
)
from wpreader.core.logging import mask_secret

logger = logging.getLogger(__name__)


@dataclass
class CallbackResult:
    """Outcome of a successful callback, handed to a code delivery."""

    code: str
    state: str
    session: SessionToken
    response_mode: str = RESPONSE_MODE_REDIRECT


@dataclass
class IssuedCredential:
    """Bearer credential returned by the token endpoint."""

    access_token: str
    token_type: str = TOKEN_TYPE_BEARER
    expires_in: int = BEARER_TTL_SECONDS

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }


@dataclass
class ValidationResult:
    """Introspection result for a bearer credential."""

    valid: bool
    wordpress_token: str | None = None
    user_info: UserInfo | None = None
    expires_at: float | None = None
    reason: str | None = field(default=None, repr=False)

    def to_dict(self) -> dict:
        if not self.valid:
            return {"valid": False}
        return {
            "valid": True,
            "wordpress_token": self.wordpress_token,
            "user_info": self.user_info.model_dump() if self.user_info else None,
            "expires_at": self.expires_at,
        }


class AuthorizationFlowController:
    """
    Owns the pending-state registry, the session store and the code store.

    No other component mutates them; the Access Guard endpoints only read
    through ``current_token`` and ``resolve_code``.
    """

    def __init__(
        self,
        *,
        upstream: WordPressOAuthClient,
        pending: PendingAuthorizationRegistry,
        sessions: SessionTokenStore,
        codes: AuthorizationCodeStore,
        signing_secret: str | None,
        issuer: str,
        session_ttl_seconds: int = SESSION_TTL_SECONDS,
        auth_code_ttl_seconds: int = AUTH_CODE_TTL_SECONDS,
        bearer_ttl_seconds: int = BEARER_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the flow controller.

        Args:
            upstream: WordPress.com OAuth client
            pending: registry of authorize requests awaiting a callback
            sessions: persisted session tokens
            codes: persisted single-use authorization codes
            signing_secret: HS256 key for bearer credentials; a random
                per-process key is used when missing
            issuer: ``iss`` claim of issued credentials (broker base URL)
            session_ttl_seconds: lifetime given to a WordPress.com token
            auth_code_ttl_seconds: lifetime of an authorization code
            bearer_ttl_seconds: lifetime of a bearer credential
            clock: epoch-seconds source shared by every expiry check
        """
        if not signing_secret:
            logger.warning(
                "JWT_SECRET is not set; bearer credentials will not survive a restart"
            )
            signing_secret = secrets.token_urlsafe(32)

        self.upstream = upstream
        self.pending = pending
        self.sessions = sessions
        self.codes = codes
        self.issuer = issuer
        self.session_ttl_seconds = session_ttl_seconds
        self.auth_code_ttl_seconds = auth_code_ttl_seconds
        self.bearer_ttl_seconds = bearer_ttl_seconds
        self._signing_secret = signing_secret
        self._clock = clock

    def get_authorization_server_metadata(self) -> dict:
        """OAuth 2.0 Authorization Server Metadata (RFC 8414)."""
        return {
            "issuer": self.issuer,
            "authorization_endpoint": f"{self.issuer}/auth/authorize",
            "token_endpoint": f"{self.issuer}/auth/token",
            "token_endpoint_auth_methods_supported": ["none"],
            "response_types_supported": ["code"],
            "grant_types_supported": ["authorization_code"],
            "code_challenge_methods_supported": [PKCE_METHOD_S256],
        }

    def get_protected_resource_metadata(self) -> dict:
        """Protected Resource Metadata (RFC 9728)."""
        return {
            "resource": self.issuer,
            "authorization_servers": [self.issuer],
            "bearer_methods_supported": ["header"],
        }

    # ========== Step A: authorize ==========

    def authorize(
        self,
        *,
        code_challenge: str | None,
        code_challenge_method: str | None,
        state: str | None,
        redirect_uri: str | None = None,
        response_mode: str | None = None,
    ) -> str:
        """
        Register a pending authorization and return the consent URL.

        Raises:
            ClientInputError: bad PKCE parameters, missing state or unknown
                response mode; nothing is registered
        """
        validate_challenge_params(code_challenge, code_challenge_method)
        if not state:
            raise ClientInputError("state is required")
        mode = response_mode or RESPONSE_MODE_REDIRECT
        if mode not in RESPONSE_MODES:
            raise ClientInputError(f"Unsupported response_mode: {mode}")

        self.pending.register(state, code_challenge, mode)
        logger.info(
            "Authorization started (response_mode=%s, client redirect_uri=%s)",
            mode,
            redirect_uri,
        )
        return self.upstream.build_authorization_url(state)

    # ========== Step B: callback ==========

    async def callback(self, *, code: str | None, state: str | None) -> CallbackResult:
        """
        Complete the upstream exchange and mint an internal authorization code.

        Raises:
            ReplayOrExpiredError: unknown, expired or already used state
            ClientInputError: upstream code missing
            UpstreamError: the WordPress.com exchange failed
        """
        pending = self.pending.consume(state)
        if pending is None:
            raise ReplayOrExpiredError("Invalid or expired state")
        if not code:
            raise ClientInputError("Authorization code from WordPress.com is missing")

        token_response = await self.upstream.exchange_code(code)

        now = self._clock()
        session = SessionToken(
            id=str(uuid.uuid4()),
            wordpress_token=token_response.access_token,
            expires_at=now + self.session_ttl_seconds,
            user_info=token_response.user_info,
            created_at=now,
        )
        await self.sessions.put(session)

        auth_code = StoredAuthCode(
            code=secrets.token_urlsafe(32),
            session_id=session.id,
            code_challenge=pending.code_challenge,
            expires_at=now + self.auth_code_ttl_seconds,
        )
        try:
            await self.codes.put(auth_code)
        except FileWriteError:
            await self.sessions.delete(session.id)
            raise

        logger.info(
            "Session %s created for blog %s (token %s)",
            session.id,
            session.user_info.blog_id,
            mask_secret(session.wordpress_token),
        )
        return CallbackResult(
            code=auth_code.code,
            state=pending.state,
            session=session,
            response_mode=pending.response_mode,
        )

    # ========== Step C: redeem ==========

    async def redeem(self, *, code: str | None, code_verifier: str | None) -> IssuedCredential:
        """
        Exchange an authorization code and PKCE verifier for a bearer credential.

        A wrong verifier leaves the code in place so the legitimate holder
        can still redeem it.

        Raises:
            ClientInputError: code or verifier missing
            ReplayOrExpiredError: unknown/expired code, verifier mismatch,
                missing session, or code consumed concurrently
        """
        if not code or not code_verifier:
            raise ClientInputError("code and code_verifier are required")

        auth_code = await self.codes.get(code)
        if auth_code is None:
            raise ReplayOrExpiredError("Invalid or expired authorization code")

        if not verify_pkce(code_verifier, auth_code.code_challenge):
            logger.warning("PKCE verification failed for an authorization code")
            raise ReplayOrExpiredError("Invalid code verifier")

        session = await self.sessions.get(auth_code.session_id)
        if session is None:
            raise ReplayOrExpiredError("Session expired")

        if not await self.codes.delete(code):
            raise ReplayOrExpiredError("Authorization code already used")

        logger.info("Authorization code redeemed for session %s", session.id)
        return IssuedCredential(
            access_token=self._create_access_token(session),
            expires_in=self.bearer_ttl_seconds,
        )

    def _create_access_token(self, session: SessionToken) -> str:
        """Create JWT access token."""
        now = int(self._clock())
        to_encode = {
            "sub": session.id,
            "blog_id": session.user_info.blog_id,
            "iss": self.issuer,
            "iat": now,
            "exp": now + self.bearer_ttl_seconds,
        }
        return jwt.encode(to_encode, self._signing_secret, algorithm=JWT_ALGORITHM)

    # ========== Validation ==========

    def _decode_access_token(self, token: str) -> dict:
        """
        Verify signature, issuer and expiry of a bearer credential.

        Raises:
            CredentialInvalidError: on any check failing
        """
        try:
            payload = jwt.decode(
                token,
                self._signing_secret,
                algorithms=[JWT_ALGORITHM],
                issuer=self.issuer,
                # expiry is checked below against the controller clock
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise CredentialInvalidError(f"Invalid bearer credential: {e}") from e

        exp = payload.get("exp")
        if not isinstance(exp, int | float) or exp <= self._clock():
            raise CredentialInvalidError("Bearer credential expired")
        if not payload.get("sub"):
            raise CredentialInvalidError("Bearer credential has no subject")
        return payload

    async def validate(self, token: str | None) -> ValidationResult:
        """Introspect a bearer credential. Never raises."""
        if not token:
            return ValidationResult(valid=False, reason="missing credential")
        try:
            payload = self._decode_access_token(token)
        except CredentialInvalidError as e:
            logger.info("Rejected bearer credential: %s", e.description)
            return ValidationResult(valid=False, reason=e.description)

        session = await self.sessions.get(payload["sub"])
        if session is None:
            return ValidationResult(valid=False, reason="session expired")

        return ValidationResult(
            valid=True,
            wordpress_token=session.wordpress_token,
            user_info=session.user_info,
            expires_at=session.expires_at,
        )

    # ========== Guarded lookups ==========

    async def current_token(self) -> SessionToken | None:
        """Latest non-expired session, if any."""
        return await self.sessions.latest_valid()

    async def resolve_code(self, code: str) -> SessionToken | None:
        """Resolve an authorization code to its session without consuming it."""
        auth_code = await self.codes.get(code)
        if auth_code is None:
            return None
        return await self.sessions.get(auth_code.session_id)

    # ========== Expiry sweep ==========

    async def sweep(self) -> int:
        """Drop expired pending states, codes and sessions."""
        removed = self.pending.sweep()
        removed += await self.codes.sweep()
        removed += await self.sessions.sweep()
        return removed


__all__ = [
    "AuthorizationFlowController",
    "CallbackResult",
    "IssuedCredential",
    "ValidationResult",
]
