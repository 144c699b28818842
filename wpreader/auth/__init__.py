"""OAuth 2.0 PKCE broker between MCP clients and WordPress.com.

This package provides the authorization flow controller, its pending-state
registry and persistent stores, and the Access Guard protecting the
endpoints that hand out live WordPress.com tokens.
"""

from wpreader.auth.guard import AccessGuard, SlidingWindowRateLimiter, is_loopback
from wpreader.auth.oauth2_server import AuthorizationFlowController
from wpreader.auth.pending import PendingAuthorizationRegistry
from wpreader.auth.pkce import compute_challenge, generate_pkce_pair, verify_pkce
from wpreader.auth.sessions import AuthorizationCodeStore, SessionTokenStore

__all__ = [
    "AccessGuard",
    "AuthorizationCodeStore",
    "AuthorizationFlowController",
    "PendingAuthorizationRegistry",
    "SessionTokenStore",
    "SlidingWindowRateLimiter",
    "compute_challenge",
    "generate_pkce_pair",
    "is_loopback",
    "verify_pkce",
]
