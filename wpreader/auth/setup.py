"""
OAuth2 route and component setup for the auth broker.

This module wires the flow controller, the Access Guard and the route
handlers from auth.routes together.

Architecture:
- Separates route registration (this module) from route handlers (routes.py)
- Creates closure adapters to inject the controller and guard
- Builds every component once from Settings at process start
"""

import asyncio
import logging
import time
from collections.abc import Callable

import httpx
from starlette.routing import BaseRoute, Mount, Route

from wpreader.auth import routes
from wpreader.auth.guard import AccessGuard, SlidingWindowRateLimiter
from wpreader.auth.oauth2_server import AuthorizationFlowController
from wpreader.auth.pending import PendingAuthorizationRegistry
from wpreader.auth.sessions import AuthorizationCodeStore, SessionTokenStore
from wpreader.auth.upstream import WordPressOAuthClient
from wpreader.config import Settings
from wpreader.core.exceptions import FileWriteError

logger = logging.getLogger(__name__)


def create_flow_controller(
    settings: Settings,
    *,
    clock: Callable[[], float] = time.time,
    http_client: httpx.AsyncClient | None = None,
) -> AuthorizationFlowController:
    """Build the flow controller and the stores it owns."""
    upstream = WordPressOAuthClient(
        client_id=settings.wordpress_client_id,
        client_secret=settings.wordpress_client_secret,
        redirect_uri=settings.redirect_uri,
        scope=settings.wordpress_oauth_scope,
        timeout=settings.upstream_timeout_seconds,
        http_client=http_client,
    )
    return AuthorizationFlowController(
        upstream=upstream,
        pending=PendingAuthorizationRegistry(
            ttl_seconds=settings.pending_state_ttl_seconds, clock=clock
        ),
        sessions=SessionTokenStore(settings.auth_storage_dir, clock=clock),
        codes=AuthorizationCodeStore(settings.auth_storage_dir, clock=clock),
        signing_secret=settings.jwt_secret,
        issuer=settings.public_base_url,
        session_ttl_seconds=settings.session_ttl_seconds,
        auth_code_ttl_seconds=settings.auth_code_ttl_seconds,
        bearer_ttl_seconds=settings.bearer_ttl_seconds,
        clock=clock,
    )


def create_access_guard(
    settings: Settings,
    *,
    clock: Callable[[], float] = time.time,
) -> AccessGuard:
    """Build the Access Guard with its own rate-limit table."""
    return AccessGuard(
        shared_secret=settings.mcp_shared_secret,
        header_name=settings.mcp_secret_header,
        rate_limiter=SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            clock=clock,
        ),
    )


def setup_oauth2_routes(
    controller: AuthorizationFlowController,
    guard: AccessGuard,
    callback_uri: str,
) -> list[BaseRoute]:
    """
    Build the broker's routes.

    Registers:
    - /health
    - /.well-known/oauth-authorization-server (RFC 8414)
    - /.well-known/oauth-protected-resource (RFC 9728)
    - /auth/test, /auth/authorize, /auth/callback, /auth/token, /auth/validate
    - /auth/current-token, /auth/wordpress-token/{code} (Access Guard)

    Args:
        controller: flow controller owning the token stores
        guard: Access Guard for the token-revealing endpoints
        callback_uri: private-scheme URI used by redirect code delivery

    Returns:
        Routes ready to pass to ``Starlette(routes=...)``
    """

    async def _authorization_server_metadata(request):
        return await routes.authorization_server_metadata(request, controller)

    async def _protected_resource_metadata(request):
        return await routes.protected_resource_metadata(request, controller)

    async def _test_page(request):
        return await routes.test_page(request, controller)

    async def _authorize(request):
        return await routes.authorize(request, controller)

    async def _callback(request):
        return await routes.callback(request, controller, callback_uri)

    async def _token(request):
        return await routes.token_endpoint(request, controller)

    async def _validate(request):
        return await routes.validate(request, controller)

    async def _current_token(request):
        return await routes.current_token(request, controller, guard)

    async def _wordpress_token(request):
        return await routes.wordpress_token(request, controller, guard)

    auth_routes = [
        Route("/test", _test_page, methods=["GET"]),
        Route("/authorize", _authorize, methods=["GET"]),
        Route("/callback", _callback, methods=["GET"]),
        Route("/token", _token, methods=["POST"]),
        Route("/validate", _validate, methods=["GET"]),
        Route("/current-token", _current_token, methods=["GET"]),
        Route("/wordpress-token/{code}", _wordpress_token, methods=["GET"]),
    ]

    app_routes = [
        Route("/health", routes.health, methods=["GET"]),
        Route(
            "/.well-known/oauth-authorization-server",
            _authorization_server_metadata,
            methods=["GET"],
        ),
        Route(
            "/.well-known/oauth-protected-resource",
            _protected_resource_metadata,
            methods=["GET"],
        ),
        Mount("/auth", routes=auth_routes),
    ]

    logger.info("✓ OAuth2 endpoints registered (%d routes)", len(auth_routes) + 3)
    return app_routes


async def run_expiry_sweeper(
    controller: AuthorizationFlowController,
    guard: AccessGuard,
    interval_seconds: float,
) -> None:
    """Sweep expired records every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            guard.rate_limiter.cleanup()
            removed = await controller.sweep()
        except FileWriteError as e:
            logger.error("Expiry sweep failed: %s", e)
        except Exception:
            logger.exception("Unexpected error in expiry sweep")
        else:
            if removed:
                logger.info("Expiry sweep removed %d record(s)", removed)
