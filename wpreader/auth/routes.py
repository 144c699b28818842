"""
OAuth2 endpoints for the WordPress Reader broker using Starlette.

Implements:
- Authorization Server Metadata (RFC 8414)
- Protected Resource Metadata (RFC 9728)
- Manual test page
- Authorization, callback and token endpoints (PKCE flow)
- Bearer credential validation
- Guarded WordPress.com token lookups
"""

import logging
import secrets
from urllib.parse import urlencode

from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse

from wpreader.auth.delivery import get_delivery, render_template
from wpreader.auth.guard import AccessGuard
from wpreader.auth.oauth2_server import AuthorizationFlowController
from wpreader.auth.pkce import generate_pkce_pair
from wpreader.auth.storage import SessionToken
from wpreader.core.constants import (
    GRANT_TYPE_AUTHORIZATION_CODE,
    PKCE_METHOD_S256,
    RESPONSE_MODE_PAGE,
)
from wpreader.core.exceptions import (
    AuthFlowError,
    ClientInputError,
    ReplayOrExpiredError,
    UnsupportedGrantTypeError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


def error_response(exc: AuthFlowError) -> JSONResponse:
    """JSON error body with the exception's status code."""
    if isinstance(exc, UpstreamError):
        logger.error("Upstream failure: %s", exc.detail)
    else:
        logger.info("Request rejected (%s): %s", exc.error, exc.description)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def server_error() -> JSONResponse:
    return JSONResponse(
        {"error": "server_error", "error_description": "Internal server error"},
        status_code=500,
    )


def session_payload(session: SessionToken) -> dict:
    return {
        "wordpress_token": session.wordpress_token,
        "expires_at": session.expires_at,
        "user_info": session.user_info.model_dump(),
    }


async def health(request: Request):
    """Liveness check."""
    return JSONResponse({"status": "ok"})


async def authorization_server_metadata(
    request: Request, controller: AuthorizationFlowController
):
    """OAuth 2.0 Authorization Server Metadata (RFC 8414)."""
    return JSONResponse(controller.get_authorization_server_metadata())


async def protected_resource_metadata(
    request: Request, controller: AuthorizationFlowController
):
    """Protected Resource Metadata (RFC 9728)."""
    return JSONResponse(controller.get_protected_resource_metadata())


async def test_page(request: Request, controller: AuthorizationFlowController):
    """Manual test page with freshly generated PKCE parameters."""
    code_verifier, code_challenge = generate_pkce_pair()
    state = secrets.token_urlsafe(16)
    params = {
        "code_challenge": code_challenge,
        "code_challenge_method": PKCE_METHOD_S256,
        "state": state,
        "response_mode": RESPONSE_MODE_PAGE,
    }
    return render_template(
        "test.html",
        {
            "authorize_url": f"{controller.issuer}/auth/authorize?{urlencode(params)}",
            "state": state,
            "code_verifier": code_verifier,
            "code_challenge": code_challenge,
        },
    )


async def authorize(request: Request, controller: AuthorizationFlowController):
    """Authorization endpoint - redirects to the WordPress.com consent screen."""
    params = request.query_params
    try:
        url = controller.authorize(
            code_challenge=params.get("code_challenge"),
            code_challenge_method=params.get("code_challenge_method"),
            state=params.get("state"),
            redirect_uri=params.get("redirect_uri"),
            response_mode=params.get("response_mode"),
        )
    except ClientInputError as e:
        return error_response(e)
    return RedirectResponse(url=url, status_code=302)


async def callback(
    request: Request,
    controller: AuthorizationFlowController,
    callback_uri: str,
):
    """WordPress.com redirect target - delivers the internal authorization code."""
    params = request.query_params
    restart_url = f"{controller.issuer}/auth/test"

    upstream_error = params.get("error")
    if upstream_error:
        controller.pending.consume(params.get("state"))
        logger.info("WordPress.com returned error on callback: %s", upstream_error)
        return render_template(
            "error.html",
            {
                "title": "Authorization was not granted",
                "message": "WordPress.com did not authorize the request. "
                "Approve the connection on the consent screen to continue.",
                "restart_url": restart_url,
            },
            status_code=400,
        )

    try:
        result = await controller.callback(code=params.get("code"), state=params.get("state"))
    except ReplayOrExpiredError as e:
        logger.info("Callback rejected: %s", e.description)
        return render_template(
            "error.html",
            {
                "title": "Invalid or expired state",
                "message": "This sign-in link has expired or was already used. "
                "Authorization requests are valid for ten minutes.",
                "restart_url": restart_url,
            },
            status_code=e.status_code,
        )
    except UpstreamError as e:
        logger.error("OAuth callback failed: %s", e.detail)
        return render_template(
            "error.html",
            {
                "title": "Authentication failed",
                "message": "WordPress.com could not complete the sign-in. Please try again.",
                "restart_url": restart_url,
            },
            status_code=e.status_code,
        )
    except AuthFlowError as e:
        logger.info("Callback rejected: %s", e.description)
        return render_template(
            "error.html",
            {
                "title": "Authentication failed",
                "message": e.description,
                "restart_url": restart_url,
            },
            status_code=e.status_code,
        )
    except Exception:
        logger.exception("Unexpected error in OAuth callback")
        return render_template(
            "error.html",
            {
                "title": "Authentication failed",
                "message": "An unexpected error occurred. Please try again.",
                "restart_url": restart_url,
            },
            status_code=500,
        )

    return get_delivery(result.response_mode, callback_uri).deliver(result)


async def _read_body(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as e:
            raise ClientInputError("Malformed JSON body") from e
        if not isinstance(body, dict):
            raise ClientInputError("Request body must be an object")
        return body
    form = await request.form()
    return dict(form)


def _text_field(body: dict, name: str) -> str | None:
    value = body.get(name)
    if value is not None and not isinstance(value, str):
        raise ClientInputError(f"{name} must be a string")
    return value


async def token_endpoint(request: Request, controller: AuthorizationFlowController):
    """Token endpoint - exchanges authorization code for a bearer credential."""
    try:
        body = await _read_body(request)
        grant_type = _text_field(body, "grant_type")
        code = _text_field(body, "code")
        code_verifier = _text_field(body, "code_verifier")
        if grant_type != GRANT_TYPE_AUTHORIZATION_CODE:
            raise UnsupportedGrantTypeError("Only authorization_code is supported")

        credential = await controller.redeem(code=code, code_verifier=code_verifier)
    except AuthFlowError as e:
        return error_response(e)
    except Exception:
        logger.exception("Unexpected error in token endpoint")
        return server_error()

    return JSONResponse(
        credential.to_dict(),
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )


async def validate(request: Request, controller: AuthorizationFlowController):
    """Token validation endpoint - introspects a bearer credential."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return JSONResponse({"valid": False, "error": "unauthorized"}, status_code=401)

    result = await controller.validate(auth_header[7:].strip())
    if not result.valid:
        return JSONResponse(
            {"valid": False, "error": "invalid_token"},
            status_code=401,
        )
    return JSONResponse(result.to_dict(), headers={"Cache-Control": "no-store"})


async def current_token(
    request: Request,
    controller: AuthorizationFlowController,
    guard: AccessGuard,
):
    """Guarded - WordPress.com token of the latest valid session."""
    try:
        guard.check(request)
    except AuthFlowError as e:
        return error_response(e)

    session = await controller.current_token()
    if session is None:
        return JSONResponse(
            {"error": "no_valid_session", "error_description": "No valid session found"},
            status_code=404,
        )
    return JSONResponse(session_payload(session), headers={"Cache-Control": "no-store"})


async def wordpress_token(
    request: Request,
    controller: AuthorizationFlowController,
    guard: AccessGuard,
):
    """Guarded - resolves an authorization code to its WordPress.com token."""
    try:
        guard.check(request)
    except AuthFlowError as e:
        return error_response(e)

    session = await controller.resolve_code(request.path_params["code"])
    if session is None:
        return JSONResponse(
            {"error": "invalid_grant", "error_description": "Invalid or expired code"},
            status_code=404,
        )
    return JSONResponse(session_payload(session), headers={"Cache-Control": "no-store"})

