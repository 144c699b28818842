"""
Main entry point for the WordPress Reader auth broker.

Serves the OAuth endpoints with Starlette under uvicorn and runs the
periodic expiry sweep for the lifetime of the process.
"""

import asyncio
import contextlib
import sys
import traceback
from collections.abc import AsyncIterator

import uvicorn
from starlette.applications import Starlette

from wpreader.auth.guard import AccessGuard
from wpreader.auth.oauth2_server import AuthorizationFlowController
from wpreader.auth.setup import (
    create_access_guard,
    create_flow_controller,
    run_expiry_sweeper,
    setup_oauth2_routes,
)
from wpreader.config import Settings, get_settings
from wpreader.core import logger
from wpreader.middleware import setup_middleware


def create_app(
    settings: Settings | None = None,
    *,
    controller: AuthorizationFlowController | None = None,
    guard: AccessGuard | None = None,
) -> Starlette:
    """
    Build the auth broker application.

    Args:
        settings: defaults to the process-wide settings
        controller: flow controller; built from settings when omitted
        guard: Access Guard; built from settings when omitted
    """
    settings = settings or get_settings()
    controller = controller or create_flow_controller(settings)
    guard = guard or create_access_guard(settings)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(
            run_expiry_sweeper(controller, guard, settings.sweep_interval_seconds)
        )
        logger.info("✓ Expiry sweeper started (every %ds)", settings.sweep_interval_seconds)
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            await controller.upstream.aclose()
            logger.info("Auth broker stopped")

    app = Starlette(
        debug=settings.debug,
        routes=setup_oauth2_routes(controller, guard, settings.mcp_callback_uri),
        middleware=setup_middleware(settings),
        lifespan=lifespan,
    )
    app.state.controller = controller
    app.state.guard = guard
    return app


def main() -> None:
    """Run the auth broker."""
    try:
        settings = get_settings()
        logger.info("Starting WordPress Reader auth broker...")
        logger.info("Host: %s, Port: %s", settings.host, settings.port)
        logger.info("Public URL: %s", settings.public_base_url)
        logger.info("Token storage: %s", settings.auth_storage_dir)
        app = create_app(settings)
        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level="debug" if settings.debug else "info",
        )
    except Exception as e:
        logger.error(f"Error in main: {e}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        sys.exit(1)


if __name__ == "__main__":
    main()
