"""Decorators for the WordPress Reader MCP tools."""

import functools
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from .exceptions import MCPToolError
from .logging import logger, request_id_ctx

P = ParamSpec("P")
R = TypeVar("R")


def track_request(
    tool_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Log a reader tool call under its own request id.

    Failures surface to the MCP client as ``MCPToolError``: tool errors pass
    through unchanged, anything else is logged with its traceback and
    wrapped so every tool reports errors the same way.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            token = request_id_ctx.set(uuid.uuid4().hex[:8])
            started = time.perf_counter()
            logger.info("%s called", tool_name)
            logger.debug("%s arguments: %s", tool_name, kwargs)
            try:
                result = await func(*args, **kwargs)
            except MCPToolError as e:
                logger.warning(
                    "%s failed after %.2fs: %s",
                    tool_name,
                    time.perf_counter() - started,
                    e.message,
                )
                raise
            except Exception as e:
                logger.exception("%s crashed", tool_name)
                msg = f"{tool_name} failed: {e}"
                raise MCPToolError(msg) from e
            else:
                logger.info(
                    "%s finished in %.2fs", tool_name, time.perf_counter() - started
                )
                return result
            finally:
                request_id_ctx.reset(token)

        return wrapper

    return decorator
