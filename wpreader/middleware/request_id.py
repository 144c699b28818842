"""Per-request id and security headers for the auth broker."""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware

from wpreader.core.logging import logger, request_id_ctx


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every log line of a request with a short id and log its outcome."""

    async def dispatch(self, request, call_next):
        request_id = request.headers.get("x-request-id", "")[:64] or str(uuid.uuid4())[:8]
        token = request_id_ctx.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s -> %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Conservative browser security headers on every response."""

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        return response
