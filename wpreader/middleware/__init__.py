"""HTTP middleware for the auth broker."""

from .request_id import RequestIdMiddleware, SecurityHeadersMiddleware
from .setup import setup_middleware

__all__ = ["RequestIdMiddleware", "SecurityHeadersMiddleware", "setup_middleware"]
