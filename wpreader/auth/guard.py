"""Access Guard for endpoints that reveal a live WordPress.com token.

Checks run in a fixed order and the first failure wins:

1. the transport-level peer must be a loopback address (403)
2. the shared-secret header must match the configured secret (401);
   with no secret configured every request is rejected
3. the origin must be under its sliding-window request budget (429)
"""

import hmac
import ipaddress
import logging
import time
from collections import deque
from collections.abc import Callable

from starlette.requests import Request

from wpreader.core.constants import (
    DEFAULT_SECRET_HEADER,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from wpreader.core.exceptions import OriginDeniedError, RateLimitedError, SharedSecretError

logger = logging.getLogger(__name__)


def is_loopback(host: str | None) -> bool:
    """True for 127.0.0.0/8, ::1 (including IPv4-mapped forms) and ``localhost``."""
    if not host:
        return False
    if host.lower() == "localhost":
        return True
    try:
        address = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped
    return address.is_loopback


class SlidingWindowRateLimiter:
    """In-memory sliding window rate limiter keyed by origin."""

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: dict[str, deque[float]] = {}

    def allow(self, key: str) -> bool:
        now = self._clock()
        cutoff = now - self.window_seconds
        bucket = self._buckets.setdefault(key, deque())
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()
        if len(bucket) >= self.max_requests:
            return False
        bucket.append(now)
        return True

    def cleanup(self) -> None:
        """Remove buckets with no request inside the window."""
        cutoff = self._clock() - self.window_seconds
        stale = [k for k, v in self._buckets.items() if not v or v[-1] <= cutoff]
        for key in stale:
            del self._buckets[key]


class AccessGuard:
    """Origin, shared-secret and rate-limit checks for guarded routes."""

    def __init__(
        self,
        shared_secret: str | None,
        header_name: str = DEFAULT_SECRET_HEADER,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ) -> None:
        self._shared_secret = shared_secret or None
        self.header_name = header_name
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        if self._shared_secret is None:
            logger.warning("No shared secret configured; guarded endpoints are closed")

    def check(self, request: Request) -> str:
        """
        Run every check against the request.

        Returns:
            The origin (peer host) the request was accounted to

        Raises:
            OriginDeniedError, SharedSecretError, RateLimitedError
        """
        origin = request.client.host if request.client else None

        if not is_loopback(origin):
            logger.warning("Guarded request from non-loopback origin %s", origin)
            raise OriginDeniedError("Access restricted to localhost")

        provided = request.headers.get(self.header_name)
        if self._shared_secret is None or not provided:
            logger.warning("Guarded request from %s without a usable shared secret", origin)
            raise SharedSecretError("Missing or invalid shared secret")
        if not hmac.compare_digest(provided.encode(), self._shared_secret.encode()):
            logger.warning("Guarded request from %s with a wrong shared secret", origin)
            raise SharedSecretError("Missing or invalid shared secret")

        if not self.rate_limiter.allow(origin):
            logger.warning("Rate limit exceeded for %s", origin)
            raise RateLimitedError("Too many requests")

        return origin
