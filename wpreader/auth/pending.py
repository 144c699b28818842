"""In-memory registry of authorize requests awaiting the upstream callback."""

import logging
import time
from collections.abc import Callable

from wpreader.auth.storage import PendingAuthorization
from wpreader.core.constants import PENDING_STATE_TTL_SECONDS, RESPONSE_MODE_REDIRECT

logger = logging.getLogger(__name__)


class PendingAuthorizationRegistry:
    """Maps the caller's ``state`` to the PKCE challenge it arrived with.

    A state resolves at most once: ``consume`` removes it, and an expired
    state is treated exactly like an unknown one.
    """

    def __init__(
        self,
        ttl_seconds: int = PENDING_STATE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._pending: dict[str, PendingAuthorization] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def register(
        self,
        state: str,
        code_challenge: str,
        response_mode: str = RESPONSE_MODE_REDIRECT,
    ) -> PendingAuthorization:
        pending = PendingAuthorization(
            state=state,
            code_challenge=code_challenge,
            response_mode=response_mode,
            expires_at=self._clock() + self._ttl_seconds,
        )
        self._pending[state] = pending
        return pending

    def consume(self, state: str | None) -> PendingAuthorization | None:
        if not state:
            return None
        pending = self._pending.pop(state, None)
        if pending is None or pending.is_expired(self._clock()):
            return None
        return pending

    def sweep(self) -> int:
        now = self._clock()
        expired = [s for s, p in self._pending.items() if p.is_expired(now)]
        for state in expired:
            del self._pending[state]
        if expired:
            logger.debug("Swept %d expired pending authorization(s)", len(expired))
        return len(expired)
