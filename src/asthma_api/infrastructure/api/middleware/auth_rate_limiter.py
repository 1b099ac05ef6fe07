"""Sliding-window rate limiting for authentication endpoints.

Each client key holds a counter and the time of its last counted attempt.
Once the counter reaches the maximum, further attempts are refused until
``window_seconds`` have passed since that last counted attempt.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request

from asthma_api.core.config import Settings
from asthma_api.core.exceptions import RateLimitExceededError
from asthma_api.core.logging import get_logger
from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType
from asthma_api.infrastructure.api.middleware.rate_limit_storage import (
    AttemptRecord,
    InMemoryRateLimitStore,
    RateLimitStore,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the attempt may proceed.
        retry_after: Whole seconds until the client may try again (0 when allowed).
    """

    allowed: bool
    retry_after: int = 0


class AuthRateLimiter:
    """Per-client attempt limiter for login and registration."""

    def __init__(
        self,
        store: RateLimitStore,
        max_attempts: int = 50,
        window_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.store = store
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.clock = clock

    @classmethod
    def from_settings(
        cls, settings: Settings, store: RateLimitStore | None = None
    ) -> "AuthRateLimiter":
        """Build a limiter from settings with a fresh in-memory store by default."""
        return cls(
            store=store or InMemoryRateLimitStore(),
            max_attempts=settings.rate_limit_max_attempts,
            window_seconds=settings.rate_limit_window_seconds,
        )

    def check(self, key: str) -> RateLimitDecision:
        """Record an attempt for ``key`` and decide whether it is allowed.

        Blocked attempts leave the stored record untouched, so the block
        lifts ``window_seconds`` after the last allowed attempt.

        Args:
            key: Client key.

        Returns:
            RateLimitDecision for this attempt.
        """
        now = self.clock()

        def apply(
            record: AttemptRecord | None,
        ) -> tuple[AttemptRecord | None, RateLimitDecision]:
            if record is None or now - record.last_attempt > self.window_seconds:
                return AttemptRecord(count=1, last_attempt=now), RateLimitDecision(True)

            if record.count >= self.max_attempts:
                remaining = self.window_seconds - (now - record.last_attempt)
                return record, RateLimitDecision(False, max(1, math.ceil(remaining)))

            return (
                AttemptRecord(count=record.count + 1, last_attempt=now),
                RateLimitDecision(True),
            )

        return self.store.update(key, apply)


def client_key(request: Request) -> str:
    """Key used to track a client: its remote address."""
    return request.client.host if request.client else "unknown"


async def enforce_auth_rate_limit(request: Request) -> None:
    """FastAPI dependency guarding authentication endpoints.

    Does nothing when the application has no limiter configured.

    Raises:
        RateLimitExceededError: If the client is over its attempt limit.
    """
    limiter: AuthRateLimiter | None = getattr(request.app.state, "auth_rate_limiter", None)
    if limiter is None:
        return

    key = client_key(request)
    decision = limiter.check(key)
    if decision.allowed:
        return

    logger.warning(
        "Auth rate limit exceeded",
        path=request.url.path,
        retry_after=decision.retry_after,
    )
    request.app.state.audit_sink.emit(
        AuditEvent(
            event=AuditEventType.RATE_LIMIT_EXCEEDED,
            client_address=key,
            endpoint=request.url.path,
            method=request.method,
            details={"retry_after": decision.retry_after},
        )
    )
    raise RateLimitExceededError(retry_after=decision.retry_after)
