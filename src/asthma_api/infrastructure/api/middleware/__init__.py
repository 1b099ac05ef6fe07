"""HTTP middleware and request guards."""

from asthma_api.infrastructure.api.middleware.auth_rate_limiter import (
    AuthRateLimiter,
    RateLimitDecision,
    enforce_auth_rate_limit,
)
from asthma_api.infrastructure.api.middleware.rate_limit_storage import (
    AttemptRecord,
    InMemoryRateLimitStore,
    RateLimitStore,
)
from asthma_api.infrastructure.api.middleware.security_headers_middleware import (
    SecurityHeadersMiddleware,
)

__all__ = [
    "AttemptRecord",
    "AuthRateLimiter",
    "InMemoryRateLimitStore",
    "RateLimitDecision",
    "RateLimitStore",
    "SecurityHeadersMiddleware",
    "enforce_auth_rate_limit",
]
