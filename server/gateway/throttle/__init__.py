"""Per-endpoint rate limiting — limiter, rules, and the store protocol."""

from gateway.throttle.limiter import (
    DEFAULT_RULES,
    PER_HOUR,
    PER_MINUTE,
    RateLimitRule,
    WindowRateLimiter,
)
from gateway.throttle.store import (
    InMemoryRateLimitStore,
    RateLimitEntry,
    RateLimitKey,
    RateLimitStore,
)

__all__ = [
    "DEFAULT_RULES",
    "PER_HOUR",
    "PER_MINUTE",
    "InMemoryRateLimitStore",
    "RateLimitEntry",
    "RateLimitKey",
    "RateLimitRule",
    "RateLimitStore",
    "WindowRateLimiter",
]
