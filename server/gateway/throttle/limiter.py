# ─────────────────────────────────────────────────────────────────────────────
# Window Rate Limiter — per-(endpoint, client) fixed windows
# ─────────────────────────────────────────────────────────────────────────────


import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

import structlog

from gateway.throttle.store import InMemoryRateLimitStore, RateLimitStore

logger = structlog.get_logger(__name__)

PER_MINUTE = 60.0
PER_HOUR = 3600.0


@dataclass(frozen=True)
class RateLimitRule:
    max_requests: int
    window_seconds: float = PER_MINUTE


# Bucket names are "<service>.<endpoint>" for the dedicated services and
# "proxy.<service>" for the generic proxy.
DEFAULT_RULES: Mapping[str, RateLimitRule] = {
    "location.search": RateLimitRule(10),
    "location.geocode": RateLimitRule(10),
    "location.reverse_geocode": RateLimitRule(10),
    "location.nearby": RateLimitRule(20),
    "weather.current": RateLimitRule(10),
    "weather.forecast": RateLimitRule(5),
    "proxy.openai": RateLimitRule(10),
    "proxy.google_maps": RateLimitRule(50),
    "proxy.weather": RateLimitRule(20),
    "proxy.unsplash": RateLimitRule(30, PER_HOUR),
}


class WindowRateLimiter:
    """Fixed-window counter gate.

    A window opens on the first request for a key and lasts the rule's
    window_seconds. Requests past max_requests are refused without touching
    the counter until the clock passes window_reset_at.

    The clock is injectable (tests pass a fake one); correctness assumes it
    does not go backwards.
    """

    def __init__(
        self,
        rules: Mapping[str, RateLimitRule] = DEFAULT_RULES,
        store: RateLimitStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rules = dict(rules)
        self._store: RateLimitStore = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        self._lock = threading.Lock()

    def rule_for(self, bucket: str) -> RateLimitRule:
        """Raises KeyError for buckets with no rule (a wiring bug)."""
        return self._rules[bucket]

    def check(self, bucket: str, client_key: str) -> bool:
        """Count one request for (bucket, client_key); False once over the limit."""
        rule = self.rule_for(bucket)
        key = (bucket, client_key)

        with self._lock:
            now = self._clock()
            entry = self._store.get(key)
            if entry is None or now > entry.window_reset_at:
                entry = self._store.reset(key, now + rule.window_seconds)

            if entry.count >= rule.max_requests:
                logger.debug(
                    "rate_limit_refused",
                    bucket=bucket,
                    client=client_key,
                    count=entry.count,
                    limit=rule.max_requests,
                )
                return False

            self._store.increment(key)
            return True

    @property
    def store(self) -> RateLimitStore:
        return self._store
