# ─────────────────────────────────────────────────────────────────────────────
# Rate Limit Store — where window counters live
# ─────────────────────────────────────────────────────────────────────────────
# The limiter only talks to the RateLimitStore protocol. The in-memory store
# is process-local and never evicts keys: fine for short-lived, horizontally
# scaled instances. A shared backend (Redis etc.) can implement the same
# three methods without touching call sites.
# ─────────────────────────────────────────────────────────────────────────────

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

# (endpoint or service bucket, client identifier)
RateLimitKey = tuple[str, str]


@dataclass
class RateLimitEntry:
    """Request count for one key inside its current window."""

    key: RateLimitKey
    count: int
    window_reset_at: float


@runtime_checkable
class RateLimitStore(Protocol):
    """get / increment / reset by key."""

    def get(self, key: RateLimitKey) -> RateLimitEntry | None: ...

    def increment(self, key: RateLimitKey) -> int: ...

    def reset(self, key: RateLimitKey, window_reset_at: float) -> RateLimitEntry: ...


class InMemoryRateLimitStore:
    """Dict-backed store. Not thread-safe on its own; the limiter serializes access."""

    def __init__(self) -> None:
        self._entries: dict[RateLimitKey, RateLimitEntry] = {}

    def get(self, key: RateLimitKey) -> RateLimitEntry | None:
        return self._entries.get(key)

    def increment(self, key: RateLimitKey) -> int:
        entry = self._entries[key]
        entry.count += 1
        return entry.count

    def reset(self, key: RateLimitKey, window_reset_at: float) -> RateLimitEntry:
        entry = RateLimitEntry(key=key, count=0, window_reset_at=window_reset_at)
        self._entries[key] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)
