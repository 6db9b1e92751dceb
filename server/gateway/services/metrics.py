# ─────────────────────────────────────────────────────────────────────────────
# Proxy Metrics — thread-safe traffic counters
# ─────────────────────────────────────────────────────────────────────────────
# Tracks upstream calls per service, upstream error statuses, rate-limit
# refusals per bucket, and upstream latency. Exposed via GET /metrics and
# bridged to Prometheus in routes/prometheus.py.
#
# Bounded: latency history uses deque(maxlen=1000), auto-evicts oldest.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ProxyMetrics:
    """Thread-safe gateway metrics."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    upstream_requests_total: int = 0
    upstream_errors_total: int = 0
    upstream_failures_total: int = 0  # no response at all (timeout, refused)
    rate_limited_total: int = 0

    _requests_by_service: Counter[str] = field(default_factory=Counter, repr=False)
    _errors_by_service: Counter[str] = field(default_factory=Counter, repr=False)
    _rate_limited_by_bucket: Counter[str] = field(default_factory=Counter, repr=False)

    _latency_history: deque[float] = field(default_factory=lambda: deque(maxlen=1000), repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def record_upstream(self, service: str, status_code: int, latency_ms: float) -> None:
        """Record an upstream call that produced a response."""
        with self._lock:
            self.upstream_requests_total += 1
            self._requests_by_service[service] += 1
            self._latency_history.append(latency_ms)
            if status_code >= 400:
                self.upstream_errors_total += 1
                self._errors_by_service[service] += 1

    def record_upstream_failure(self, service: str, latency_ms: float) -> None:
        """Record an upstream call that never produced a response."""
        with self._lock:
            self.upstream_requests_total += 1
            self.upstream_failures_total += 1
            self._requests_by_service[service] += 1
            self._errors_by_service[service] += 1
            self._latency_history.append(latency_ms)

    def record_rate_limited(self, bucket: str) -> None:
        with self._lock:
            self.rate_limited_total += 1
            self._rate_limited_by_bucket[bucket] += 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize metrics for the /metrics endpoint."""
        with self._lock:
            latencies = sorted(self._latency_history)
            n = len(latencies)
            return {
                "upstream_requests_total": self.upstream_requests_total,
                "upstream_errors_total": self.upstream_errors_total,
                "upstream_failures_total": self.upstream_failures_total,
                "rate_limited_total": self.rate_limited_total,
                "requests_by_service": dict(self._requests_by_service),
                "errors_by_service": dict(self._errors_by_service),
                "rate_limited_by_bucket": dict(self._rate_limited_by_bucket),
                "latency_p50_ms": round(latencies[n // 2], 1) if n else 0,
                "latency_p95_ms": round(latencies[int(n * 0.95)], 1) if n else 0,
                "latency_mean_ms": round(sum(latencies) / n, 1) if n else 0,
                "uptime_seconds": int(time.time() - self._start_time),
            }
