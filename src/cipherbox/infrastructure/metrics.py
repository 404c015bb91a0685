"""Zero-impact in-memory resolution metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop, without locks or I/O.

``time.perf_counter_ns()`` is used for timing (monotonic, nanosecond
resolution, near-zero overhead).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class ProxyStats:
    """Accumulated statistics for a single proxy."""

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = (
            round(self.total_duration_ns / self.attempts / 1_000_000, 1)
            if self.attempts
            else 0.0
        )
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "avg_duration_ms": avg_ms,
        }


@dataclass
class LinkCacheStats:
    """Cache hit/miss and resolution outcome counters."""

    hits: int = 0
    misses: int = 0
    forced_refreshes: int = 0
    exhaustions: int = 0

    def snapshot(self) -> dict[str, object]:
        lookups = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_ratio": round(self.hits / lookups, 3) if lookups else 0.0,
            "forced_refreshes": self.forced_refreshes,
            "exhaustions": self.exhaustions,
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector.

    Thread-safety is not required: the async event loop is
    single-threaded, so plain integer increments are atomic enough.
    """

    _proxies: dict[str, ProxyStats] = field(default_factory=dict)
    _cache: LinkCacheStats = field(default_factory=LinkCacheStats)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_proxy_attempt(
        self,
        name: str,
        duration_ns: int,
        *,
        success: bool,
    ) -> None:
        """Record one proxy attempt (usable link or not)."""
        stats = self._proxies.get(name)
        if stats is None:
            stats = ProxyStats()
            self._proxies[name] = stats

        stats.attempts += 1
        stats.total_duration_ns += duration_ns

        if success:
            stats.successes += 1
        else:
            stats.failures += 1

    def record_cache_lookup(self, *, hit: bool) -> None:
        if hit:
            self._cache.hits += 1
        else:
            self._cache.misses += 1

    def record_forced_refresh(self) -> None:
        self._cache.forced_refreshes += 1

    def record_exhaustion(self) -> None:
        self._cache.exhaustions += 1

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        uptime_s = round(uptime_ns / 1_000_000_000, 1)

        return {
            "uptime_seconds": uptime_s,
            "proxies": {
                name: stats.snapshot() for name, stats in sorted(self._proxies.items())
            },
            "cache": self._cache.snapshot(),
        }
