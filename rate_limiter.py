"""In-memory fixed-window rate limiting per client identifier.

This is best-effort protection for a single process only. Counters are not
shared between instances and are lost on restart.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Defaults
DEFAULT_WINDOW_MS = 60 * 1000
DEFAULT_MAX_REQUESTS = 60
DEFAULT_MAX_ENTRIES = 10000  # Maximum tracked clients to prevent unbounded growth


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RateLimitEntry:
    """Request counter for one client within the current window."""

    window_start: int
    count: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining: int
    reset_ms: int  # Epoch milliseconds when the current window ends

    @property
    def reset_seconds(self) -> int:
        """Window end as epoch seconds, rounded up."""
        return -(-self.reset_ms // 1000)


class FixedWindowRateLimiter:
    """Fixed-window request counter keyed by client identifier.

    Entries are kept in LRU order and the least recently seen clients are
    evicted once max_entries is exceeded. Expired windows are swept
    periodically.

    check() contains no await points, so on a single event loop each
    read-modify-write of an entry is atomic.
    """

    def __init__(
        self,
        window_ms: int = DEFAULT_WINDOW_MS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._max_entries = max_entries
        self._clock = clock or _now_ms
        self._entries: OrderedDict[str, RateLimitEntry] = OrderedDict()
        self._last_sweep = 0

    def check(self, client_id: str) -> RateLimitResult:
        """Count a request for client_id and report whether it is allowed."""
        now = self._clock()
        self._sweep_expired(now)

        entry = self._entries.get(client_id)
        if entry is None or now - entry.window_start > self.window_ms:
            entry = RateLimitEntry(window_start=now, count=1)
            self._entries[client_id] = entry
            self._entries.move_to_end(client_id)
            self._evict_if_needed()
            return RateLimitResult(
                allowed=True,
                remaining=self.max_requests - 1,
                reset_ms=now + self.window_ms,
            )

        self._entries.move_to_end(client_id)
        entry.count += 1
        return RateLimitResult(
            allowed=entry.count <= self.max_requests,
            remaining=max(0, self.max_requests - entry.count),
            reset_ms=entry.window_start + self.window_ms,
        )

    def get(self, client_id: str) -> Optional[RateLimitEntry]:
        """Return the tracked entry for client_id, if any."""
        return self._entries.get(client_id)

    def clear(self) -> None:
        """Drop all tracked clients."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_if_needed(self) -> None:
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def _sweep_expired(self, now: int) -> None:
        """Remove entries whose window has expired (at most once per window)."""
        if now - self._last_sweep < self.window_ms:
            return
        self._last_sweep = now

        expired = [cid for cid, e in self._entries.items() if now - e.window_start > self.window_ms]
        for cid in expired:
            del self._entries[cid]

        if expired:
            logger.debug(f"[RateLimit] Cleanup: removed {len(expired)} stale client entries")
