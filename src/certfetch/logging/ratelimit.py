"""Per-key log throttling.

Issuance failures for one domain repeat on every TLS handshake until the
CA recovers.  :class:`RateLimitedLog` lets the first failure per key
through and drops the rest for ``interval_seconds``.

Usage::

    _failures = RateLimitedLog(interval_seconds=60)

    if _failures.allow(domain):
        log.warning("Issuance failed for %s", domain, exc_info=True)
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

# Entries older than this many windows are dropped on the next sweep
_SWEEP_FACTOR = 10


class RateLimitedLog:
    """Thread-safe "at most once per window" gate keyed by string."""

    def __init__(
        self,
        interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval = interval_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last: dict[str, float] = {}
        self._suppressed: dict[str, int] = {}

    def allow(self, key: str) -> bool:
        """Return True if a log entry for *key* may be written now."""
        now = self._clock()
        with self._lock:
            last = self._last.get(key)
            if last is not None and now - last < self._interval:
                self._suppressed[key] = self._suppressed.get(key, 0) + 1
                return False
            self._last[key] = now
            self._sweep(now)
            return True

    def suppressed(self, key: str) -> int:
        """Return and clear the number of entries dropped for *key*."""
        with self._lock:
            return self._suppressed.pop(key, 0)

    def _sweep(self, now: float) -> None:
        horizon = self._interval * _SWEEP_FACTOR
        stale = [k for k, t in self._last.items() if now - t > horizon]
        for k in stale:
            del self._last[k]
            self._suppressed.pop(k, None)
