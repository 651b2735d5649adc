"""Fixed-window rate limiting.

A window opens on the first call for an identifier and lasts
``window_seconds``. Exactly ``limit`` calls succeed per window. State lives
behind a ``RateLimitStore`` so it can be swapped for a shared cache, and the
clock is injected so tests control time.

Any internal failure fails open: the call is allowed and the error logged.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    key: str
    count: int
    reset_at: float  # Unix seconds


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: float  # Unix seconds


class RateLimitStore(Protocol):
    def get(self, key: str) -> Optional[RateLimitEntry]: ...

    def set(self, entry: RateLimitEntry) -> None: ...

    def prune(self, now: float) -> int: ...


class InMemoryRateLimitStore:
    """Process-local entries. Lost on restart and not shared across instances."""

    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}

    def get(self, key: str) -> Optional[RateLimitEntry]:
        return self._entries.get(key)

    def set(self, entry: RateLimitEntry) -> None:
        self._entries[entry.key] = entry

    def prune(self, now: float) -> int:
        """Drop entries whose window closed before *now*; return how many."""
        expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class RateLimiter:
    """Counts calls per identifier; the only writer of its store."""

    def __init__(
        self,
        store: Optional[RateLimitStore] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        self._lock = threading.Lock()
        self._next_sweep = 0.0

    def check(self, identifier: str, limit: int, window_seconds: int) -> RateLimitResult:
        """Count one call for *identifier* and report whether it is allowed."""
        try:
            with self._lock:
                return self._check(identifier, limit, window_seconds)
        except Exception:
            logger.exception("Rate limit error for %s; allowing request", identifier)
            return RateLimitResult(
                success=True,
                limit=limit,
                remaining=1,
                reset=self._safe_now() + window_seconds,
            )

    def _check(self, identifier: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        if now >= self._next_sweep:
            # closed windows are never read again; sweep them at most once per window
            pruned = self._store.prune(now)
            self._next_sweep = now + window_seconds
            if pruned:
                logger.debug("Pruned %d expired rate limit entries", pruned)

        entry = self._store.get(identifier)

        if entry is None or now > entry.reset_at:
            reset_at = now + window_seconds
            self._store.set(RateLimitEntry(key=identifier, count=1, reset_at=reset_at))
            return RateLimitResult(success=True, limit=limit, remaining=limit - 1, reset=reset_at)

        if entry.count >= limit:
            return RateLimitResult(success=False, limit=limit, remaining=0, reset=entry.reset_at)

        count = entry.count + 1
        self._store.set(RateLimitEntry(key=identifier, count=count, reset_at=entry.reset_at))
        return RateLimitResult(success=True, limit=limit, remaining=limit - count, reset=entry.reset_at)

    def _safe_now(self) -> float:
        try:
            return self._clock()
        except Exception:
            return time.time()
