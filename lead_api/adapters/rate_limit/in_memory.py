"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows are anchored at each key's first request, not at wall-clock
  boundaries, so bursts of up to 2x the limit across a window edge are
  possible.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from lead_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per key in a window opened by the first request.

    Every call counts, including rejected ones: once the count passes the
    limit the key stays blocked until its window expires. Expired keys are
    swept on every call, which bounds memory without a background task.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of accepted units per window.
            window_seconds: Window length in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _evict_expired_locked(self, now: float) -> None:
        expired = [
            key
            for key, state in self._state_by_key.items()
            if now - state.window_start >= self._window_seconds
        ]
        for key in expired:
            del self._state_by_key[key]

    def _result(self, state: _WindowState, now: float) -> RateLimitResult:
        reset_at = state.window_start + self._window_seconds
        allowed = state.count <= self._limit
        return RateLimitResult(
            allowed=allowed,
            limit=self._limit,
            remaining=max(0, self._limit - state.count),
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=None if allowed else max(1, int(math.ceil(reset_at - now))),
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Count a request for ``key`` and report whether it is within budget.

        Args:
            key: Unique identifier for rate limiting (client + endpoint).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._evict_expired_locked(now)

            state = self._state_by_key.get(key)
            if state is None:
                state = _WindowState(window_start=now, count=cost)
                self._state_by_key[key] = state
            else:
                state.count += cost

            return self._result(state, now)

    def reset(self) -> None:
        """Forget all counters."""
        with self._lock:
            self._state_by_key.clear()
