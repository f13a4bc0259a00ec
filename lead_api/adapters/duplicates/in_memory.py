"""Duplicate detection from an in-memory key -> last-accepted map.

Cheaper than scanning history, but the map starts empty on every process
start, so suppression does not survive restarts. Stale keys are evicted
lazily on every check.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Hashable

from lead_api.adapters.duplicates.base import AbstractDuplicateDetector, equality_key, within_window
from lead_api.schemas.leads import LeadRecord, Snapshot


class InMemoryDuplicateDetector(AbstractDuplicateDetector):
    """Remember when each equality key was last accepted."""

    def __init__(self, *, window_seconds: float = 600) -> None:
        super().__init__(window_seconds=window_seconds)
        self._lock = threading.RLock()
        self._last_accepted: dict[tuple[Hashable, ...], datetime] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_accepted)

    def _evict_expired_locked(self, now: datetime) -> None:
        expired = [
            key
            for key, accepted_at in self._last_accepted.items()
            if not within_window(accepted_at, now, self.window)
        ]
        for key in expired:
            del self._last_accepted[key]

    def is_duplicate(self, record: LeadRecord, snapshot: Snapshot, now: datetime) -> bool:
        with self._lock:
            self._evict_expired_locked(now)
            return equality_key(record) in self._last_accepted

    def remember(self, record: LeadRecord, now: datetime) -> None:
        with self._lock:
            self._last_accepted[equality_key(record)] = now
