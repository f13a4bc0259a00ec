"""Process-local snapshot backend.

Useful for tests and throwaway runs. ``replace_all`` swaps one reference,
which is atomic, so it offers the same all-or-nothing guarantee as the
SQLite engine (but nothing survives a restart).
"""

from __future__ import annotations

import threading

from lead_api.adapters.storage.base import AbstractSnapshotBackend
from lead_api.schemas.leads import Snapshot


class InMemorySnapshotBackend(AbstractSnapshotBackend):
    """Keep the persisted snapshot in memory."""

    def __init__(self, initial: Snapshot | None = None) -> None:
        self._snapshot = initial or Snapshot()
        self._lock = threading.Lock()
        self.writes = 0

    def load(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    def replace_all(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._snapshot = snapshot
            self.writes += 1

    def is_empty(self) -> bool:
        return self.load().is_empty
