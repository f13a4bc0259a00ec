"""Snapshot persistence interface.

The record store only ever persists whole snapshots through
``replace_all``; engines implement it as a single all-or-nothing operation
(e.g. one transaction that clears and re-inserts every row), so readers of
the durable store never observe half of a snapshot.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from lead_api.schemas.leads import Snapshot


class AbstractSnapshotBackend(ABC):
    """Durable storage for lead snapshots."""

    @abstractmethod
    def load(self) -> Snapshot:
        """Read the complete persisted snapshot.

        Raises:
            StoreUnavailableAppError: If the store cannot be read.
        """
        raise NotImplementedError

    @abstractmethod
    def replace_all(self, snapshot: Snapshot) -> None:
        """Atomically replace everything persisted with ``snapshot``.

        Raises:
            StoreUnavailableAppError: If the write fails; nothing is changed.
        """
        raise NotImplementedError

    @abstractmethod
    def is_empty(self) -> bool:
        """Return True when no record of either kind is persisted."""
        raise NotImplementedError

    def close(self) -> None:
        """Release engine resources (no-op by default)."""
