"""Duplicate submission detectors.

``SnapshotDuplicateDetector`` scans persisted history (survives restarts);
``InMemoryDuplicateDetector`` keeps a key -> timestamp map (resets on
restart). Both give the same decisions while the process is running.
"""

from lead_api.adapters.duplicates.base import AbstractDuplicateDetector, equality_key
from lead_api.adapters.duplicates.in_memory import InMemoryDuplicateDetector
from lead_api.adapters.duplicates.snapshot_scan import SnapshotDuplicateDetector
from lead_api.core.config import StoreSettings, settings

__all__ = [
    "AbstractDuplicateDetector",
    "InMemoryDuplicateDetector",
    "SnapshotDuplicateDetector",
    "create_duplicate_detector",
    "equality_key",
]


def create_duplicate_detector(store_settings: StoreSettings | None = None) -> AbstractDuplicateDetector:
    """Instantiate the configured duplicate detection strategy."""
    cfg = store_settings or settings.store
    if cfg.duplicate_detector == "memory":
        return InMemoryDuplicateDetector(window_seconds=cfg.duplicate_window_seconds)
    return SnapshotDuplicateDetector(window_seconds=cfg.duplicate_window_seconds)
