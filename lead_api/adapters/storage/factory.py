"""Factory functions for snapshot storage components."""

from lead_api.adapters.storage.base import AbstractSnapshotBackend
from lead_api.adapters.storage.in_memory import InMemorySnapshotBackend
from lead_api.adapters.storage.legacy_json import LegacyJsonSnapshotReader
from lead_api.adapters.storage.sqlite import SQLiteSnapshotBackend
from lead_api.core.config import StoreSettings, settings
from lead_api.core.errors import ValidationAppError


def create_snapshot_backend(store_settings: StoreSettings | None = None) -> AbstractSnapshotBackend:
    """Instantiate the configured persistence engine.

    Raises:
        ValidationAppError: If the backend name is not supported.
    """
    cfg = store_settings or settings.store

    if cfg.backend == "sqlite":
        return SQLiteSnapshotBackend(cfg.db_path, timeout_seconds=cfg.sqlite_timeout_seconds)

    if cfg.backend == "memory":
        return InMemorySnapshotBackend()

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{cfg.backend}'. Supported backends: sqlite, memory",
    )


def create_legacy_reader(store_settings: StoreSettings | None = None) -> LegacyJsonSnapshotReader | None:
    """Return the legacy snapshot reader, or ``None`` when migration is disabled."""
    cfg = store_settings or settings.store
    if cfg.legacy_json_path is None:
        return None
    return LegacyJsonSnapshotReader(cfg.legacy_json_path)
