"""Snapshot storage adapters - swappable persistence engines for the record store."""

from lead_api.adapters.storage.base import AbstractSnapshotBackend
from lead_api.adapters.storage.factory import create_legacy_reader, create_snapshot_backend
from lead_api.adapters.storage.in_memory import InMemorySnapshotBackend
from lead_api.adapters.storage.legacy_json import LegacyJsonSnapshotReader
from lead_api.adapters.storage.sqlite import SQLiteSnapshotBackend

__all__ = [
    "AbstractSnapshotBackend",
    "InMemorySnapshotBackend",
    "LegacyJsonSnapshotReader",
    "SQLiteSnapshotBackend",
    "create_legacy_reader",
    "create_snapshot_backend",
]
