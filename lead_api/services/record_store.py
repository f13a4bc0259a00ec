"""Authoritative holder of the lead snapshot.

All writes go through a single-worker executor, so they run one at a time
in submission order, each against the latest installed snapshot. A write
builds the next snapshot, persists it with the backend's all-or-nothing
``replace_all`` and only then swaps the in-memory reference. Readers just
grab the current reference and never wait on the writer.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime

from lead_api.adapters.duplicates.base import AbstractDuplicateDetector
from lead_api.adapters.storage.base import AbstractSnapshotBackend
from lead_api.adapters.storage.legacy_json import LegacyJsonSnapshotReader
from lead_api.core.errors import StoreUnavailableAppError
from lead_api.schemas.leads import ConsultationRecord, LeadRecord, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppendResult:
    """Outcome of an append: whether the record was stored, and the snapshot after it."""

    appended: bool
    snapshot: Snapshot


class RecordStore:
    """Serialize writes to the snapshot backend and serve the current snapshot.

    Attributes:
        backend: Durable snapshot storage.
        duplicate_detector: Strategy consulted inside the writer.
        legacy_reader: Optional source for the one-time legacy import.
    """

    def __init__(
        self,
        backend: AbstractSnapshotBackend,
        duplicate_detector: AbstractDuplicateDetector,
        *,
        legacy_reader: LegacyJsonSnapshotReader | None = None,
    ) -> None:
        self.backend = backend
        self.duplicate_detector = duplicate_detector
        self.legacy_reader = legacy_reader
        self._snapshot = Snapshot()
        self._started = False
        self._start_lock = threading.Lock()
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="record-store-writer")

    # ------------------------------------------------------------------ startup

    def migrate_legacy_if_empty(self) -> int:
        """Seed an empty backend from the legacy flat file.

        Idempotent: once the backend holds any record the legacy file is
        ignored. A missing or unparsable file counts as nothing to migrate.

        Returns:
            Number of records imported (0 when nothing was migrated).

        Raises:
            StoreUnavailableAppError: If the backend cannot be read or written.
        """
        if self.legacy_reader is None or not self.backend.is_empty():
            return 0

        legacy = self.legacy_reader.read()
        if legacy is None or legacy.is_empty:
            return 0

        self.backend.replace_all(legacy)
        logger.info(
            "store.legacy_migrated",
            extra={
                "consultations": len(legacy.consultations),
                "phone_leads": len(legacy.phone_leads),
            },
        )
        return len(legacy)

    def start(self) -> None:
        """Run the legacy migration and load the durable snapshot (once).

        Safe to call repeatedly and from several threads. If the backend is
        unreachable the store stays un-started and the next call retries.

        Raises:
            StoreUnavailableAppError: If the backend cannot be read.
        """
        if self._started:
            return
        with self._start_lock:
            if self._started:
                return
            try:
                self.migrate_legacy_if_empty()
                self._snapshot = self.backend.load()
            except StoreUnavailableAppError:
                logger.error("store.start_failed", exc_info=True)
                raise
            self._started = True
            logger.info(
                "store.started",
                extra={
                    "consultations": len(self._snapshot.consultations),
                    "phone_leads": len(self._snapshot.phone_leads),
                },
            )

    def close(self) -> None:
        """Wait for queued writes to finish and release the backend."""
        self._writer.shutdown(wait=True)
        self.backend.close()

    # ------------------------------------------------------------------ reads

    def current_snapshot(self) -> Snapshot:
        """Return the latest installed snapshot (never waits on the write queue)."""
        self.start()
        return self._snapshot

    # ------------------------------------------------------------------ writes

    def append(self, record: LeadRecord, *, now: datetime) -> AppendResult:
        """Append ``record`` unless it duplicates a recent one, then persist.

        Blocks until the write has been applied. Concurrent callers are
        queued and applied strictly in arrival order.

        Args:
            record: Normalized record to store.
            now: Acceptance time used for the duplicate window.

        Returns:
            AppendResult; ``appended`` is False for a duplicate.

        Raises:
            StoreUnavailableAppError: If persistence fails. The in-memory
                snapshot is left unchanged.
        """
        self.start()
        return self._writer.submit(self._apply_append, record, now).result()

    def _apply_append(self, record: LeadRecord, now: datetime) -> AppendResult:
        # Runs on the single writer thread only.
        current = self._snapshot
        kind = "consultation" if isinstance(record, ConsultationRecord) else "phone_lead"

        if self.duplicate_detector.is_duplicate(record, current, now):
            logger.info("store.duplicate_skipped", extra={"kind": kind, "record_id": record.id})
            return AppendResult(appended=False, snapshot=current)

        next_snapshot = current.with_record(record)
        try:
            self.backend.replace_all(next_snapshot)
        except StoreUnavailableAppError:
            logger.error(
                "store.persist_failed",
                extra={"kind": kind, "record_id": record.id, "snapshot_size": len(current)},
                exc_info=True,
            )
            raise

        self._snapshot = next_snapshot
        self.duplicate_detector.remember(record, now)
        logger.info(
            "store.appended",
            extra={"kind": kind, "record_id": record.id, "snapshot_size": len(next_snapshot)},
        )
        return AppendResult(appended=True, snapshot=next_snapshot)
