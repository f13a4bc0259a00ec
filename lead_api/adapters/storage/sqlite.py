"""SQLite snapshot backend.

Each operation opens its own connection, so the backend can be used from
the store's writer thread and from request threads at the same time.
``replace_all`` runs ``DELETE`` + bulk ``INSERT`` for both tables inside one
``BEGIN IMMEDIATE`` transaction; any failure rolls the whole write back.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import closing
from pathlib import Path

from lead_api.adapters.storage.base import AbstractSnapshotBackend
from lead_api.core.errors import StoreUnavailableAppError
from lead_api.schemas.leads import Snapshot
from lead_api.services.normalizer import restore_snapshot

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS consultations (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  phone TEXT NOT NULL,
  intention_products TEXT NOT NULL,
  source_page TEXT NOT NULL,
  created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS phone_leads (
  id TEXT PRIMARY KEY,
  phone TEXT NOT NULL,
  source TEXT NOT NULL,
  created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_consultations_phone ON consultations(phone);
CREATE INDEX IF NOT EXISTS idx_consultations_created_at ON consultations(created_at);
CREATE INDEX IF NOT EXISTS idx_phone_leads_phone ON phone_leads(phone);
CREATE INDEX IF NOT EXISTS idx_phone_leads_created_at ON phone_leads(created_at);
"""

_SELECT_CONSULTATIONS = """
SELECT
  id,
  name,
  phone,
  intention_products AS intentionProducts,
  source_page AS sourcePage,
  created_at AS createdAt
FROM consultations
ORDER BY rowid ASC
"""

_SELECT_PHONE_LEADS = """
SELECT
  id,
  phone,
  source,
  created_at AS createdAt
FROM phone_leads
ORDER BY rowid ASC
"""

_INSERT_CONSULTATION = (
    "INSERT INTO consultations (id, name, phone, intention_products, source_page, created_at) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)
_INSERT_PHONE_LEAD = "INSERT INTO phone_leads (id, phone, source, created_at) VALUES (?, ?, ?, ?)"


def _unavailable(operation: str, exc: Exception) -> StoreUnavailableAppError:
    return StoreUnavailableAppError(
        code="store_unavailable",
        message="Lead storage is temporarily unavailable. Please try again.",
        details={"context": {"operation": operation, "error_type": type(exc).__name__}},
    )


class SQLiteSnapshotBackend(AbstractSnapshotBackend):
    """Persist snapshots in a SQLite database file.

    Args:
        db_path: Database file; parent directories are created on first use.
        timeout_seconds: Busy timeout passed to ``sqlite3.connect``.
    """

    def __init__(self, db_path: Path | str, *, timeout_seconds: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout_seconds
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly below
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if self._schema_ready:
                return
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            with closing(self._connect()) as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(_SCHEMA)
            self._schema_ready = True
            logger.debug("store.sqlite_schema_ready", extra={"db_file": self._db_path.name})

    def load(self) -> Snapshot:
        try:
            self._ensure_schema()
            with closing(self._connect()) as conn:
                consultations = [dict(row) for row in conn.execute(_SELECT_CONSULTATIONS)]
                phone_leads = [dict(row) for row in conn.execute(_SELECT_PHONE_LEADS)]
        except (sqlite3.Error, OSError) as exc:
            raise _unavailable("load", exc) from exc

        return restore_snapshot({"consultations": consultations, "phoneLeads": phone_leads})

    def replace_all(self, snapshot: Snapshot) -> None:
        try:
            self._ensure_schema()
            with closing(self._connect()) as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    conn.execute("DELETE FROM consultations")
                    conn.execute("DELETE FROM phone_leads")
                    conn.executemany(
                        _INSERT_CONSULTATION,
                        (
                            (
                                r.id,
                                r.name,
                                r.phone,
                                json.dumps(list(r.intention_products), ensure_ascii=False),
                                r.source_page,
                                r.created_at,
                            )
                            for r in snapshot.consultations
                        ),
                    )
                    conn.executemany(
                        _INSERT_PHONE_LEAD,
                        ((r.id, r.phone, r.source, r.created_at) for r in snapshot.phone_leads),
                    )
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
        except (sqlite3.Error, OSError) as exc:
            raise _unavailable("replace_all", exc) from exc

    def is_empty(self) -> bool:
        try:
            self._ensure_schema()
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT (SELECT COUNT(1) FROM consultations) AS consultations_count, "
                    "(SELECT COUNT(1) FROM phone_leads) AS phone_leads_count"
                ).fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise _unavailable("count", exc) from exc

        return not row["consultations_count"] and not row["phone_leads_count"]
