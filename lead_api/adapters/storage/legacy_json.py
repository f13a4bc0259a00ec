"""Reader for the legacy flat-file snapshot (``leads.json``).

Before the SQLite store, every record lived in one JSON document shaped
``{"consultations": [...], "phoneLeads": [...]}``. It is only read once,
to seed an empty store; a missing or broken file simply means there is
nothing to migrate.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from lead_api.schemas.leads import Snapshot
from lead_api.services.normalizer import restore_snapshot

logger = logging.getLogger(__name__)


class LegacyJsonSnapshotReader:
    """Load a legacy snapshot file, tolerating every read/parse failure."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Snapshot | None:
        """Return the parsed snapshot, or ``None`` when there is nothing usable."""
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.debug(
                "store.legacy_unreadable",
                extra={"legacy_file": self._path.name, "error_type": type(exc).__name__},
            )
            return None

        return restore_snapshot(raw)
