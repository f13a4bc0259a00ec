"""Duplicate detection by scanning the stored history.

Because it looks at persisted records, suppression survives restarts. The
scan is linear in the size of the collection being written to.
"""

from __future__ import annotations

from datetime import datetime

from lead_api.adapters.duplicates.base import AbstractDuplicateDetector, equality_key, within_window
from lead_api.schemas.leads import ConsultationRecord, LeadRecord, Snapshot
from lead_api.utils.timestamps import parse_timestamp


class SnapshotDuplicateDetector(AbstractDuplicateDetector):
    """Match against every record of the same kind in the snapshot."""

    def is_duplicate(self, record: LeadRecord, snapshot: Snapshot, now: datetime) -> bool:
        key = equality_key(record)
        history = (
            snapshot.consultations
            if isinstance(record, ConsultationRecord)
            else snapshot.phone_leads
        )
        return any(
            equality_key(prior) == key
            and within_window(parse_timestamp(prior.created_at), now, self.window)
            for prior in history
        )
