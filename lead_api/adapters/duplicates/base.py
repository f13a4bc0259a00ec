"""Duplicate detection interface and equality keys.

Two submissions are "the same lead" when their equality keys match:

- consultation: ``(phone, sourcePage, sorted(intentionProducts))``
- phone lead: ``(phone, source)``

and the earlier one was accepted within the duplicate window.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Hashable

from lead_api.schemas.leads import ConsultationRecord, LeadRecord, Snapshot


def equality_key(record: LeadRecord) -> tuple[Hashable, ...]:
    """Build the deduplication key for a record (the kind is part of the key)."""
    if isinstance(record, ConsultationRecord):
        return (
            "consultation",
            record.phone,
            record.source_page,
            tuple(sorted(record.intention_products)),
        )
    return ("phone_lead", record.phone, record.source)


def within_window(accepted_at: datetime | None, now: datetime, window: timedelta) -> bool:
    """True when ``accepted_at`` is no more than ``window`` before ``now``.

    Unparsable timestamps (``None``) never count as recent.
    """
    if accepted_at is None:
        return False
    return now - accepted_at <= window


class AbstractDuplicateDetector(ABC):
    """Decide whether a prospective record re-submits a recent one.

    Both methods are called from the record store's serialized writer, with
    the snapshot the write is being applied against.
    """

    def __init__(self, *, window_seconds: float = 600) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._window = timedelta(seconds=window_seconds)

    @property
    def window(self) -> timedelta:
        return self._window

    @abstractmethod
    def is_duplicate(self, record: LeadRecord, snapshot: Snapshot, now: datetime) -> bool:
        """Return True if an equivalent record was accepted within the window."""
        raise NotImplementedError

    def remember(self, record: LeadRecord, now: datetime) -> None:
        """Note that ``record`` was accepted (and persisted) at ``now``."""
