"""Read-side functions over a lead snapshot.

Everything here is pure: parameters are validated up front (before any
filtering), then records are filtered, sorted newest first and sliced into
a page. Aggregations count over the whole snapshot.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Generic, Iterable, Sequence, TypeVar

from lead_api.core.errors import ValidationAppError
from lead_api.schemas.leads import ConsultationRecord, PhoneLeadRecord, Snapshot
from lead_api.services.normalizer import (
    MAX_NAME_CHARS,
    MAX_PHONE_CHARS,
    MAX_PRODUCT_CHARS,
    MAX_SOURCE_CHARS,
    MAX_TIMESTAMP_CHARS,
)
from lead_api.utils.text_normalizer import normalize_text
from lead_api.utils.timestamps import EPOCH, parse_timestamp

T = TypeVar("T", ConsultationRecord, PhoneLeadRecord)

MAX_PAGE = 1_000_000
_DIGITS = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = 20


@dataclass(frozen=True)
class TimeRange:
    """Inclusive ``createdAt`` bounds; either side may be open."""

    start_at: datetime | None = None
    end_at: datetime | None = None
    start_at_raw: str | None = None
    end_at_raw: str | None = None

    @property
    def is_open(self) -> bool:
        return self.start_at is None and self.end_at is None

    def contains(self, created_at: str) -> bool:
        if self.is_open:
            return True
        ts = parse_timestamp(created_at)
        if ts is None:
            return False
        if self.start_at is not None and ts < self.start_at:
            return False
        if self.end_at is not None and ts > self.end_at:
            return False
        return True


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_prev: bool
    has_next: bool


def _parse_bounded_int(value: str | int | None, *, name: str, default: int, maximum: int) -> int:
    if value is None or value == "":
        return default
    if not _DIGITS.fullmatch(str(value)):
        raise ValidationAppError(
            code="invalid_pagination",
            message=f"{name} must be a positive integer.",
            details={"field": name, "actual_value": str(value)[:20]},
        )
    parsed = int(value)
    if parsed < 1 or parsed > maximum:
        raise ValidationAppError(
            code="invalid_pagination",
            message=f"{name} must be between 1 and {maximum}.",
            details={"field": name, "min_value": 1, "max_value": maximum, "actual_value": parsed},
        )
    return parsed


def parse_page_request(
    page: str | int | None,
    page_size: str | int | None,
    *,
    default_page_size: int = 20,
    max_page_size: int = 100,
) -> PageRequest:
    """Validate ``page`` (1..1 000 000) and ``pageSize`` (1..max_page_size).

    Raises:
        ValidationAppError: ``invalid_pagination``.
    """
    return PageRequest(
        page=_parse_bounded_int(page, name="page", default=1, maximum=MAX_PAGE),
        page_size=_parse_bounded_int(
            page_size, name="pageSize", default=default_page_size, maximum=max_page_size
        ),
    )


def _parse_bound(value: str | None, name: str) -> tuple[datetime | None, str | None]:
    raw = normalize_text(value, MAX_TIMESTAMP_CHARS)
    if not raw:
        return None, None
    parsed = parse_timestamp(raw)
    if parsed is None:
        raise ValidationAppError(
            code="invalid_date",
            message=f"{name} must be an ISO-8601 timestamp.",
            details={"field": name},
        )
    return parsed, raw


def parse_time_range(start_at: str | None, end_at: str | None) -> TimeRange:
    """Validate the optional ``startAt``/``endAt`` bounds.

    Raises:
        ValidationAppError: ``invalid_date`` for an unparsable bound,
            ``invalid_date_range`` when ``startAt`` is after ``endAt``.
    """
    start, start_raw = _parse_bound(start_at, "startAt")
    end, end_raw = _parse_bound(end_at, "endAt")
    if start is not None and end is not None and start > end:
        raise ValidationAppError(
            code="invalid_date_range",
            message="startAt must not be later than endAt.",
            details={"field": "startAt"},
        )
    return TimeRange(start_at=start, end_at=end, start_at_raw=start_raw, end_at_raw=end_raw)


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in haystack.lower()


@dataclass(frozen=True)
class ConsultationFilter:
    """Predicates for consultation listings; empty values match everything."""

    phone: str = ""
    name: str = ""
    source_page: str = ""
    product: str = ""
    time_range: TimeRange = field(default_factory=TimeRange)

    @classmethod
    def from_params(
        cls,
        *,
        phone: str | None = None,
        name: str | None = None,
        source_page: str | None = None,
        product: str | None = None,
        time_range: TimeRange | None = None,
    ) -> ConsultationFilter:
        return cls(
            phone=normalize_text(phone, MAX_PHONE_CHARS),
            name=normalize_text(name, MAX_NAME_CHARS),
            source_page=normalize_text(source_page, MAX_SOURCE_CHARS),
            product=normalize_text(product, MAX_PRODUCT_CHARS),
            time_range=time_range or TimeRange(),
        )

    def matches(self, record: ConsultationRecord) -> bool:
        if self.phone and not _contains(record.phone, self.phone):
            return False
        if self.name and not _contains(record.name, self.name):
            return False
        if self.source_page and not _contains(record.source_page, self.source_page):
            return False
        if self.product and self.product not in record.intention_products:
            return False
        return self.time_range.contains(record.created_at)


@dataclass(frozen=True)
class PhoneLeadFilter:
    """Predicates for phone lead listings; empty values match everything."""

    phone: str = ""
    source: str = ""
    time_range: TimeRange = field(default_factory=TimeRange)

    @classmethod
    def from_params(
        cls,
        *,
        phone: str | None = None,
        source: str | None = None,
        time_range: TimeRange | None = None,
    ) -> PhoneLeadFilter:
        return cls(
            phone=normalize_text(phone, MAX_PHONE_CHARS),
            source=normalize_text(source, MAX_SOURCE_CHARS),
            time_range=time_range or TimeRange(),
        )

    def matches(self, record: PhoneLeadRecord) -> bool:
        if self.phone and not _contains(record.phone, self.phone):
            return False
        if self.source and not _contains(record.source, self.source):
            return False
        return self.time_range.contains(record.created_at)


def _sort_key(record: ConsultationRecord | PhoneLeadRecord) -> datetime:
    return parse_timestamp(record.created_at) or EPOCH


def sort_newest_first(records: Iterable[T]) -> list[T]:
    """Sort by ``createdAt`` descending; unparsable timestamps sort as the epoch.

    The sort is stable, so records with equal timestamps keep their stored order.
    """
    return sorted(records, key=_sort_key, reverse=True)


def paginate(items: Sequence[T], request: PageRequest) -> Page[T]:
    """Slice ``items`` into the requested page, clamping out-of-range pages.

    A page past the end returns the last page; with no items at all the
    result is page 1 of 0.
    """
    total = len(items)
    total_pages = math.ceil(total / request.page_size) if total else 0
    page = 1 if total_pages == 0 else min(request.page, total_pages)
    offset = (page - 1) * request.page_size

    return Page(
        items=list(items[offset : offset + request.page_size]),
        page=page,
        page_size=request.page_size,
        total=total,
        total_pages=total_pages,
        has_prev=page > 1 and total_pages > 0,
        has_next=page < total_pages,
    )


def filter_consultations(
    snapshot: Snapshot, criteria: ConsultationFilter, request: PageRequest
) -> Page[ConsultationRecord]:
    matches = [r for r in snapshot.consultations if criteria.matches(r)]
    return paginate(sort_newest_first(matches), request)


def filter_phone_leads(
    snapshot: Snapshot, criteria: PhoneLeadFilter, request: PageRequest
) -> Page[PhoneLeadRecord]:
    matches = [r for r in snapshot.phone_leads if criteria.matches(r)]
    return paginate(sort_newest_first(matches), request)


# ---------------------------------------------------------------- aggregates


@dataclass(frozen=True)
class LeadAggregates:
    total_consultations: int
    total_phone_leads: int
    today_consultations: int
    today_phone_leads: int
    consultations_by_source_page: list[tuple[str, int]]
    consultations_by_product: list[tuple[str, int]]
    phone_leads_by_source: list[tuple[str, int]]


def count_today(
    records: Iterable[ConsultationRecord | PhoneLeadRecord],
    now: datetime,
    tz: tzinfo | None = None,
) -> int:
    """Count records created between local midnight and ``now`` (inclusive).

    Args:
        records: Records to count.
        now: Aware "current" time.
        tz: Calendar timezone; the system local zone when ``None``.
    """
    local_now = now.astimezone(tz)
    midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    count = 0
    for record in records:
        ts = parse_timestamp(record.created_at)
        if ts is not None and midnight <= ts <= now:
            count += 1
    return count


def summarize(snapshot: Snapshot, now: datetime, tz: tzinfo | None = None) -> LeadAggregates:
    """Group-count the snapshot, most frequent first.

    Consultations are counted by ``sourcePage`` and once per product per
    record; phone leads by ``source``.
    """
    by_source_page: Counter[str] = Counter()
    by_product: Counter[str] = Counter()
    for record in snapshot.consultations:
        by_source_page[record.source_page or "unknown"] += 1
        by_product.update(record.intention_products)

    by_source: Counter[str] = Counter(r.source or "unknown" for r in snapshot.phone_leads)

    return LeadAggregates(
        total_consultations=len(snapshot.consultations),
        total_phone_leads=len(snapshot.phone_leads),
        today_consultations=count_today(snapshot.consultations, now, tz),
        today_phone_leads=count_today(snapshot.phone_leads, now, tz),
        consultations_by_source_page=by_source_page.most_common(),
        consultations_by_product=by_product.most_common(),
        phone_leads_by_source=by_source.most_common(),
    )


def newest(records: Sequence[T], limit: int) -> list[T]:
    """Return the last ``limit`` stored records, most recently stored first."""
    return list(reversed(records[-limit:])) if limit > 0 else []


__all__ = [
    "ConsultationFilter",
    "LeadAggregates",
    "Page",
    "PageRequest",
    "PhoneLeadFilter",
    "TimeRange",
    "count_today",
    "filter_consultations",
    "filter_phone_leads",
    "newest",
    "paginate",
    "parse_page_request",
    "parse_time_range",
    "sort_newest_first",
    "summarize",
]
