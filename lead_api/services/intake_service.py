"""Lead intake service orchestrating normalization, throttling and storage.

A submission runs through:
1. Normalizer - validate and canonicalize the raw body into a record
2. Rate limiter - count the attempt against the client's window
3. Record store - duplicate check and append + persist, serialized

Reads validate their parameters first, then query the store's current
snapshot through the query engine.

Rejections are raised as typed ``AppError`` subclasses; callers (the HTTP
layer) translate them into responses.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, tzinfo
from typing import Any, Callable, Mapping
from zoneinfo import ZoneInfo

from lead_api.adapters.duplicates import create_duplicate_detector
from lead_api.adapters.rate_limit.base import AbstractRateLimiter
from lead_api.adapters.storage.factory import create_legacy_reader, create_snapshot_backend
from lead_api.core.config import AppSettings, StoreSettings, settings
from lead_api.core.errors import DuplicateSubmissionAppError, RateLimitedAppError
from lead_api.core.logging import hash_for_log
from lead_api.core.rate_limit import build_rate_limiter
from lead_api.schemas.leads import ConsultationRecord, LeadRecord
from lead_api.schemas.responses import (
    ConsultationFilters,
    ConsultationPage,
    LeadCounts,
    LeadSummary,
    Pagination,
    PhoneLeadFilters,
    PhoneLeadPage,
    ProductCount,
    RecentLeads,
    SourceCount,
    SourcePageCount,
    SubmissionAccepted,
    TopLists,
)
from lead_api.services import query_engine
from lead_api.services.normalizer import normalize_consultation, normalize_phone_lead
from lead_api.services.record_store import RecordStore
from lead_api.utils.timestamps import from_unix

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _pagination(page: query_engine.Page) -> Pagination:
    return Pagination(
        page=page.page,
        page_size=page.page_size,
        total=page.total,
        total_pages=page.total_pages,
        has_prev=page.has_prev,
        has_next=page.has_next,
    )


class LeadIntakeService:
    """Entry point for every lead operation exposed to the transport layer.

    Attributes:
        store: Serialized record store.
        rate_limiter: Per-client submission limiter, or None when disabled.
    """

    def __init__(
        self,
        store: RecordStore,
        rate_limiter: AbstractRateLimiter | None,
        *,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = _new_id,
        app_settings: AppSettings | None = None,
    ) -> None:
        """Initialize the service with its collaborators.

        Args:
            store: Record store holding the snapshot.
            rate_limiter: Limiter consulted for every submission (None disables it).
            clock: UNIX time source; acceptance timestamps come from it.
            id_factory: Source of record identifiers.
            app_settings: Pagination/timezone configuration; global settings if omitted.
        """
        self.store = store
        self.rate_limiter = rate_limiter
        self._clock = clock
        self._id_factory = id_factory
        self._settings = app_settings or settings.app
        self._tz: tzinfo | None = ZoneInfo(self._settings.timezone) if self._settings.timezone else None

    def start(self) -> None:
        self.store.start()

    def close(self) -> None:
        self.store.close()

    def _now(self) -> datetime:
        return from_unix(self._clock())

    # ------------------------------------------------------------ submissions

    def _enforce_rate_limit(self, client_key: str) -> None:
        if self.rate_limiter is None:
            return

        result = self.rate_limiter.consume(client_key)
        if result.allowed:
            return

        logger.info(
            "rate_limit.exceeded",
            extra={
                "key_hash": hash_for_log(client_key),
                "limit": result.limit,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        raise RateLimitedAppError(
            code="rate_limited",
            message="Too many submissions. Please try again later.",
            details={
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
                "retry_after": result.retry_after_seconds or 0,
            },
        )

    def _submit(self, record: LeadRecord, client_key: str, now: datetime) -> SubmissionAccepted:
        kind = "consultation" if isinstance(record, ConsultationRecord) else "phone_lead"

        self._enforce_rate_limit(client_key)

        result = self.store.append(record, now=now)
        if not result.appended:
            logger.info(
                "intake.duplicate",
                extra={"kind": kind, "phone_hash": hash_for_log(record.phone)},
            )
            raise DuplicateSubmissionAppError(
                code="duplicate_submission",
                message="This request was already received. We will contact you soon.",
            )

        logger.info(
            "intake.accepted",
            extra={"kind": kind, "record_id": record.id, "phone_hash": hash_for_log(record.phone)},
        )
        return SubmissionAccepted(id=record.id, created_at=record.created_at)

    def submit_consultation(self, raw: Mapping[str, Any], client_key: str) -> SubmissionAccepted:
        """Validate and store a consultation request.

        Args:
            raw: Decoded request body.
            client_key: Rate limit key (client address + endpoint).

        Returns:
            SubmissionAccepted for the stored record.

        Raises:
            ValidationAppError: Malformed name, phone or product list.
            RateLimitedAppError: Client exceeded its window budget.
            DuplicateSubmissionAppError: Same lead accepted within the window.
            StoreUnavailableAppError: Persistence failed; nothing was stored.
        """
        now = self._now()
        record = normalize_consultation(raw, record_id=self._id_factory(), created_at=now)
        return self._submit(record, client_key, now)

    def submit_phone_lead(self, raw: Mapping[str, Any], client_key: str) -> SubmissionAccepted:
        """Validate and store a phone lead. Raises like ``submit_consultation``."""
        now = self._now()
        record = normalize_phone_lead(raw, record_id=self._id_factory(), created_at=now)
        return self._submit(record, client_key, now)

    # ------------------------------------------------------------ reads

    def _page_request(self, params: Mapping[str, str | None]) -> query_engine.PageRequest:
        return query_engine.parse_page_request(
            params.get("page"),
            params.get("pageSize"),
            default_page_size=self._settings.default_page_size,
            max_page_size=self._settings.max_page_size,
        )

    def query_consultations(self, params: Mapping[str, str | None]) -> ConsultationPage:
        """Filter, sort and paginate consultations.

        Args:
            params: Query parameters (``phone``, ``name``, ``sourcePage``,
                ``product``, ``startAt``, ``endAt``, ``page``, ``pageSize``).

        Raises:
            ValidationAppError: Malformed pagination or date parameters.
        """
        page_request = self._page_request(params)
        time_range = query_engine.parse_time_range(params.get("startAt"), params.get("endAt"))
        criteria = query_engine.ConsultationFilter.from_params(
            phone=params.get("phone"),
            name=params.get("name"),
            source_page=params.get("sourcePage"),
            product=params.get("product"),
            time_range=time_range,
        )

        page = query_engine.filter_consultations(self.store.current_snapshot(), criteria, page_request)
        return ConsultationPage(
            filters=ConsultationFilters(
                phone=criteria.phone or None,
                name=criteria.name or None,
                source_page=criteria.source_page or None,
                product=criteria.product or None,
                start_at=time_range.start_at_raw,
                end_at=time_range.end_at_raw,
            ),
            pagination=_pagination(page),
            items=page.items,
        )

    def query_phone_leads(self, params: Mapping[str, str | None]) -> PhoneLeadPage:
        """Filter, sort and paginate phone leads (``phone``, ``source``, dates, paging)."""
        page_request = self._page_request(params)
        time_range = query_engine.parse_time_range(params.get("startAt"), params.get("endAt"))
        criteria = query_engine.PhoneLeadFilter.from_params(
            phone=params.get("phone"),
            source=params.get("source"),
            time_range=time_range,
        )

        page = query_engine.filter_phone_leads(self.store.current_snapshot(), criteria, page_request)
        return PhoneLeadPage(
            filters=PhoneLeadFilters(
                phone=criteria.phone or None,
                source=criteria.source or None,
                start_at=time_range.start_at_raw,
                end_at=time_range.end_at_raw,
            ),
            pagination=_pagination(page),
            items=page.items,
        )

    def summary(self) -> LeadSummary:
        """Aggregate counts over the whole snapshot."""
        agg = query_engine.summarize(self.store.current_snapshot(), self._now(), self._tz)
        return LeadSummary(
            totals=LeadCounts(consultations=agg.total_consultations, phone_leads=agg.total_phone_leads),
            today=LeadCounts(consultations=agg.today_consultations, phone_leads=agg.today_phone_leads),
            top=TopLists(
                consultation_by_source_page=[
                    SourcePageCount(source_page=k, count=v) for k, v in agg.consultations_by_source_page
                ],
                consultation_by_product=[
                    ProductCount(product=k, count=v) for k, v in agg.consultations_by_product
                ],
                phone_lead_by_source=[SourceCount(source=k, count=v) for k, v in agg.phone_leads_by_source],
            ),
        )

    def recent(self, limit: int | None = None) -> RecentLeads:
        """Newest records of each kind plus totals."""
        limit = limit or self._settings.recent_limit
        snapshot = self.store.current_snapshot()
        return RecentLeads(
            consultations_count=len(snapshot.consultations),
            phone_leads_count=len(snapshot.phone_leads),
            consultations=query_engine.newest(snapshot.consultations, limit),
            phone_leads=query_engine.newest(snapshot.phone_leads, limit),
        )


def build_intake_service(
    app_settings: AppSettings | None = None,
    store_settings: StoreSettings | None = None,
) -> LeadIntakeService:
    """Wire the service from configuration (backend, detector, limiter).

    The store is not started here; the application lifespan (or the first
    call) does that.
    """
    app_cfg = app_settings or settings.app
    store_cfg = store_settings or settings.store

    store = RecordStore(
        create_snapshot_backend(store_cfg),
        create_duplicate_detector(store_cfg),
        legacy_reader=create_legacy_reader(store_cfg),
    )
    rate_limiter = build_rate_limiter(app_cfg) if app_cfg.rate_limit_enabled else None
    return LeadIntakeService(store, rate_limiter, app_settings=app_cfg)
