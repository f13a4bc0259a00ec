"""Pydantic schemas for API responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lead_api.schemas.leads import ConsultationRecord, PhoneLeadRecord


class _Response(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmissionAccepted(_Response):
    """Returned with HTTP 201 when a lead was stored."""

    ok: bool = Field(True, description="Always true for accepted submissions.")
    id: str = Field(..., description="Identifier assigned to the new record.")
    created_at: str = Field(..., description="Acceptance timestamp (ISO-8601, UTC).")
    message: str = Field("Submitted successfully.", description="Human-readable confirmation.")


class Pagination(_Response):
    page: int = Field(..., description="Page actually returned (clamped to the last page).")
    page_size: int
    total: int = Field(..., description="Number of records matching the filters.")
    total_pages: int
    has_prev: bool
    has_next: bool


class ConsultationFilters(_Response):
    """Filters applied to a consultation listing (null when not given)."""

    phone: str | None = None
    name: str | None = None
    source_page: str | None = None
    product: str | None = None
    start_at: str | None = None
    end_at: str | None = None


class PhoneLeadFilters(_Response):
    """Filters applied to a phone lead listing (null when not given)."""

    phone: str | None = None
    source: str | None = None
    start_at: str | None = None
    end_at: str | None = None


class ConsultationPage(_Response):
    ok: bool = True
    filters: ConsultationFilters
    pagination: Pagination
    items: list[ConsultationRecord] = Field(default_factory=list)


class PhoneLeadPage(_Response):
    ok: bool = True
    filters: PhoneLeadFilters
    pagination: Pagination
    items: list[PhoneLeadRecord] = Field(default_factory=list)


class SourcePageCount(_Response):
    source_page: str
    count: int


class ProductCount(_Response):
    product: str
    count: int


class SourceCount(_Response):
    source: str
    count: int


class LeadCounts(_Response):
    consultations: int
    phone_leads: int


class TopLists(_Response):
    consultation_by_source_page: list[SourcePageCount] = Field(default_factory=list)
    consultation_by_product: list[ProductCount] = Field(default_factory=list)
    phone_lead_by_source: list[SourceCount] = Field(default_factory=list)


class LeadSummary(_Response):
    """Totals, same-day counts and most frequent sources/products."""

    ok: bool = True
    totals: LeadCounts
    today: LeadCounts
    top: TopLists


class RecentLeads(_Response):
    """Newest records of each kind, most recently stored first."""

    ok: bool = True
    consultations_count: int
    phone_leads_count: int
    consultations: list[ConsultationRecord] = Field(default_factory=list)
    phone_leads: list[PhoneLeadRecord] = Field(default_factory=list)
