from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from lead_api.api.dependencies import get_intake_service
from lead_api.core.auth import verify_api_key
from lead_api.schemas.responses import ConsultationPage, LeadSummary, PhoneLeadPage
from lead_api.services.intake_service import LeadIntakeService

router = APIRouter(
    prefix="/api/admin/leads",
    tags=["Admin"],
    dependencies=[Depends(verify_api_key)],
)

# Paging and dates are validated by the service, so they arrive as raw strings.
OptionalParam = Annotated[str | None, Query()]


@router.get("/consultations", response_model=ConsultationPage)
def list_consultations(
    service: LeadIntakeService = Depends(get_intake_service),
    phone: OptionalParam = None,
    name: OptionalParam = None,
    source_page: Annotated[str | None, Query(alias="sourcePage")] = None,
    product: OptionalParam = None,
    start_at: Annotated[str | None, Query(alias="startAt")] = None,
    end_at: Annotated[str | None, Query(alias="endAt")] = None,
    page: OptionalParam = None,
    page_size: Annotated[str | None, Query(alias="pageSize")] = None,
) -> ConsultationPage:
    """Filtered, newest-first page of consultations.

    Text filters are case-insensitive substrings; ``product`` must equal one
    of the record's products; ``startAt``/``endAt`` are inclusive ISO-8601
    bounds on ``createdAt``.
    """
    return service.query_consultations(
        {
            "phone": phone,
            "name": name,
            "sourcePage": source_page,
            "product": product,
            "startAt": start_at,
            "endAt": end_at,
            "page": page,
            "pageSize": page_size,
        }
    )


@router.get("/phones", response_model=PhoneLeadPage)
def list_phone_leads(
    service: LeadIntakeService = Depends(get_intake_service),
    phone: OptionalParam = None,
    source: OptionalParam = None,
    start_at: Annotated[str | None, Query(alias="startAt")] = None,
    end_at: Annotated[str | None, Query(alias="endAt")] = None,
    page: OptionalParam = None,
    page_size: Annotated[str | None, Query(alias="pageSize")] = None,
) -> PhoneLeadPage:
    """Filtered, newest-first page of phone leads."""
    return service.query_phone_leads(
        {
            "phone": phone,
            "source": source,
            "startAt": start_at,
            "endAt": end_at,
            "page": page,
            "pageSize": page_size,
        }
    )


@router.get("/summary", response_model=LeadSummary)
def lead_summary(service: LeadIntakeService = Depends(get_intake_service)) -> LeadSummary:
    """Totals, today's counts and top sources/products."""
    return service.summary()
