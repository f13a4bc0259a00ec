from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from lead_api.api.dependencies import get_intake_service
from lead_api.core.auth import verify_api_key
from lead_api.core.body_validation import read_json_object
from lead_api.core.rate_limit import build_rate_limit_key
from lead_api.schemas.responses import RecentLeads, SubmissionAccepted
from lead_api.services.intake_service import LeadIntakeService

router = APIRouter(prefix="/api/leads", tags=["Leads"])


@router.post(
    "/consultation",
    response_model=SubmissionAccepted,
    status_code=status.HTTP_201_CREATED,
)
async def submit_consultation(
    request: Request,
    service: LeadIntakeService = Depends(get_intake_service),
) -> SubmissionAccepted:
    """Store a consultation request from the website form.

    Body: ``{"name", "phone", "intentionProducts", "sourcePage"?}``.

    Raises:
        ValidationAppError: 400 for a malformed body or fields.
        PayloadTooLargeAppError: 413 when the body exceeds the size cap.
        RateLimitedAppError: 429 when the client exhausted its budget.
        DuplicateSubmissionAppError: 409 for a repeat within the window.
        StoreUnavailableAppError: 503 when persistence failed.
    """
    payload = await read_json_object(request)
    return await run_in_threadpool(service.submit_consultation, payload, build_rate_limit_key(request))


@router.post(
    "/phone",
    response_model=SubmissionAccepted,
    status_code=status.HTTP_201_CREATED,
)
async def submit_phone_lead(
    request: Request,
    service: LeadIntakeService = Depends(get_intake_service),
) -> SubmissionAccepted:
    """Store a bare phone lead. Body: ``{"phone", "source"?}``."""
    payload = await read_json_object(request)
    return await run_in_threadpool(service.submit_phone_lead, payload, build_rate_limit_key(request))


@router.get(
    "",
    response_model=RecentLeads,
    dependencies=[Depends(verify_api_key)],
)
def recent_leads(service: LeadIntakeService = Depends(get_intake_service)) -> RecentLeads:
    """Newest 50 records of each kind (most recently stored first) and totals."""
    return service.recent()
