from __future__ import annotations

from fastapi import APIRouter

from lead_api.utils.timestamps import format_timestamp, utc_now

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: ``{"status": "ok", "time": <current UTC timestamp>}``.
    """

    return {"status": "ok", "time": format_timestamp(utc_now())}
