"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from lead_api.services.intake_service import LeadIntakeService


def get_intake_service(request: Request) -> LeadIntakeService:
    """Return the service instance attached to the application at startup."""
    return request.app.state.intake_service
