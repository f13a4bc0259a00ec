from __future__ import annotations

from lead_api.api.routes.admin import router as admin_router
from lead_api.api.routes.health import router as health_router
from lead_api.api.routes.leads import router as leads_router

__all__ = ["admin_router", "health_router", "leads_router"]
