"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → mapped HTTP status (400, 403, 409, 413, 429, 503)
- Policy rejections (rate limit, duplicates) are expected traffic and are
  logged at info, never as errors
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from lead_api.core.config import settings
from lead_api.core.errors import (
    AppError,
    AuthenticationAppError,
    DuplicateSubmissionAppError,
    PayloadTooLargeAppError,
    RateLimitedAppError,
    StoreUnavailableAppError,
)
from lead_api.core.logging import get_request_id

logger = logging.getLogger(__name__)


# Ordered: subclasses must come before their parents
_STATUS_BY_ERROR: tuple[tuple[type[AppError], int, int], ...] = (
    (PayloadTooLargeAppError, 413, logging.INFO),
    (RateLimitedAppError, 429, logging.INFO),
    (DuplicateSubmissionAppError, 409, logging.INFO),
    (StoreUnavailableAppError, 503, logging.ERROR),
    (AuthenticationAppError, 403, logging.WARNING),
)


def _classify(exc: AppError) -> tuple[int, int]:
    """Return (http_status, log_level) for a domain error."""
    for error_type, status_code, level in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code, level
    # ValidationAppError and any other client-side fault
    return 400, logging.INFO


def _rate_limit_headers(exc: RateLimitedAppError) -> dict[str, str]:
    details = exc.details or {}
    if not settings.app.rate_limit_include_headers or "retry_after" not in details:
        return {}
    return {
        "Retry-After": str(details["retry_after"]),
        "X-RateLimit-Limit": str(details.get("limit", "")),
        "X-RateLimit-Remaining": str(details.get("remaining", 0)),
        "X-RateLimit-Reset": str(details.get("reset_at", "")),
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.reason: Rejection family (invalid_input, rate_limited, ...)
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code, level = _classify(exc)

    logger.log(
        level,
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_reason": exc.reason,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "reason": exc.reason,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    headers = _rate_limit_headers(exc) if isinstance(exc, RateLimitedAppError) else {}

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message,
    so no stack traces or internal messages reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "reason": AppError.reason,
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
