"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Every error carries a class-level ``reason`` naming its rejection family
(``invalid_input``, ``rate_limited``, ``duplicate_submission``,
``store_unavailable``) next to the finer-grained, per-instance ``code``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent without forcing every
    error to populate all of them.
    """

    field: str
    hint: str
    min_value: int
    max_value: int
    actual_value: Any
    max_bytes: int
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    window_seconds: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    reason: ClassVar[str] = "internal_error"

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when submitted fields or query parameters are malformed."""

    reason = "invalid_input"


class PayloadTooLargeAppError(ValidationAppError):
    """Raised when a request body exceeds the configured size cap."""


class RateLimitedAppError(AppError):
    """Raised when a client exceeds its submission budget for the window."""

    reason = "rate_limited"


class DuplicateSubmissionAppError(AppError):
    """Raised when an equivalent lead was accepted within the duplicate window."""

    reason = "duplicate_submission"


class StoreUnavailableAppError(AppError):
    """Raised when the durable store cannot be read or written."""

    reason = "store_unavailable"


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""

    reason = "unauthorized"
