"""Rate limiting wiring for the HTTP layer.

Keys are built from the client address plus the endpoint path, so the
consultation form and the phone form each get their own budget per client.
The decision itself is taken by the intake service after the submission
has been normalized.
"""

from __future__ import annotations

from fastapi import Request

from lead_api.adapters.rate_limit.base import AbstractRateLimiter
from lead_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from lead_api.core.config import AppSettings, settings

_IPV4_MAPPED_PREFIX = "::ffff:"


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Create the process-wide limiter from configuration.

    Args:
        app_settings: Optional override; defaults to global settings.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
    )


def get_client_ip(request: Request) -> str:
    """Resolve the originating client address.

    Honors the first hop of ``X-Forwarded-For`` (the service normally runs
    behind a reverse proxy) and unwraps IPv4-mapped IPv6 addresses.
    """

    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.strip():
        raw = forwarded.split(",")[0].strip()
    else:
        raw = request.client.host if request.client else "unknown"
    return raw[len(_IPV4_MAPPED_PREFIX):] if raw.startswith(_IPV4_MAPPED_PREFIX) else raw


def build_rate_limit_key(request: Request) -> str:
    """Build the limiter key for the current request (client + endpoint)."""

    return f"{get_client_ip(request)}:{request.url.path}"
