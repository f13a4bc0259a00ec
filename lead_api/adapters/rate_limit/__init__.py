"""Rate limiting adapters.

Small abstraction layer so submissions can start with an in-memory limiter
and later migrate to a shared store without changing the service layer.
"""

from lead_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from lead_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]
