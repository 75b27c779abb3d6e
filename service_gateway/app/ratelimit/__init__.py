"""
Rate limiting package for the Gateway.

Holds the per-client windowed limiter and the middleware that enforces
request budgets on the API prefix and reports remaining quota in headers.
"""

from .sliding_window import (
    MAX_REQUESTS,
    WINDOW_MS,
    RateLimitDecision,
    RateLimitEntry,
    RateLimitMiddleware,
    SlidingWindowRateLimiter,
)

__all__ = [
    "MAX_REQUESTS",
    "WINDOW_MS",
    "RateLimitDecision",
    "RateLimitEntry",
    "RateLimitMiddleware",
    "SlidingWindowRateLimiter",
]
