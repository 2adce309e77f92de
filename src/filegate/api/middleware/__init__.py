"""HTTP middleware for filegate."""

from filegate.api.middleware.correlation import CorrelationMiddleware
from filegate.api.middleware.cors import CORSConfig, add_cors_middleware
from filegate.api.middleware.rate_limit import (
    RateLimitConfig,
    RateLimitMiddleware,
    SlidingWindowRateLimiter,
)
from filegate.api.middleware.security_headers import DEFAULT_API_CSP, SecurityHeadersMiddleware

__all__ = [
    "CORSConfig",
    "CorrelationMiddleware",
    "DEFAULT_API_CSP",
    "RateLimitConfig",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
    "SlidingWindowRateLimiter",
    "add_cors_middleware",
]
