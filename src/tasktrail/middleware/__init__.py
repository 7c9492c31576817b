"""Middleware components for TaskTrail API."""

from tasktrail.middleware.rate_limit import (
    InMemoryRateLimiter,
    RateLimiter,
    RateLimiterBackend,
    RateLimitRule,
    RedisRateLimiter,
    client_ip,
    get_rate_limiter,
    rate_limit_dependency,
)
from tasktrail.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "InMemoryRateLimiter",
    "RateLimiter",
    "RateLimiterBackend",
    "RateLimitRule",
    "RedisRateLimiter",
    "SecurityHeadersMiddleware",
    "client_ip",
    "get_rate_limiter",
    "rate_limit_dependency",
]
