"""Rate limiting for the TaskTrail API."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple

from fastapi import Request, Response

from tasktrail.config import settings
from tasktrail.engine.errors import RateLimitExceededError
from tasktrail.observability.metrics import RATELIMIT_REJECTED, metrics

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRule:
    """Fixed-window limit applied per client."""

    calls: int  # Number of calls allowed
    window_seconds: int  # Time window in seconds


class RateLimiterBackend(ABC):
    """Abstract base class for rate limiter backends."""

    @abstractmethod
    async def check_rate_limit(
        self, key: str, max_calls: int, window_seconds: int
    ) -> Tuple[bool, int, int]:
        """
        Count one request against ``key`` in its current fixed window.

        Returns:
            Tuple of (allowed: bool, remaining: int, reset_time: int)
            - allowed: Whether request should proceed
            - remaining: Calls remaining in current window
            - reset_time: Unix timestamp when the window resets
        """
        pass

    @abstractmethod
    async def reset(self, key: str):
        """Reset rate limit for a specific key."""
        pass


class InMemoryRateLimiter(RateLimiterBackend):
    """
    In-memory fixed-window counter.

    Good for development and single-instance deployments.
    Not suitable for multi-instance production (no shared state).

    Expired windows are swept at most once per ``sweep_interval`` seconds,
    so memory stays bounded by the clients seen within one window.
    """

    def __init__(self, sweep_interval: float = 60.0):
        # key -> (window_end, count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = asyncio.Lock()
        self.sweep_interval = sweep_interval
        self._last_sweep = time.time()

    @property
    def tracked_keys(self) -> Set[str]:
        """Keys currently holding a window."""
        return set(self._windows)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (window_end, _) in self._windows.items() if now >= window_end]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now
        if expired:
            logger.debug(f"Purged {len(expired)} expired rate limit windows")

    async def check_rate_limit(
        self, key: str, max_calls: int, window_seconds: int
    ) -> Tuple[bool, int, int]:
        async with self._lock:
            now = time.time()
            if now - self._last_sweep >= self.sweep_interval:
                self._purge_expired(now)

            window_end, count = self._windows.get(key, (now + window_seconds, 0))

            # Start a fresh window once the current one has elapsed
            if now >= window_end:
                window_end, count = now + window_seconds, 0

            reset_time = int(window_end)
            if count >= max_calls:
                return False, 0, reset_time

            count += 1
            self._windows[key] = (window_end, count)
            return True, max(0, max_calls - count), reset_time

    async def reset(self, key: str):
        async with self._lock:
            self._windows.pop(key, None)


class RedisRateLimiter(RateLimiterBackend):
    """
    Redis-backed fixed-window counter (INCR + EXPIRE).

    Shared across instances. The increment and the expiry are two commands,
    so bursts at a window boundary are counted approximately.
    """

    def __init__(self, redis_url: str):
        import redis.asyncio as aioredis

        self.redis = aioredis.from_url(redis_url, decode_responses=True)
        logger.info(f"Redis rate limiter initialized: {redis_url}")

    async def check_rate_limit(
        self, key: str, max_calls: int, window_seconds: int
    ) -> Tuple[bool, int, int]:
        redis_key = f"throttle:{key}"
        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, window_seconds)

        ttl = await self.redis.ttl(redis_key)
        if ttl is None or ttl < 0:
            # Lost the expiry (e.g. crash between INCR and EXPIRE); restore it
            await self.redis.expire(redis_key, window_seconds)
            ttl = window_seconds
        reset_time = int(time.time()) + ttl

        allowed = count <= max_calls
        return allowed, max(0, max_calls - count), reset_time

    async def reset(self, key: str):
        await self.redis.delete(f"throttle:{key}")


def client_ip(request: Request) -> str:
    """Client address: first X-Forwarded-For hop, then X-Real-IP, then the peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


class RateLimiter:
    """
    Per-client fixed-window rate limiter with configurable backend.

    Usage:
        limiter = RateLimiter()
        await limiter.check_request(request, response)
    """

    def __init__(self, backend: Optional[RateLimiterBackend] = None):
        if backend:
            self.backend = backend
        elif settings.rate_limit_backend == "redis":
            if not settings.redis_url:
                raise ValueError("redis_url required for redis backend")
            self.backend = RedisRateLimiter(settings.redis_url)
        else:
            self.backend = InMemoryRateLimiter()
            logger.info("Using in-memory rate limiter (dev only)")

        # One rule for every endpoint, keyed by client
        self.rule = RateLimitRule(
            calls=settings.rate_limit_default_calls,
            window_seconds=settings.rate_limit_default_window_seconds,
        )

    async def check_request(
        self, request: Request, response: Optional[Response] = None
    ) -> None:
        """
        Count the request against its client's window.

        Sets X-RateLimit-* headers on ``response`` when allowed.

        Raises:
            RateLimitExceededError: if the client has used up its window
        """
        if not settings.rate_limit_active:
            return

        rule = self.rule
        key = f"ip:{client_ip(request)}"

        allowed, remaining, reset_time = await self.backend.check_rate_limit(
            key, rule.calls, rule.window_seconds
        )

        if not allowed:
            retry_after = max(1, reset_time - int(time.time()))
            metrics.inc_counter(RATELIMIT_REJECTED)
            logger.warning(
                f"Rate limit exceeded for {key}: {request.method} {request.url.path} "
                f"(retry after {retry_after}s)"
            )
            raise RateLimitExceededError(
                limit=rule.calls,
                window_seconds=rule.window_seconds,
                retry_after=retry_after,
                reset_time=reset_time,
            )

        if response is not None:
            response.headers["X-RateLimit-Limit"] = str(rule.calls)
            response.headers["X-RateLimit-Remaining"] = str(remaining)
            response.headers["X-RateLimit-Reset"] = str(reset_time)


# Singleton instance
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create rate limiter singleton."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter


async def rate_limit_dependency(request: Request, response: Response) -> None:
    """FastAPI dependency for rate limiting."""
    limiter = get_rate_limiter()
    await limiter.check_request(request, response)
