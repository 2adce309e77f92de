"""Request throttling for the /files API.

A Redis sorted set per (scope, client) holds the timestamps of recent
requests; a request is allowed while fewer than ``requests_per_window``
fall inside the trailing window. Uploads and reads are counted in separate
scopes so a burst of downloads cannot lock a client out of uploading.

Clients are identified by a hash of their bearer token when one is sent,
otherwise by the first ``X-Forwarded-For`` address or the peer address.

Redis being unreachable never blocks traffic: the request goes through
without rate limit headers and a warning is logged.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from filegate.api.errors import build_result
from filegate.config import Settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

UPLOAD_SCOPE = "upload"
READ_SCOPE = "read"


@dataclass(frozen=True)
class RateLimitConfig:
    requests_per_window: int = 100
    window_seconds: int = 60
    # Only paths under this prefix are throttled
    protected_prefix: str = "/files"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: int

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class SlidingWindowRateLimiter:
    """Sliding window counter over Redis sorted sets.

    Owns its Redis connection, opened on first use; ``aclose()`` releases it
    at application shutdown.
    """

    def __init__(self, config: RateLimitConfig, redis_url: str = "redis://localhost:6379/0"):
        self.config = config
        self.redis_url = redis_url
        self._redis: Redis | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> SlidingWindowRateLimiter:
        return cls(
            RateLimitConfig(
                requests_per_window=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window,
            ),
            redis_url=settings.redis_url,
        )

    def _connect(self) -> Redis:
        from redis.asyncio import from_url

        return from_url(self.redis_url)

    def _client(self) -> Redis:
        if self._redis is None:
            self._redis = self._connect()
        return self._redis

    async def hit(self, key: str) -> RateLimitDecision:
        """Record one request under ``key`` and decide whether it may proceed."""
        now = time.time()
        window = self.config.window_seconds

        pipe = self._client().pipeline()
        pipe.zremrangebyscore(key, 0, now - window)
        pipe.zcard(key)
        pipe.zadd(key, {str(now): now})
        pipe.expire(key, window + 1)
        _, seen, _, _ = await pipe.execute()

        limit = self.config.requests_per_window
        return RateLimitDecision(
            allowed=seen < limit,
            limit=limit,
            remaining=max(0, limit - seen - 1),
            reset_at=int(now) + window,
            retry_after=window,
        )

    async def aclose(self) -> None:
        if self._redis is not None:
            redis, self._redis = self._redis, None
            await redis.aclose()


def request_scope(request: Request) -> str:
    """Uploads and reads are throttled independently."""
    if request.method == "POST" and request.url.path.endswith("/upload"):
        return UPLOAD_SCOPE
    return READ_SCOPE


def client_identity(request: Request) -> str:
    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme == "Bearer" and token:
        return "token:" + hashlib.sha256(token.encode()).hexdigest()[:16]

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return "ip:" + forwarded.split(",")[0].strip()
    if request.client:
        return "ip:" + request.client.host
    return "ip:unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limiter: SlidingWindowRateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self.limiter.config.protected_prefix):
            return await call_next(request)

        key = f"ratelimit:{request_scope(request)}:{client_identity(request)}"
        try:
            decision = await self.limiter.hit(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return await call_next(request)

        if not decision.allowed:
            logger.info(f"Rate limit exceeded for {key}")
            return JSONResponse(
                status_code=429,
                content=build_result(
                    "TooManyRequests", "Rate limit exceeded. Please retry later."
                ).model_dump(by_alias=True),
                headers=decision.headers(),
            )

        response = await call_next(request)
        response.headers.update(decision.headers())
        return response
