"""Fixed-window rate limiting for the auth endpoints.

Counts requests per client IP per minute in Redis (INCR + EXPIRE):
    key = "ratelimit:{ip}:auth:{window}"

The client IP is the first X-Forwarded-For entry when present (reverse proxy
aware), else the socket peer. When Redis is unreachable the request is let
through and the failure is logged; login must not depend on Redis.
"""

import logging
import time

from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from config.settings import settings
from src.bh_common.errors import RateLimitError
from src.bh_common.redis_client import get_redis
from src.bh_common.response import error_response

logger = logging.getLogger(__name__)

AUTH_PATH_PREFIX = "/api/v1/auth/"
WINDOW_SECONDS = 60


def client_ip(request: Request, trust_proxy: bool | None = None) -> str:
    """Peer address, or the entry our own proxy appended to X-Forwarded-For.

    Only the right-most X-Forwarded-For entry is written by the proxy; the
    rest is whatever the client sent, so it is never used.
    """
    if trust_proxy is None:
        trust_proxy = settings.TRUST_PROXY_HEADERS
    if trust_proxy:
        appended = request.headers.get("x-forwarded-for", "").split(",")[-1].strip()
        if appended:
            return appended
    return request.client.host if request.client else "unknown"


async def check_rate_limit(
    redis: Redis, identity: str, group: str, limit: int, now: float | None = None
) -> int | None:
    """Count one hit. Returns None if allowed, else seconds until the window resets."""
    now = time.time() if now is None else now
    window = int(now // WINDOW_SECONDS)
    key = f"ratelimit:{identity}:{group}:{window}"

    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, WINDOW_SECONDS)
    if count > limit:
        return max(1, WINDOW_SECONDS - int(now % WINDOW_SECONDS))
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(AUTH_PATH_PREFIX):
            return await call_next(request)

        ip = client_ip(request)
        try:
            retry_after = await check_rate_limit(
                await get_redis(), ip, "auth", settings.RATE_LIMIT_AUTH_PER_MINUTE
            )
        except RedisError:
            logger.warning("Rate limiter unavailable, allowing %s", request.url.path)
            return await call_next(request)

        if retry_after is not None:
            logger.warning("Rate limit exceeded: ip=%s path=%s", ip, request.url.path)
            err = RateLimitError()
            body = error_response(err.code, err.message)
            body.request_id = getattr(request.state, "request_id", body.request_id)
            return JSONResponse(
                status_code=err.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
