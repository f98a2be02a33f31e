"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: Each IP gets a counter key like "eventwall:rl:{ip}:{bucket}:{minute}".
Ingestion (any POST: uploads, messages, comments) gets a stricter limit
than reads, so one excited guest can't flood every screen with comments.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 300, ingest_rpm: int = 30):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.ingest_rpm = ingest_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        # Try to get Redis — skip rate limiting if unavailable
        try:
            from eventwall.realtime.redis_pool import get_redis

            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_ingest = request.method == "POST"
        rpm = self.ingest_rpm if is_ingest else self.default_rpm

        window = int(time.time() // 60)
        bucket = "ingest" if is_ingest else "read"
        key = f"eventwall:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception:
            # Redis error — don't block the request
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
