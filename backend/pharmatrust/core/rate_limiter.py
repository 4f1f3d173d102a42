"""
Per-caller request throttling for the API.

Each caller gets a sliding window of recent request times. Callers with a
bearer token are counted per token, so every till behind one shop IP has its
own budget; anonymous callers (login, register) are counted per IP.
State lives in process memory: with several workers the budget is per worker.
"""
import logging
import time
from collections import deque
from typing import Deque, Dict, Optional, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from pharmatrust.core.config import settings

logger = logging.getLogger(__name__)

UNTHROTTLED = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})
SWEEP_EVERY = 300  # seconds between dropping idle callers


class RateLimiter:
    def __init__(self, requests: int, window: int):
        self.requests = requests
        self.window = window
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = time.monotonic()

    def hit(self, key: str, now: Optional[float] = None) -> Tuple[bool, int]:
        """Record one request for ``key``. Returns (allowed, remaining in window)."""
        now = time.monotonic() if now is None else now
        if now - self._last_sweep > SWEEP_EVERY:
            self._sweep(now)

        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= now - self.window:
            hits.popleft()

        if len(hits) >= self.requests:
            return False, 0
        hits.append(now)
        return True, self.requests - len(hits)

    def reset(self):
        self._hits.clear()

    def _sweep(self, now: float):
        idle = [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - self.window]
        for key in idle:
            del self._hits[key]
        self._last_sweep = now
        logger.debug(f"Rate limiter swept {len(idle)} idle callers, {len(self._hits)} tracked")


rate_limiter = RateLimiter(settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS)


def caller_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.startswith("Bearer ") and len(auth) > 7:
        # JWT headers are identical across tokens; the signature tail is not
        return f"token:{auth[-16:]}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


def _limit_headers(remaining: int) -> Dict[str, str]:
    return {
        "X-RateLimit-Limit": str(rate_limiter.requests),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Window": str(rate_limiter.window),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in UNTHROTTLED or path.startswith(settings.UPLOAD_URL):
            return await call_next(request)

        key = caller_key(request)
        allowed, remaining = rate_limiter.hit(key)
        if not allowed:
            logger.warning(f"Throttled {key} on {request.method} {path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "success": False,
                    "message": f"Too many requests. Try again in {rate_limiter.window} seconds.",
                },
                headers={"Retry-After": str(rate_limiter.window), **_limit_headers(0)},
            )

        response = await call_next(request)
        response.headers.update(_limit_headers(remaining))
        return response
