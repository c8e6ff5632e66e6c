"""
Blue Whale Backend: Rate Limiting Middleware
==============================================

What:  Per-IP sliding-window limit of settings.rate_limit_requests requests
       per settings.rate_limit_window seconds.
How:   Keeps a deque of request timestamps per client IP in process memory.
       Timestamps older than the window are dropped on every request; a full
       window answers 429 with a Retry-After header.
       Runs inside RequestIDMiddleware, so the 429 body carries the request ID.

Sliding Window:
    t-window ─────────────────────────────── now
       │  x   x x      x    x   x x  x      │   count = 8
       oldest ──▶ expires at oldest + window  → Retry-After

The state is per process; running several uvicorn workers multiplies the
effective limit by the worker count.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bluewhale.config import settings
from bluewhale.exceptions import RateLimitExceededError
from bluewhale.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Inactive IPs are swept after this many requests
SWEEP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Uploads (/uploads/...) count like any other request; only health checks
    and the API docs are exempt.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, max_requests: int = None, window_seconds: int = None, **kwargs):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    def check(self, client_ip: str, now: float) -> int:
        """
        Record a request at `now`.

        Returns:
            0 when allowed, otherwise the seconds until a slot frees up
        """
        window_start = now - self.window_seconds
        timestamps = self._requests[client_ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            return int(timestamps[0] + self.window_seconds - now) + 1

        timestamps.append(now)
        self._seen += 1
        if self._seen % SWEEP_EVERY == 0:
            self._sweep(window_start)
        return 0

    def _sweep(self, window_start: float) -> None:
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Dropped rate-limit state for %d inactive IPs", len(inactive))

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        retry_after = self.check(client_ip, time.time())
        if retry_after:
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(self._requests[client_ip]),
                self.window_seconds,
            )
            error = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": error.message,
                    "details": error.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
