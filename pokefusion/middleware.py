"""HTTP middleware: request logging, URL length limit, fixed-window rate limit."""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """Counts hits per client in fixed windows of ``window`` seconds."""

    def __init__(self, max_requests: int, window: float):
        self.max_requests = max_requests
        self.window = window
        self._lock = threading.Lock()
        self._hits: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str, now: Optional[float] = None) -> Tuple[bool, int]:
        """Record one request; returns (allowed, seconds until the window resets)."""
        now = time.monotonic() if now is None else now
        with self._lock:
            start, count = self._hits.get(key, (now, 0))
            if now - start >= self.window:
                start, count = now, 0
            count += 1
            self._hits[key] = (start, count)
            if len(self._hits) > 10_000:
                self._prune(now)
        retry_after = max(1, math.ceil(start + self.window - now))
        return count <= self.max_requests, retry_after

    def _prune(self, now: float) -> None:
        stale = [k for k, (start, _) in self._hits.items() if now - start >= self.window]
        for k in stale:
            del self._hits[k]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def install_middleware(app: FastAPI, *, limiter: FixedWindowRateLimiter | None, max_url_length: int) -> None:
    # registered last runs first: logging wraps the size check wraps the limiter

    if limiter is not None and limiter.max_requests > 0:
        @app.middleware("http")
        async def rate_limit(request: Request, call_next):
            if not request.url.path.startswith("/api/"):
                return await call_next(request)
            allowed, retry_after = limiter.hit(_client(request))
            if not allowed:
                logger.warning("Rate limit exceeded for IP: %s", _client(request))
                return JSONResponse(
                    status_code=429,
                    headers={"Retry-After": str(retry_after)},
                    content={
                        "success": False,
                        "error": "Too many requests",
                        "message": f"Maximum {limiter.max_requests} requests per {int(limiter.window)} seconds",
                        "retryAfter": retry_after,
                    },
                )
            return await call_next(request)

    @app.middleware("http")
    async def url_size_limit(request: Request, call_next):
        length = len(str(request.url))
        if length > max_url_length:
            logger.warning("URL size limit exceeded: %d bytes (max: %d)", length, max_url_length)
            return JSONResponse(
                status_code=414,
                content={
                    "success": False,
                    "error": "URL too long",
                    "message": f"URL length ({length} bytes) exceeds maximum allowed size ({max_url_length} bytes)",
                    "limit": f"{max_url_length} bytes",
                },
            )
        return await call_next(request)

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s - %s %d (%.0fms)",
            request.method, request.url.path, _client(request),
            response.status_code, (time.perf_counter() - started) * 1000,
        )
        return response
