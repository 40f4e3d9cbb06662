"""
api/limiter.py -- Fixed-window, per-client request throttling.

Two pieces:
  RateLimiter          -- the counter table for one protected surface. Owns
                          its records and its background sweep task.
  RateLimitMiddleware  -- Starlette middleware that maps request paths to
                          limiters, short-circuits with 429 when a client is
                          over quota, and stamps X-RateLimit-* headers.

Algorithm (fixed window):
  On each request the client's record is created fresh if absent or if
  now >= reset_at. A client with count >= max_requests is rejected with
  Retry-After = ceil(reset_at - now). Otherwise count is incremented and the
  request proceeds. skip_successful / skip_failed refund one unit after the
  response status is known. Between the increment and the refund a client
  can briefly hold more quota than intended; that approximation is accepted.

Client identity comes from proxy headers (X-Forwarded-For, X-Real-IP,
CF-Connecting-IP). Clients with none of them share the "unknown" bucket.

Concurrency: hit(), refund() and sweep() each run under one threading.Lock,
so two requests from the same client cannot both take the last slot and the
sweep never observes a half-updated record. State is process-local; running
several workers gives each its own table.

Instances are explicit objects, not module globals: api/main.py builds them,
tests build isolated ones with a fake clock.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Sequence

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

logger = logging.getLogger("projectdesk.ratelimit")

UNKNOWN_CLIENT = "unknown"
DEFAULT_MESSAGE = "Too many requests, please try again later"

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateLimitConfig:
    window_seconds: float
    max_requests: int
    message: str = DEFAULT_MESSAGE
    skip_successful: bool = False
    skip_failed: bool = False

    @classmethod
    def preset(cls, name: str) -> "RateLimitConfig":
        try:
            return PRESETS[name]
        except KeyError:
            raise ValueError(f"Unknown rate limit preset {name!r}. Choose from: {', '.join(PRESETS)}") from None


PRESETS: dict[str, RateLimitConfig] = {
    # Strict -- brute-force protection for login and registration
    "auth": RateLimitConfig(
        window_seconds=15 * 60,
        max_requests=5,
        message="Too many authentication attempts, please try again in 15 minutes",
    ),
    "api": RateLimitConfig(
        window_seconds=15 * 60,
        max_requests=100,
        message="Too many API requests, please try again later",
    ),
    "read": RateLimitConfig(
        window_seconds=60,
        max_requests=60,
        message="Too many requests, please slow down",
    ),
    "write": RateLimitConfig(
        window_seconds=60,
        max_requests=20,
        message="Too many write operations, please slow down",
    ),
}

# ---------------------------------------------------------------------------
# Counter table
# ---------------------------------------------------------------------------


@dataclass
class RateLimitRecord:
    count: int
    reset_at: float  # epoch seconds


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int = 0


class RateLimiter:
    """Fixed-window counter table keyed by client identifier.

    Usage:
        limiter = RateLimiter(RateLimitConfig.preset("auth"))
        decision = limiter.hit("203.0.113.7")
        if not decision.allowed: ...
    """

    def __init__(
        self,
        config: RateLimitConfig,
        *,
        clock: Optional[Callable[[], float]] = None,
        sweep_interval: float = 60.0,
    ) -> None:
        self.config = config
        self.sweep_interval = sweep_interval
        self._clock = clock or time.time
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for key and decide whether it may proceed."""
        limit = self.config.max_requests
        with self._lock:
            now = self._clock()
            record = self._records.get(key)
            if record is None or now >= record.reset_at:
                record = RateLimitRecord(count=0, reset_at=now + self.config.window_seconds)
                self._records[key] = record

            if record.count >= limit:
                return RateLimitDecision(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=record.reset_at,
                    retry_after=max(1, math.ceil(record.reset_at - now)),
                )

            record.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=limit,
                remaining=limit - record.count,
                reset_at=record.reset_at,
            )

    def refund(self, key: str) -> None:
        """Give back one unit of quota, floor 0. No-op if the window already expired."""
        with self._lock:
            record = self._records.get(key)
            if record is not None and self._clock() < record.reset_at:
                record.count = max(0, record.count - 1)

    def sweep(self) -> int:
        """Drop every record whose window has expired. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, record in self._records.items() if now >= record.reset_at]
            for key in expired:
                del self._records[key]
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Background sweep lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic sweep. Must be called from inside a running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to unwind."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _sweep_loop(self) -> None:
        # CancelledError from stop() propagates out of asyncio.sleep and ends the loop.
        while True:
            await asyncio.sleep(self.sweep_interval)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limit sweep removed %d expired record(s)", removed)

    # ------------------------------------------------------------------
    # Response metadata
    # ------------------------------------------------------------------

    @staticmethod
    def headers(decision: RateLimitDecision) -> dict[str, str]:
        reset = datetime.fromtimestamp(decision.reset_at, tz=timezone.utc)
        headers = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": reset.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }
        if not decision.allowed:
            headers["Retry-After"] = str(decision.retry_after)
        return headers


def client_identifier(headers: Mapping[str, str]) -> str:
    """Derive the rate-limit key from proxy headers, in priority order."""
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()
    return UNKNOWN_CLIENT


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Apply the first limiter whose path prefix matches the request.

    Args:
        rules:      (path_prefix, limiter) pairs, checked in order.
        skip_paths: exact paths that are never throttled (health checks).
    """

    def __init__(
        self,
        app,
        rules: Sequence[tuple[str, RateLimiter]],
        skip_paths: Sequence[str] = (),
    ) -> None:
        super().__init__(app)
        self.rules = list(rules)
        self.skip_paths = set(skip_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in self.skip_paths:
            return await call_next(request)

        limiter = self._select(path)
        if limiter is None:
            return await call_next(request)

        key = client_identifier(request.headers)
        decision = limiter.hit(key)
        headers = limiter.headers(decision)

        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s on %s %s", key, request.method, path)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": {"code": "RATE_LIMIT_EXCEEDED", "message": limiter.config.message},
                },
                headers=headers,
            )

        config = limiter.config
        try:
            response = await call_next(request)
        except Exception:
            # Unhandled route error; the client will see a 500.
            if config.skip_failed:
                limiter.refund(key)
            raise
        response.headers.update(headers)

        if (config.skip_successful and response.status_code < 400) or (
            config.skip_failed and response.status_code >= 400
        ):
            limiter.refund(key)
        return response

    def _select(self, path: str) -> Optional[RateLimiter]:
        for prefix, limiter in self.rules:
            if path.startswith(prefix):
                return limiter
        return None
