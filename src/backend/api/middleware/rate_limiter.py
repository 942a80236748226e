"""Sliding-window rate limiting.

Public signing routes are the only unauthenticated surface that touches
documents, so they get their own tight per-IP budget: anyone guessing
tokens burns through it quickly. Owner routes share a looser budget.
"""

from __future__ import annotations

import asyncio
import contextlib
import time

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from api.middleware.request_context import client_address, get_request_id, loggable_path
from core.constants import get_settings
from models.error_models import ErrorCode, ErrorResponse
from utils.logger import logger

WINDOW_SECONDS = 60.0

SIGNING_PREFIX = "/api/v1/sign/"
HEALTH_PREFIX = "/api/v1/health"


@dataclass(frozen=True)
class Tier:
    name: str
    requests_per_minute: int


SIGNING_TIER = Tier("signing", requests_per_minute=30)
OWNER_TIER = Tier("owner", requests_per_minute=120)


def tier_for_path(path: str) -> Tier | None:
    """Budget a path is charged against, or None when it is never limited."""
    if path.startswith(HEALTH_PREFIX):
        return None
    if path.startswith(SIGNING_PREFIX):
        return SIGNING_TIER
    return OWNER_TIER


class SlidingWindowRateLimiter:
    """Per-client request timestamps over the last minute, kept in memory."""

    def __init__(self, cleanup_interval: float = 60.0) -> None:
        self._hits: dict[tuple[str, str], deque[float]] = {}
        self._lock = asyncio.Lock()
        self._cleanup_interval = cleanup_interval
        self._cleanup_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Rate limiter cleanup task started")

    async def stop(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None
            logger.info("Rate limiter cleanup task stopped")

    async def hit(self, client: str, tier: Tier, now: float | None = None) -> tuple[bool, dict[str, str]]:
        """Record one request and report whether it fits the tier's budget.

        Returns:
            (allowed, headers) where headers are the X-RateLimit-* values
            to attach to the response either way.
        """
        now = time.monotonic() if now is None else now
        async with self._lock:
            hits = self._hits.setdefault((tier.name, client), deque())
            _drop_older_than(hits, now - WINDOW_SECONDS)

            allowed = len(hits) < tier.requests_per_minute
            if allowed:
                hits.append(now)
            reset = int(hits[0] + WINDOW_SECONDS - now) + 1 if hits else int(WINDOW_SECONDS)

        headers = {
            "X-RateLimit-Limit": str(tier.requests_per_minute),
            "X-RateLimit-Remaining": str(max(0, tier.requests_per_minute - len(hits))),
            "X-RateLimit-Reset": str(reset),
        }
        return allowed, headers

    async def prune(self, now: float | None = None) -> int:
        """Forget clients with no requests in the current window."""
        now = time.monotonic() if now is None else now
        async with self._lock:
            stale = []
            for key, hits in self._hits.items():
                _drop_older_than(hits, now - WINDOW_SECONDS)
                if not hits:
                    stale.append(key)
            for key in stale:
                del self._hits[key]
        return len(stale)

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            removed = await self.prune()
            if removed:
                logger.debug(f"Rate limiter pruned {removed} idle clients")


def _drop_older_than(hits: deque[float], cutoff: float) -> None:
    while hits and hits[0] <= cutoff:
        hits.popleft()


_rate_limiter: SlidingWindowRateLimiter | None = None


def get_rate_limiter() -> SlidingWindowRateLimiter:
    global _rate_limiter  # noqa: PLW0603
    if _rate_limiter is None:
        _rate_limiter = SlidingWindowRateLimiter()
    return _rate_limiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Answers 429 once a client exceeds its tier; decorates every limited response."""

    def __init__(self, app: Callable[..., Any], rate_limiter: SlidingWindowRateLimiter | None = None) -> None:
        super().__init__(app)
        self._limiter = rate_limiter or get_rate_limiter()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        tier = tier_for_path(path)
        if tier is None or not get_settings().rate_limit_enabled:
            return await call_next(request)

        client = client_address(request)
        allowed, headers = await self._limiter.hit(client, tier)

        if allowed:
            response = await call_next(request)
        else:
            logger.warning(f"Rate limit exceeded on {tier.name} tier", client=client, path=loggable_path(path))
            error = ErrorResponse(
                code=ErrorCode.RATE_LIMITED,
                message="Too many requests. Please try again later.",
                request_id=get_request_id(),
                path=path,
            )
            response = JSONResponse(status_code=429, content=error.to_dict())
            response.headers["Retry-After"] = headers["X-RateLimit-Reset"]

        response.headers.update(headers)
        return response
