"""
Per-client windowed rate limiter for the Gateway service.
"""

import asyncio
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shared.errors import AccessLayerException, RateLimitError, error_response
from shared.logging import get_logger, set_client_id

WINDOW_MS = 60_000
MAX_REQUESTS = 100
SWEEP_INTERVAL_SECONDS = 5 * 60


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class RateLimitEntry:
    """Request count for one client identifier within one window."""

    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request."""

    allowed: bool
    limit: int
    remaining: int
    reset: int

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class SlidingWindowRateLimiter:
    """In-process rate limiter keyed by client identifier.

    Each identifier gets a window that opens on its first request and lasts
    ``window_ms``. Expired entries are replaced on the next request and
    removed in bulk by a periodic sweep.
    """

    def __init__(
        self,
        window_ms: int = WINDOW_MS,
        max_requests: int = MAX_REQUESTS,
        sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock or _now_ms
        self._store: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._sweep_task: Optional[asyncio.Task] = None
        self.logger = get_logger("gateway.rate_limiter")

    def hit(self, client_id: str) -> RateLimitDecision:
        """Count one request for ``client_id`` and decide whether it may pass."""
        now = self._clock()
        with self._lock:
            entry = self._store.get(client_id)
            if entry is None or now > entry.reset_at:
                entry = RateLimitEntry(count=0, reset_at=now + self.window_ms)
                self._store[client_id] = entry

            entry.count += 1
            count = entry.count
            reset_at = entry.reset_at

        return RateLimitDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset=math.ceil(reset_at / 1000),
        )

    def get_entry(self, client_id: str) -> Optional[RateLimitEntry]:
        """Return a copy of the stored entry for ``client_id``, if any."""
        with self._lock:
            entry = self._store.get(client_id)
            if entry is None:
                return None
            return RateLimitEntry(count=entry.count, reset_at=entry.reset_at)

    def sweep(self) -> int:
        """Drop every entry whose window has expired. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [client_id for client_id, entry in self._store.items() if now > entry.reset_at]
            for client_id in expired:
                del self._store[client_id]

        if expired:
            self.logger.debug("Rate limit entries swept", removed=len(expired), remaining=len(self))
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def start(self):
        """Start the periodic sweep."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        self.logger.info("Rate limiter sweep started", interval_seconds=self.sweep_interval_seconds)

    async def stop(self):
        """Stop the periodic sweep."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

        self.logger.info("Rate limiter sweep stopped")

    async def _sweep_loop(self):
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                self.sweep()
            except Exception as e:
                self.logger.error("Rate limit sweep error", error=str(e))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware applied to the API path prefix."""

    def __init__(self, app, rate_limiter: SlidingWindowRateLimiter, path_prefix: str = "/api"):
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.path_prefix = path_prefix.rstrip("/")
        self.logger = get_logger("gateway.rate_limit_middleware")

    def _applies_to(self, path: str) -> bool:
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    async def dispatch(self, request: Request, call_next):
        if not self._applies_to(request.url.path):
            return await call_next(request)

        client_id = self.get_client_id(request)
        set_client_id(client_id)
        decision = self.rate_limiter.hit(client_id)

        if not decision.allowed:
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                path=request.url.path,
                limit=decision.limit,
            )
            response = error_response(RateLimitError())
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                self.logger.error(
                    "Unhandled exception",
                    path=request.url.path,
                    error=str(exc),
                    exc_info=True,
                )
                response = error_response(AccessLayerException("Internal server error"))

        # Quota headers go on every API response, errors included
        response.headers.update(decision.headers())
        return response

    @staticmethod
    def get_client_id(request: Request) -> str:
        """Extract the client identifier from proxy headers."""
        real_ip = request.headers.get("x-real-ip")
        if real_ip is not None:
            return real_ip

        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for is not None:
            return forwarded_for

        return "unknown"
