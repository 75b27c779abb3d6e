"""
Unit tests for Gateway Rate Limiter.
"""

import asyncio
import math

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from service_gateway.app.ratelimit.sliding_window import (
    MAX_REQUESTS,
    WINDOW_MS,
    RateLimitMiddleware,
    SlidingWindowRateLimiter,
)


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: float = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float):
        self.now += ms


class TestSlidingWindowRateLimiter:
    """Test cases for SlidingWindowRateLimiter."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def rate_limiter(self, clock):
        """Create a limiter driven by the fake clock."""
        return SlidingWindowRateLimiter(clock=clock)

    def test_defaults(self):
        """Window and budget default to the named constants."""
        limiter = SlidingWindowRateLimiter()
        assert limiter.window_ms == WINDOW_MS == 60_000
        assert limiter.max_requests == MAX_REQUESTS == 100

    def test_first_request(self, rate_limiter, clock):
        """A fresh identifier starts a new window with one request counted."""
        decision = rate_limiter.hit("10.0.0.1")

        assert decision.allowed is True
        assert decision.limit == 100
        assert decision.remaining == 99
        assert decision.reset == math.ceil((clock.now + WINDOW_MS) / 1000)

    def test_remaining_decrements(self, rate_limiter):
        """Each request from the same identifier lowers remaining by one."""
        remaining = [rate_limiter.hit("10.0.0.1").remaining for _ in range(5)]
        assert remaining == [99, 98, 97, 96, 95]

    def test_rejects_after_budget(self, rate_limiter):
        """The 101st request within one window is rejected with zero remaining."""
        for _ in range(100):
            assert rate_limiter.hit("10.0.0.1").allowed is True

        decision = rate_limiter.hit("10.0.0.1")
        assert decision.allowed is False
        assert decision.remaining == 0

        assert rate_limiter.get_entry("10.0.0.1").count == 101

    def test_identifiers_are_independent(self, rate_limiter):
        """Different identifiers have separate windows."""
        for _ in range(100):
            rate_limiter.hit("10.0.0.1")

        assert rate_limiter.hit("10.0.0.1").allowed is False
        assert rate_limiter.hit("10.0.0.2").remaining == 99

    def test_window_expiry_resets_count(self, rate_limiter, clock):
        """A request after the window expires opens a new window."""
        for _ in range(101):
            rate_limiter.hit("10.0.0.1")

        clock.advance(WINDOW_MS)
        assert rate_limiter.hit("10.0.0.1").allowed is False

        clock.advance(1)
        decision = rate_limiter.hit("10.0.0.1")
        assert decision.allowed is True
        assert decision.remaining == 99

    def test_sweep_removes_only_expired(self, rate_limiter, clock):
        """sweep() drops entries whose window has passed."""
        rate_limiter.hit("old")
        clock.advance(30_000)
        rate_limiter.hit("new")
        clock.advance(30_001)

        removed = rate_limiter.sweep()

        assert removed == 1
        assert rate_limiter.get_entry("old") is None
        assert rate_limiter.get_entry("new") is not None
        assert len(rate_limiter) == 1

    def test_get_entry_returns_copy(self, rate_limiter):
        """Mutating a returned entry does not change the store."""
        rate_limiter.hit("10.0.0.1")
        entry = rate_limiter.get_entry("10.0.0.1")
        entry.count = 1000

        assert rate_limiter.get_entry("10.0.0.1").count == 1

    @pytest.mark.asyncio
    async def test_background_sweep(self, clock):
        """The periodic task sweeps expired entries until stopped."""
        rate_limiter = SlidingWindowRateLimiter(sweep_interval_seconds=0.01, clock=clock)
        rate_limiter.hit("10.0.0.1")
        clock.advance(WINDOW_MS + 1)

        await rate_limiter.start()
        assert rate_limiter.running is True
        await asyncio.sleep(0.05)
        await rate_limiter.stop()

        assert rate_limiter.running is False
        assert len(rate_limiter) == 0

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        """Starting twice keeps a single sweep task."""
        rate_limiter = SlidingWindowRateLimiter(sweep_interval_seconds=60)
        await rate_limiter.start()
        task = rate_limiter._sweep_task
        await rate_limiter.start()

        assert rate_limiter._sweep_task is task
        await rate_limiter.stop()

    @pytest.mark.asyncio
    async def test_concurrent_hits_are_all_counted(self, rate_limiter):
        """Concurrent requests sharing an identifier never lose increments."""

        async def hit():
            await asyncio.sleep(0)
            return rate_limiter.hit("10.0.0.1")

        decisions = await asyncio.gather(*(hit() for _ in range(150)))

        assert rate_limiter.get_entry("10.0.0.1").count == 150
        assert sum(1 for decision in decisions if decision.allowed) == 100


class TestRateLimitMiddleware:
    """Test cases for RateLimitMiddleware."""

    @pytest.fixture
    def rate_limiter(self):
        return SlidingWindowRateLimiter()

    @pytest.fixture
    def client(self, rate_limiter):
        """Minimal app with the rate limiter on the /api prefix."""
        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, rate_limiter=rate_limiter, path_prefix="/api")

        @app.get("/api/test")
        async def api_test():
            return {"ok": True}

        @app.get("/api/boom")
        async def boom():
            raise RuntimeError("kaboom")

        @app.get("/outside")
        async def outside():
            return {"ok": True}

        return TestClient(app)

    def test_sets_rate_limit_headers(self, client):
        """Allowed responses carry the three quota headers."""
        response = client.get("/api/test", headers={"x-real-ip": "rate-limit-test-1"})

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "100"
        assert response.headers["X-RateLimit-Remaining"] == "99"
        assert response.headers["X-RateLimit-Reset"].isdigit()

    def test_decrements_remaining(self, client):
        """Remaining drops by one per request."""
        headers = {"x-real-ip": "rate-limit-dec"}
        first = client.get("/api/test", headers=headers)
        second = client.get("/api/test", headers=headers)

        assert first.headers["X-RateLimit-Remaining"] == "99"
        assert second.headers["X-RateLimit-Remaining"] == "98"

    def test_returns_429_after_exceeding_limit(self, client):
        """The 101st request is rejected without reaching the handler."""
        headers = {"x-real-ip": "rate-limit-429"}
        for _ in range(100):
            assert client.get("/api/test", headers=headers).status_code == 200

        response = client.get("/api/test", headers=headers)

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests"}
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Limit"] == "100"

    def test_handler_exception_keeps_headers(self, client):
        """A crashing handler still yields a JSON 500 with quota headers."""
        response = client.get("/api/boom", headers={"x-real-ip": "rate-limit-boom"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert response.headers["X-RateLimit-Limit"] == "100"
        assert response.headers["X-RateLimit-Remaining"] == "99"

    def test_paths_outside_prefix_are_not_limited(self, client, rate_limiter):
        """Requests outside the API prefix are not counted."""
        response = client.get("/outside")

        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers
        assert len(rate_limiter) == 0

    def test_client_id_prefers_real_ip(self):
        """x-real-ip wins over x-forwarded-for."""
        request = MagicMock()
        request.headers = {"x-real-ip": "1.1.1.1", "x-forwarded-for": "2.2.2.2, 3.3.3.3"}
        assert RateLimitMiddleware.get_client_id(request) == "1.1.1.1"

    def test_client_id_falls_back_to_forwarded_for(self):
        """The whole x-forwarded-for value is the identifier when x-real-ip is absent."""
        request = MagicMock()
        request.headers = {"x-forwarded-for": "2.2.2.2, 3.3.3.3"}
        assert RateLimitMiddleware.get_client_id(request) == "2.2.2.2, 3.3.3.3"

    def test_client_id_unknown(self):
        """Without proxy headers every caller shares the "unknown" bucket."""
        request = MagicMock()
        request.headers = {}
        assert RateLimitMiddleware.get_client_id(request) == "unknown"
