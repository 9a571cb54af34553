from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.middleware_rate_limit import RATE_LIMIT_MESSAGE, FixedWindowRateLimiter, RateLimitMiddleware


class ManualClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_limiter_blocks_after_max_requests_until_window_resets():
    clock = ManualClock()
    limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=2, clock=clock)

    assert limiter.hit("1.2.3.4")
    assert limiter.hit("1.2.3.4")
    assert not limiter.hit("1.2.3.4")
    assert limiter.hit("5.6.7.8")

    clock.now = 61
    assert limiter.hit("1.2.3.4")


def _app(limiter: FixedWindowRateLimiter) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=limiter)

    @app.get("/api/ping")
    def ping():
        return {"ok": True}

    @app.get("/status")
    def status():
        return {"ok": True}

    return app


def test_middleware_returns_429_for_api_paths_only():
    client = TestClient(_app(FixedWindowRateLimiter(window_seconds=60, max_requests=1)))

    assert client.get("/api/ping").status_code == 200
    blocked = client.get("/api/ping")
    assert blocked.status_code == 429
    assert blocked.json() == {"error": RATE_LIMIT_MESSAGE}
    assert client.get("/status").status_code == 200
    assert client.get("/status").status_code == 200
