from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app import settings
from app.ratelimit import RateLimit

LIMIT = RateLimit("test", max_requests=3, window_seconds=900, message="Slow down")


@pytest.fixture()
def limited_client(monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    app = FastAPI()

    @app.get("/limited", dependencies=[Depends(LIMIT)])
    async def limited():
        return {"ok": True}

    return TestClient(app)


class TestRateLimit:
    def test_first_hit_starts_window(self, limited_client, fake_redis):
        resp = limited_client.get("/limited")
        assert resp.status_code == 200
        key = fake_redis.incr.await_args.args[0]
        assert key.startswith("ratelimit:test:")
        fake_redis.expire.assert_awaited_once_with(key, 900)

    def test_within_window_does_not_reset_expiry(self, limited_client, fake_redis):
        fake_redis.incr.return_value = 2
        resp = limited_client.get("/limited")
        assert resp.status_code == 200
        fake_redis.expire.assert_not_awaited()

    def test_over_limit_returns_429_with_retry_after(self, limited_client, fake_redis):
        fake_redis.incr.return_value = 4
        fake_redis.ttl.return_value = 120
        resp = limited_client.get("/limited")
        assert resp.status_code == 429
        assert resp.json()["detail"] == "Slow down"
        assert resp.headers["Retry-After"] == "120"

    def test_redis_failure_fails_open(self, limited_client, fake_redis):
        fake_redis.incr.side_effect = ConnectionError("redis down")
        resp = limited_client.get("/limited")
        assert resp.status_code == 200

    def test_disabled_skips_redis(self, limited_client, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
        fake_redis.incr.return_value = 100
        resp = limited_client.get("/limited")
        assert resp.status_code == 200
        fake_redis.incr.assert_not_awaited()

    async def test_reset_clears_counter(self, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        request = MagicMock()
        request.client.host = "203.0.113.7"

        await LIMIT.reset(request)

        fake_redis.delete.assert_awaited_once_with("ratelimit:test:203.0.113.7")

    async def test_reset_tolerates_redis_failure(self, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
        fake_redis.delete.side_effect = ConnectionError("redis down")
        request = MagicMock()
        request.client.host = "203.0.113.7"

        await LIMIT.reset(request)
