"""Tests for the Redis token-bucket rate limiter dependency."""

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from socialfeed.config import Settings, settings
from socialfeed.middleware.rate_limiter import check_rate_limit, client_key
from tests.factories import FakeRedis


class TestCheckRateLimit:
    async def test_allowed_request_consumes_from_bucket(self):
        redis = FakeRedis(allowed=1)
        app_settings = Settings(rate_limit_read_per_minute=120)

        await check_rate_limit("203.0.113.9", redis, "read", app_settings)

        key, max_tokens, refill_rate, _now = redis.calls[0]
        assert key == "rl:203.0.113.9:read"
        assert max_tokens == 120
        assert refill_rate == pytest.approx(2.0)

    async def test_write_bucket_uses_write_capacity(self):
        redis = FakeRedis(allowed=1)
        app_settings = Settings(rate_limit_write_per_minute=30)

        await check_rate_limit("203.0.113.9", redis, "write", app_settings)

        key, max_tokens, _refill, _now = redis.calls[0]
        assert key == "rl:203.0.113.9:write"
        assert max_tokens == 30

    async def test_empty_bucket_raises_429(self):
        with pytest.raises(HTTPException) as excinfo:
            await check_rate_limit("203.0.113.9", FakeRedis(allowed=0), "write", Settings())

        assert excinfo.value.status_code == 429
        assert excinfo.value.headers["Retry-After"] == "60"

    async def test_disabled_skips_redis(self):
        redis = FakeRedis(allowed=0)

        await check_rate_limit("203.0.113.9", redis, "read", Settings(rate_limit_enabled=False))

        assert redis.calls == []


class TestRateLimitedRoutes:
    async def test_rejected_request_gets_429_envelope(self, client, fake_redis):
        fake_redis.allowed = 0

        response = await client.get("/api/v1/timeline", params={"user_id": 1})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["code"] == "HTTP_429"

    async def test_forwarded_header_ignored_without_trusted_proxy(self, client, fake_redis):
        for spoofed in ("198.51.100.7", "203.0.113.66, 10.0.0.1"):
            await client.get(
                "/api/v1/timeline",
                params={"user_id": 1},
                headers={"X-Forwarded-For": spoofed},
            )

        assert [call[0] for call in fake_redis.calls] == ["rl:127.0.0.1:read"] * 2

    async def test_trusted_proxy_hop_keys_bucket(self, client, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "trusted_proxy_hops", 1)

        await client.get(
            "/api/v1/timeline",
            params={"user_id": 1},
            headers={"X-Forwarded-For": "198.51.100.7, 203.0.113.5"},
        )

        assert fake_redis.calls[0][0] == "rl:203.0.113.5:read"

    async def test_disabled_limiter_never_calls_redis(self, client, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", False)
        fake_redis.allowed = 0

        response = await client.get("/api/v1/timeline", params={"user_id": 1})

        assert response.status_code == 200
        assert fake_redis.calls == []


def _request(forwarded=None, peer=("10.0.0.9", 40000)):
    headers = []
    if forwarded is not None:
        headers.append((b"x-forwarded-for", forwarded.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "client": peer})


class TestClientKey:
    def test_peer_address_by_default(self):
        assert client_key(_request("198.51.100.7")) == "10.0.0.9"

    def test_takes_hop_appended_by_outermost_trusted_proxy(self):
        request = _request("6.6.6.6, 198.51.100.7, 10.0.0.1")

        assert client_key(request, trusted_proxy_hops=1) == "10.0.0.1"
        assert client_key(request, trusted_proxy_hops=2) == "198.51.100.7"

    def test_fewer_hops_than_trusted_uses_first(self):
        assert client_key(_request("198.51.100.7"), trusted_proxy_hops=3) == "198.51.100.7"

    def test_missing_header_falls_back_to_peer(self):
        assert client_key(_request(), trusted_proxy_hops=1) == "10.0.0.9"

    def test_no_peer_is_unknown(self):
        assert client_key(_request(peer=None)) == "unknown"
