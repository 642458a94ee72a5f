"""Tests for the auth endpoint rate limiting."""

import pytest
import redis

from cleanpro import config, rate_limiter
from tests.conftest import FakeRedis


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: client)
    monkeypatch.setattr(rate_limiter, "_windows", {})
    return client


def test_check_rate_limit_counts_within_window(monkeypatch):
    monkeypatch.setattr(rate_limiter, "_windows", {})
    client = FakeRedis()
    results = [rate_limiter.check_rate_limit("test:key", 3, 60, client) for _ in range(4)]
    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[2][1] == 3
    assert 0 < results[3][2] <= 60


def test_check_rate_limit_resumes_from_redis(monkeypatch):
    monkeypatch.setattr(rate_limiter, "_windows", {})
    client = FakeRedis()
    client.set("test:shared", 5, ex=120)

    allowed, count, retry_after = rate_limiter.check_rate_limit("test:shared", 5, 900, client)
    assert allowed is False
    assert count == 5
    assert retry_after <= 120


def test_login_is_limited(client, fake_redis):
    credentials = {"Email": "ghost@example.com", "Password": "whatever"}
    for _ in range(10):
        assert client.post("/api/auth/login", json=credentials).status_code == 401

    response = client.post("/api/auth/login", json=credentials)
    assert response.status_code == 429
    assert response.json()["success"] is False
    assert int(response.headers["Retry-After"]) > 0


def test_fails_closed_without_redis(client, monkeypatch):
    def unavailable():
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_redis_client", unavailable)

    response = client.post("/api/auth/login", json={"Email": "a@example.com", "Password": "x"})
    assert response.status_code == 503


def test_disabled_limiter_skips_redis(client, monkeypatch):
    def unavailable():
        raise AssertionError("redis should not be used")

    monkeypatch.setattr(rate_limiter, "get_redis_client", unavailable)
    response = client.post("/api/auth/login", json={"Email": "a@example.com", "Password": "x"})
    assert response.status_code == 401
