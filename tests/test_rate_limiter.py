import threading

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from medibook import rate_limiter
from medibook.rate_limiter import check_rate_limit, create_rate_limiter


@pytest.fixture(autouse=True)
def clear_counters():
    with rate_limiter.cache_lock:
        rate_limiter.memory_cache.clear()
    yield
    with rate_limiter.cache_lock:
        rate_limiter.memory_cache.clear()


def test_counts_up_to_the_limit():
    results = [check_rate_limit("test:counts", limit=3, window_seconds=60) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[2][1] == 3
    assert 0 < results[3][2] <= 60


def test_keys_are_independent():
    check_rate_limit("test:a", limit=1, window_seconds=60)

    allowed, count, _ = check_rate_limit("test:b", limit=1, window_seconds=60)

    assert allowed
    assert count == 1


def test_window_expiry_resets_the_counter():
    check_rate_limit("test:reset", limit=1, window_seconds=60)
    rate_limiter.memory_cache["test:reset"]["reset_time"] = 0

    allowed, count, _ = check_rate_limit("test:reset", limit=1, window_seconds=60)

    assert allowed
    assert count == 1


def test_dependency_answers_429_with_retry_after(monkeypatch):
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    limited_app = FastAPI()
    limiter = create_rate_limiter(limit=2, window_seconds=60, key_prefix="test_dependency")

    @limited_app.get("/limited", dependencies=[Depends(limiter)])
    async def limited():
        return {"ok": True}

    client = TestClient(limited_app)
    statuses = [client.get("/limited").status_code for _ in range(3)]
    blocked = client.get("/limited")

    assert statuses == [200, 200, 429]
    assert blocked.json()["detail"] == "Too many requests from this IP, please try again later."
    assert int(blocked.headers["Retry-After"]) > 0


def test_disabled_limiter_lets_everything_through(monkeypatch):
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", False)
    limited_app = FastAPI()
    limiter = create_rate_limiter(limit=1, window_seconds=60, key_prefix="test_disabled")

    @limited_app.get("/limited", dependencies=[Depends(limiter)])
    async def limited():
        return {"ok": True}

    client = TestClient(limited_app)

    assert [client.get("/limited").status_code for _ in range(3)] == [200, 200, 200]


def test_app_envelope_keeps_retry_after(client, monkeypatch):
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)

    responses = [
        client.post("/api/support/contact", json={"name": "A", "email": "a@example.com", "subject": "S", "message": "M"})
        for _ in range(11)
    ]

    blocked = responses[-1]
    assert blocked.status_code == 429
    assert blocked.json() == {
        "success": False,
        "message": "Too many requests from this IP, please try again later.",
    }
    assert "Retry-After" in blocked.headers


class RecordingRedis:
    def __init__(self):
        self.threads = set()
        self.values = {}

    def get(self, key):
        self.threads.add(threading.get_ident())
        return self.values.get(key)

    def ttl(self, key):
        return -2

    def set(self, key, value, ex=None):
        self.threads.add(threading.get_ident())
        self.values[key] = str(value)


def test_redis_backed_check_runs_off_the_event_loop(monkeypatch):
    fake_redis = RecordingRedis()
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: fake_redis)
    limited_app = FastAPI()
    limiter = create_rate_limiter(limit=5, window_seconds=60, key_prefix="test_redis")
    loop_threads = set()

    @limited_app.get("/limited", dependencies=[Depends(limiter)])
    async def limited():
        loop_threads.add(threading.get_ident())
        return {"ok": True}

    response = TestClient(limited_app).get("/limited")

    assert response.status_code == 200
    assert fake_redis.threads
    assert fake_redis.threads.isdisjoint(loop_threads)
