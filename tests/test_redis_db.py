import pytest

from yababoss.db import redis as redis_db


class UnreachableRedis:
    def __init__(self):
        self.closed = False

    async def ping(self):
        raise ConnectionError("connection refused")

    async def aclose(self):
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_client(monkeypatch):
    monkeypatch.setattr(redis_db, "_client", None)


@pytest.mark.asyncio
async def test_no_url_runs_without_redis():
    assert await redis_db.connect("") is False
    assert redis_db.get_redis() is None
    assert await redis_db.status() == "skipped"


@pytest.mark.asyncio
async def test_connect_keeps_a_reachable_client(monkeypatch, fake_redis):
    monkeypatch.setattr(redis_db, "_new_client", lambda url: fake_redis)

    assert await redis_db.connect("redis://cache:6379/0") is True
    assert redis_db.get_redis() is fake_redis
    assert await redis_db.status() == "ok"

    await redis_db.disconnect()
    assert fake_redis.closed is True
    assert redis_db.get_redis() is None


@pytest.mark.asyncio
async def test_unreachable_redis_is_closed_and_dropped(monkeypatch):
    client = UnreachableRedis()
    monkeypatch.setattr(redis_db, "_new_client", lambda url: client)

    assert await redis_db.connect("redis://down:6379/0") is False
    assert client.closed is True
    assert redis_db.get_redis() is None


@pytest.mark.asyncio
async def test_status_reports_a_lost_connection(monkeypatch):
    monkeypatch.setattr(redis_db, "_client", UnreachableRedis())
    assert (await redis_db.status()).startswith("error:")
