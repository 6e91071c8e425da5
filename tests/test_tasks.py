"""Scheduled job wiring tests."""

from contextlib import asynccontextmanager

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

import fintrack.core.redis_client as redis_client
import fintrack.tasks.news_sync as news_sync_tasks
import fintrack.tasks.notifications  # noqa: F401
import fintrack.tasks.price_updates as price_tasks
from fintrack.tasks.celery_app import celery_app


def test_beat_schedule():
    schedule = celery_app.conf.beat_schedule

    prices = schedule["sync-popular-assets"]["schedule"]
    news = schedule["sync-news"]["schedule"]
    digest = schedule["send-news-digest"]["schedule"]
    alerts = schedule["check-asset-price-changes"]["schedule"]

    assert prices.minute == set(range(0, 60, 5))
    assert news.minute == set(range(0, 60, 5))
    assert digest.minute == {0}
    assert digest.hour == {0, 8, 16}
    assert alerts.minute == {0}
    assert alerts.hour == {0}


def test_tasks_are_registered():
    for name in (
        "fintrack.tasks.price_updates.sync_popular_assets",
        "fintrack.tasks.news_sync.sync_news",
        "fintrack.tasks.notifications.send_news_digest",
        "fintrack.tasks.notifications.check_asset_price_changes",
        "fintrack.tasks.notifications.send_session_notification",
    ):
        assert name in celery_app.tasks


@asynccontextmanager
async def _held_lock(name, timeout=None):
    yield False


@pytest.mark.asyncio
async def test_price_sync_skips_when_another_run_holds_the_lock(monkeypatch):
    monkeypatch.setattr(price_tasks, "job_lock", _held_lock)
    assert await price_tasks.run_price_sync() == {"skipped": True}


@pytest.mark.asyncio
async def test_news_sync_skips_when_another_run_holds_the_lock(monkeypatch):
    monkeypatch.setattr(news_sync_tasks, "job_lock", _held_lock)
    assert await news_sync_tasks.run_news_sync() == {"skipped": True}


class FakeLock:
    def __init__(self, available):
        self.available = available
        self.released = False

    async def acquire(self):
        return self.available

    async def release(self):
        self.released = True


class FakeRedis:
    def __init__(self, lock=None, error=None):
        self._lock = lock
        self.error = error

    def lock(self, name, timeout=None, blocking=True):
        if self.error:
            raise self.error
        return self._lock


@pytest.mark.asyncio
async def test_job_lock_acquired_and_released(monkeypatch):
    lock = FakeLock(available=True)

    async def fake_get_redis():
        return FakeRedis(lock=lock)

    monkeypatch.setattr(redis_client, "get_redis", fake_get_redis)

    async with redis_client.job_lock("price-sync") as acquired:
        assert acquired is True
    assert lock.released is True


@pytest.mark.asyncio
async def test_job_lock_busy(monkeypatch):
    lock = FakeLock(available=False)

    async def fake_get_redis():
        return FakeRedis(lock=lock)

    monkeypatch.setattr(redis_client, "get_redis", fake_get_redis)

    async with redis_client.job_lock("price-sync") as acquired:
        assert acquired is False
    assert lock.released is False


@pytest.mark.asyncio
async def test_job_lock_runs_unguarded_without_redis(monkeypatch):
    async def fake_get_redis():
        return FakeRedis(error=RedisConnectionError("refused"))

    monkeypatch.setattr(redis_client, "get_redis", fake_get_redis)

    async with redis_client.job_lock("news-sync") as acquired:
        assert acquired is True


class FakeEngine:
    def __init__(self):
        self.disposed = 0

    async def dispose(self):
        self.disposed += 1


@pytest.fixture
def released(monkeypatch):
    """Counts connection releases done by run_async."""
    counts = {"redis": 0}
    engine = FakeEngine()

    async def fake_close_redis():
        counts["redis"] += 1

    monkeypatch.setattr(price_tasks, "close_redis", fake_close_redis)
    monkeypatch.setattr(price_tasks, "engine", engine)
    counts["engine"] = engine
    return counts


def test_run_async_releases_connections_after_each_task(released):
    async def job(value):
        return value * 2

    assert price_tasks.run_async(job(2)) == 4
    assert price_tasks.run_async(job(5)) == 10

    assert released["redis"] == 2
    assert released["engine"].disposed == 2


def test_run_async_releases_connections_when_the_job_fails(released):
    async def job():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        price_tasks.run_async(job())

    assert released["redis"] == 1
    assert released["engine"].disposed == 1
