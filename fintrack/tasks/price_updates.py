"""Price update tasks."""

import asyncio
import logging

from sqlalchemy.exc import OperationalError

from fintrack.core.config import settings
from fintrack.core.database import AsyncSessionLocal, engine
from fintrack.core.redis_client import close_redis, job_lock
from fintrack.services.market_data import MarketDataClient
from fintrack.services.price_sync_service import PriceSyncService
from fintrack.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

# Infrastructure failures worth a scheduler retry; item-level errors never escape a job
TRANSIENT_ERRORS = (OperationalError, ConnectionError)


async def _run_and_release(coro):
    try:
        return await coro
    finally:
        # Pooled connections belong to this loop; never hand them to the next task
        await close_redis()
        await engine.dispose()


def run_async(coro):
    """Helper to run async code in sync context."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None
    if loop is None or loop.is_running() or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(_run_and_release(coro))


async def run_price_sync() -> dict:
    async with job_lock("price-sync") as acquired:
        if not acquired:
            logger.info("Price sync already running, skipping this run")
            return {"skipped": True}

        async with AsyncSessionLocal() as db, MarketDataClient() as client:
            result = await PriceSyncService(db, client).run()
            return result.as_stats()


@celery_app.task(
    name="fintrack.tasks.price_updates.sync_popular_assets",
    autoretry_for=TRANSIENT_ERRORS,
    max_retries=settings.JOB_MAX_RETRIES,
    retry_backoff=True,
)
def sync_popular_assets():
    """Refresh the popular-asset watch-list prices."""
    logger.info("Starting popular assets sync...")
    result = run_async(run_price_sync())
    logger.info(f"Popular assets sync result: {result}")
    return result
