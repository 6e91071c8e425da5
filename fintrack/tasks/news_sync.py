"""News synchronisation task."""

import logging

from fintrack.core.config import settings
from fintrack.core.database import AsyncSessionLocal
from fintrack.core.redis_client import job_lock
from fintrack.services.market_data import MarketDataClient
from fintrack.services.news_sync_service import NewsSyncService
from fintrack.tasks.celery_app import celery_app
from fintrack.tasks.price_updates import TRANSIENT_ERRORS, run_async

logger = logging.getLogger(__name__)


async def run_news_sync() -> dict:
    async with job_lock("news-sync") as acquired:
        if not acquired:
            logger.info("News sync already running, skipping this run")
            return {"skipped": True}

        async with AsyncSessionLocal() as db, MarketDataClient() as client:
            result = await NewsSyncService(db, client).run()
            return result.as_stats()


@celery_app.task(
    name="fintrack.tasks.news_sync.sync_news",
    autoretry_for=TRANSIENT_ERRORS,
    max_retries=settings.JOB_MAX_RETRIES,
    retry_backoff=True,
)
def sync_news():
    """Fetch, classify, store and prune market news."""
    result = run_async(run_news_sync())
    logger.info(f"News sync result: {result}")
    return result
