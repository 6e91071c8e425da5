"""Push notification tasks."""

import logging

from fintrack.core.config import settings
from fintrack.core.database import AsyncSessionLocal
from fintrack.core.redis_client import job_lock
from fintrack.services.notification_service import NotificationDispatcher
from fintrack.services.push_service import FCMPushProvider, PushService
from fintrack.tasks.celery_app import celery_app
from fintrack.tasks.price_updates import TRANSIENT_ERRORS, run_async

logger = logging.getLogger(__name__)


async def _greet_session(session_id: str) -> bool:
    async with AsyncSessionLocal() as db:
        dispatcher = NotificationDispatcher(db, PushService(db, FCMPushProvider()))
        return await dispatcher.send_session_greeting(session_id)


async def _send_news_digest() -> dict:
    async with job_lock("news-digest") as acquired:
        if not acquired:
            logger.info("News digest already running, skipping this run")
            return {"skipped": True}
        async with AsyncSessionLocal() as db:
            dispatcher = NotificationDispatcher(db, PushService(db, FCMPushProvider()))
            return await dispatcher.send_news_digest()


async def _check_price_changes() -> dict:
    async with job_lock("price-alerts", timeout=3600) as acquired:
        if not acquired:
            logger.info("Price alert scan already running, skipping this run")
            return {"skipped": True}
        async with AsyncSessionLocal() as db:
            dispatcher = NotificationDispatcher(db, PushService(db, FCMPushProvider()))
            return await dispatcher.send_price_alerts()


@celery_app.task(
    name="fintrack.tasks.notifications.send_session_notification",
    autoretry_for=TRANSIENT_ERRORS,
    max_retries=settings.JOB_MAX_RETRIES,
    retry_backoff=True,
)
def send_session_notification(session_id: str):
    """Send the welcome or welcome-back notification for a new session."""
    return run_async(_greet_session(session_id))


@celery_app.task(
    name="fintrack.tasks.notifications.send_news_digest",
    autoretry_for=TRANSIENT_ERRORS,
    max_retries=settings.JOB_MAX_RETRIES,
    retry_backoff=True,
)
def send_news_digest():
    """Send the news digest to every user with notifications enabled."""
    logger.info("Starting news digest process...")
    result = run_async(_send_news_digest())
    logger.info(f"News digest result: {result}")
    return result


@celery_app.task(
    name="fintrack.tasks.notifications.check_asset_price_changes",
    autoretry_for=TRANSIENT_ERRORS,
    max_retries=settings.JOB_MAX_RETRIES,
    retry_backoff=True,
    time_limit=3600,
    soft_time_limit=3300,
)
def check_asset_price_changes():
    """Scan portfolio and popular assets for moves past the alert threshold."""
    logger.info("Starting asset price check...")
    result = run_async(_check_price_changes())
    logger.info(f"Asset price check result: {result}")
    return result
