"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from fintrack.core.config import settings

celery_app = Celery(
    "fintrack",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "fintrack.tasks.price_updates",
        "fintrack.tasks.news_sync",
        "fintrack.tasks.notifications",
    ],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=540,  # hard wall-clock budget per invocation
    task_soft_time_limit=480,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

# Scheduled tasks (Celery Beat)
celery_app.conf.beat_schedule = {
    "sync-popular-assets": {
        "task": "fintrack.tasks.price_updates.sync_popular_assets",
        "schedule": crontab(minute="*/5"),  # Every 5 minutes
    },
    "sync-news": {
        "task": "fintrack.tasks.news_sync.sync_news",
        "schedule": crontab(minute="*/5"),  # Every 5 minutes
    },
    "send-news-digest": {
        "task": "fintrack.tasks.notifications.send_news_digest",
        "schedule": crontab(minute=0, hour="*/8"),  # Minute 0 past every 8th hour
    },
    "check-asset-price-changes": {
        "task": "fintrack.tasks.notifications.check_asset_price_changes",
        "schedule": crontab(minute=0, hour=0),  # Every day at 00:00 UTC
    },
}
