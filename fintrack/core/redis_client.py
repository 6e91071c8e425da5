"""Redis client used for single-instance job locks."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
from redis.exceptions import LockError, RedisError

from fintrack.core.config import settings

logger = logging.getLogger(__name__)

# Async Redis client singleton
_redis: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


@asynccontextmanager
async def job_lock(name: str, timeout: Optional[int] = None) -> AsyncIterator[bool]:
    """Hold a non-blocking lock for a scheduled job.

    Yields True when this invocation owns the lock and False when another
    run of the same job is in progress. Redis being unreachable yields True:
    losing the overlap guard is preferable to skipping the job.
    """
    timeout = timeout or settings.JOB_LOCK_TIMEOUT_SECONDS
    lock = None
    acquired = False
    try:
        r = await get_redis()
        lock = r.lock(f"job-lock:{name}", timeout=timeout, blocking=False)
        acquired = await lock.acquire()
    except RedisError as e:
        logger.warning(f"Job lock unavailable for {name}, running unguarded: {e}")
        lock = None
        acquired = True

    try:
        yield acquired
    finally:
        if lock is not None and acquired:
            try:
                await lock.release()
            except (LockError, RedisError) as e:
                logger.warning(f"Failed to release job lock for {name}: {e}")
