"""Job health records."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.clock import utcnow
from fintrack.models.sync_status import SyncOutcome, SyncStatus

logger = logging.getLogger(__name__)

NEWS_SYNC = "newsSync"
PRICE_SYNC = "priceSync"


async def record_sync_status(
    db: AsyncSession,
    job_name: str,
    outcome: SyncOutcome,
    error: Optional[str] = None,
    stats: Optional[Dict[str, Any]] = None,
) -> SyncStatus:
    """Upsert the status row for a job and commit it."""
    status = await db.merge(
        SyncStatus(
            job_name=job_name,
            last_run_at=utcnow(),
            status=outcome,
            error=error,
            stats=stats,
        )
    )
    await db.commit()
    logger.info(
        f"Recorded {job_name} status: {outcome.value}",
        extra={"job": job_name, "outcome": outcome.value},
    )
    return status


async def get_sync_statuses(db: AsyncSession) -> List[SyncStatus]:
    result = await db.execute(select(SyncStatus).order_by(SyncStatus.job_name))
    return list(result.scalars().all())
