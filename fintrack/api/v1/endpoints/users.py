"""Current-user endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.api.deps import get_current_uid
from fintrack.core.database import get_db
from fintrack.core.rate_limit import RATE_LIMITS, limiter
from fintrack.models.user import User
from fintrack.schemas.session import BadgeResponse

router = APIRouter()


@router.post("/me/badge/reset", response_model=BadgeResponse)
@limiter.limit(RATE_LIMITS["badge_reset"])
async def reset_badge(
    request: Request,
    uid: str = Depends(get_current_uid),
    db: AsyncSession = Depends(get_db),
) -> BadgeResponse:
    """Clear the unread counter when the app becomes active."""
    await db.execute(
        update(User)
        .where(User.id == uid)
        .values(badge_count=0)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return BadgeResponse(badge_count=0)
