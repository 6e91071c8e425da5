"""Sign-in session endpoints."""

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.api.deps import get_current_uid, get_greeting_enqueuer
from fintrack.core.clock import utcnow
from fintrack.core.database import get_db
from fintrack.core.rate_limit import RATE_LIMITS, limiter
from fintrack.models.user import User
from fintrack.models.user_session import UserSession
from fintrack.schemas.session import SessionCreate, SessionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["session_create"])
async def create_session(
    request: Request,
    session_data: SessionCreate,
    uid: str = Depends(get_current_uid),
    db: AsyncSession = Depends(get_db),
    enqueue_greeting: Callable[[str], None] = Depends(get_greeting_enqueuer),
) -> SessionResponse:
    """Record a sign-in and refresh the user's push registration."""
    now = utcnow()
    token = (session_data.fcm_token or "").strip() or None

    user = await db.get(User, uid)
    if user is None:
        user = User(id=uid)
        db.add(user)
    user.last_active_at = now
    if token:
        user.fcm_token = token
        user.notifications_enabled = True

    session = UserSession(
        user_id=uid,
        fcm_token=token,
        is_new_user=session_data.is_new_user,
        device_info=session_data.device_info,
        platform=session_data.platform,
        created_at=now,
    )
    db.add(session)
    # The worker must see the row before the greeting task runs
    await db.commit()

    try:
        enqueue_greeting(session.id)
    except Exception as e:
        logger.error(f"Could not schedule greeting for session {session.id}: {e}")

    return SessionResponse.model_validate(session)
