"""API dependencies."""

import logging
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fintrack.core.security import verify_id_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_uid(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """Resolve the Firebase uid from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    uid = verify_id_token(credentials.credentials)
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return uid


def get_greeting_enqueuer() -> Callable[[str], None]:
    """Schedules the welcome notification for a freshly recorded session."""
    from fintrack.tasks.notifications import send_session_notification

    def enqueue(session_id: str) -> None:
        send_session_notification.delay(session_id)

    return enqueue
