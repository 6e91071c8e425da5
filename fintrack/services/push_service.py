"""Push delivery through Firebase Cloud Messaging."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.clock import utcnow
from fintrack.core.config import settings
from fintrack.core.exceptions import PushDeliveryError, TokenInvalidError
from fintrack.core.firebase import get_firebase_app
from fintrack.core.logging import mask_token
from fintrack.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class PushNotification:
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    badge: int = 1


class PushProvider(ABC):
    """Delivery transport. Raises TokenInvalidError for unregistered tokens."""

    @abstractmethod
    async def send(self, token: str, notification: PushNotification) -> None:
        pass


class FCMPushProvider(PushProvider):
    """Firebase Cloud Messaging via firebase-admin."""

    def __init__(self, app=None, timeout: Optional[float] = None):
        self.app = app
        self.timeout = timeout or settings.PUSH_TIMEOUT_SECONDS

    def build_message(self, token: str, notification: PushNotification) -> messaging.Message:
        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=notification.title, body=notification.body),
            data=notification.data,
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    sound="default",
                    priority="high",
                    channel_id="default",
                ),
            ),
            apns=messaging.APNSConfig(
                headers={"apns-priority": "10", "apns-push-type": "alert"},
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(
                        content_available=True,
                        sound="default",
                        badge=notification.badge,
                        mutable_content=True,
                    )
                ),
            ),
        )

    async def send(self, token: str, notification: PushNotification) -> None:
        message = self.build_message(token, notification)
        app = self.app or get_firebase_app()
        try:
            # firebase-admin is blocking; keep the event loop free
            await asyncio.wait_for(
                asyncio.to_thread(messaging.send, message, app=app),
                timeout=self.timeout,
            )
        except messaging.UnregisteredError as e:
            raise TokenInvalidError(token, str(e)) from e
        except firebase_exceptions.FirebaseError as e:
            if "registration-token-not-registered" in str(e):
                raise TokenInvalidError(token, str(e)) from e
            raise PushDeliveryError(str(e)) from e
        except asyncio.TimeoutError as e:
            raise PushDeliveryError(f"push send timed out after {self.timeout}s") from e


class PushService:
    """Send primitive shared by every notification flow.

    One instance lives for one job invocation: tokens found invalid during
    the invocation are remembered and never sent to again.
    """

    def __init__(self, db: AsyncSession, provider: PushProvider):
        self.db = db
        self.provider = provider
        self.invalid_tokens: Set[str] = set()

    def is_invalidated(self, token: str) -> bool:
        return token in self.invalid_tokens

    async def send(self, token: str, notification: PushNotification) -> bool:
        """Deliver one notification. Never raises; returns True on success."""
        if not token:
            return False
        if token in self.invalid_tokens:
            logger.debug(f"Skipping send to invalidated token {mask_token(token)}")
            return False

        try:
            await self.provider.send(token, notification)
        except TokenInvalidError as e:
            logger.info(f"Push token {mask_token(token)} is no longer registered")
            self.invalid_tokens.add(token)
            await self._invalidate_token(token, str(e))
            return False
        except Exception as e:
            logger.error(
                f"Error sending push notification: {type(e).__name__}: {e}",
                extra={"notification_type": notification.data.get("type")},
            )
            return False

        logger.info(
            "Push notification sent",
            extra={"notification_type": notification.data.get("type")},
        )
        return True

    async def _invalidate_token(self, token: str, reason: str) -> int:
        """Clear the token from every user holding it, in one commit."""
        try:
            result = await self.db.execute(select(User).where(User.fcm_token == token))
            users = result.scalars().all()
            if not users:
                logger.info("No user found with the invalid token")
                return 0

            now = utcnow()
            for user in users:
                logger.info(f"Removing invalid token for user {user.id}")
                user.fcm_token = None
                user.notifications_enabled = False
                user.last_token_error = reason
                user.last_token_error_at = now
            await self.db.commit()
            return len(users)
        except Exception as e:
            logger.error(f"Error clearing invalid token: {type(e).__name__}: {e}")
            await self.db.rollback()
            return 0
