"""RevenueCat subscription reconciliation."""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.clock import utcnow
from fintrack.core.exceptions import SubscriberNotFoundError
from fintrack.models.subscription import Subscription
from fintrack.models.user import SubscriptionStatus, User
from fintrack.schemas.webhook import SubscriptionEvent, WebhookEnvelope

logger = logging.getLogger(__name__)


class WebhookEventType(str, enum.Enum):
    INITIAL_PURCHASE = "INITIAL_PURCHASE"
    RENEWAL = "RENEWAL"
    NON_RENEWING_PURCHASE = "NON_RENEWING_PURCHASE"
    CANCELLATION = "CANCELLATION"
    UNCANCELLATION = "UNCANCELLATION"
    BILLING_ISSUE = "BILLING_ISSUE"


ACTIVATING_EVENTS = {
    WebhookEventType.INITIAL_PURCHASE,
    WebhookEventType.RENEWAL,
    WebhookEventType.NON_RENEWING_PURCHASE,
    WebhookEventType.UNCANCELLATION,
}

HANDLED_EVENT_TYPES = {t.value for t in WebhookEventType}


def is_handled_event(event_type: str) -> bool:
    return event_type in HANDLED_EVENT_TYPES


@dataclass
class ReconcileResult:
    user_id: str
    event_type: str
    status: Optional[SubscriptionStatus] = None


class SubscriptionService:
    """Applies webhook events to the user summary and subscription detail rows.

    Status changes touch both rows inside one transaction: either both are
    committed or neither is.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply_event(self, envelope: WebhookEnvelope) -> ReconcileResult:
        event_type = WebhookEventType(envelope.type)
        event = envelope.event
        user_id = event.subscriber.original_app_user_id
        logger.info(f"Received RevenueCat webhook: {event_type.value} for user {user_id}")

        try:
            if event_type == WebhookEventType.BILLING_ISSUE:
                await self._flag_billing_issue(user_id)
                status = None
            else:
                status = (
                    SubscriptionStatus.CANCELLED
                    if event_type == WebhookEventType.CANCELLATION
                    else SubscriptionStatus.ACTIVE
                )
                await self._write_status(user_id, event, event_type, status)
            await self.db.commit()
        except Exception as e:
            logger.error(f"Error updating subscription for user {user_id}: {type(e).__name__}: {e}")
            await self.db.rollback()
            raise

        logger.info(f"Successfully updated subscription for user {user_id}")
        return ReconcileResult(user_id=user_id, event_type=event_type.value, status=status)

    async def _get_user(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            # Users are created on sign-in; a 500 makes RevenueCat retry once it happens
            raise SubscriberNotFoundError(user_id)
        return user

    async def _write_status(
        self,
        user_id: str,
        event: SubscriptionEvent,
        event_type: WebhookEventType,
        status: SubscriptionStatus,
    ) -> None:
        now = utcnow()
        expires_date = event.resolved_expires_date()

        await self._write_user_summary(user_id, event, status, expires_date, now)
        await self.db.flush()
        await self._write_subscription_detail(user_id, event, event_type, status, expires_date, now)
        await self.db.flush()

    async def _write_user_summary(self, user_id, event, status, expires_date, now) -> None:
        user = await self._get_user(user_id)
        user.subscription_status = status
        user.subscription_product_id = event.product_id
        user.subscription_expires_date = expires_date
        if status == SubscriptionStatus.ACTIVE:
            user.has_billing_issue = False
        user.last_updated = now

    async def _write_subscription_detail(self, user_id, event, event_type, status, expires_date, now) -> None:
        subscription = await self.db.get(Subscription, user_id)
        if subscription is None:
            subscription = Subscription(user_id=user_id)
            self.db.add(subscription)
        subscription.status = status
        subscription.product_id = event.product_id
        subscription.original_transaction_id = event.original_transaction_id
        subscription.transaction_id = event.transaction_id
        subscription.expires_date = expires_date
        subscription.event_type = event_type.value
        subscription.last_updated = now

    async def _flag_billing_issue(self, user_id: str) -> None:
        now = utcnow()
        user = await self._get_user(user_id)
        user.has_billing_issue = True
        user.billing_issue_at = now
        user.last_updated = now
