"""RevenueCat webhook envelope schemas."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SubscriberSubscription(WebhookModel):
    expires_date: Optional[str] = None
    period_type: Optional[str] = None


class Subscriber(WebhookModel):
    original_app_user_id: str = Field(..., min_length=1)
    subscriptions: Dict[str, SubscriberSubscription] = Field(default_factory=dict)


class SubscriptionEvent(WebhookModel):
    original_transaction_id: Optional[str] = None
    transaction_id: Optional[str] = None
    product_id: Optional[str] = None
    expires_date: Optional[str] = None
    subscriber: Subscriber

    def resolved_expires_date(self) -> Optional[str]:
        """Expiry from the event itself, else from the subscriber's entry for the product."""
        if self.expires_date:
            return self.expires_date
        if self.product_id and self.product_id in self.subscriber.subscriptions:
            return self.subscriber.subscriptions[self.product_id].expires_date
        return None


class WebhookEnvelopeHead(WebhookModel):
    """Just the type tag, parsed before deciding whether the event is handled."""

    type: str = Field(..., min_length=1)


class WebhookEnvelope(WebhookEnvelopeHead):
    event: SubscriptionEvent

