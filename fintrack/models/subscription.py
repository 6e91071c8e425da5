"""Subscription detail model, one row per user."""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String

from fintrack.models import Base
from fintrack.models.user import SubscriptionStatus


class Subscription(Base):
    __tablename__ = "subscriptions"

    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    status = Column(
        Enum(SubscriptionStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    product_id = Column(String(255), nullable=True)
    original_transaction_id = Column(String(255), nullable=True)
    transaction_id = Column(String(255), nullable=True)
    expires_date = Column(String(64), nullable=True)
    event_type = Column(String(64), nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False)
