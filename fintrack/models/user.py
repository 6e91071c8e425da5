"""User model."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, Text
from sqlalchemy.sql import func

from fintrack.models import Base


class SubscriptionStatus(str, enum.Enum):
    NONE = "none"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    BILLING_ISSUE = "billing_issue"


class User(Base):
    __tablename__ = "users"

    # Firebase uid, also RevenueCat's original_app_user_id
    id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    fcm_token = Column(String(512), nullable=True, index=True)
    notifications_enabled = Column(Boolean, default=False, nullable=False)
    subscription_status = Column(
        Enum(SubscriptionStatus, values_callable=lambda e: [m.value for m in e]),
        default=SubscriptionStatus.NONE,
        nullable=False,
    )
    subscription_product_id = Column(String(255), nullable=True)
    subscription_expires_date = Column(String(64), nullable=True)
    has_billing_issue = Column(Boolean, default=False, nullable=False)
    billing_issue_at = Column(DateTime(timezone=True), nullable=True)
    badge_count = Column(Integer, default=0, nullable=False)
    last_active_at = Column(DateTime(timezone=True), nullable=True)
    last_token_error = Column(Text, nullable=True)
    last_token_error_at = Column(DateTime(timezone=True), nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
