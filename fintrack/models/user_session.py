"""Append-only sign-in records."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from fintrack.models import Base


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), nullable=False, index=True)
    fcm_token = Column(String(512), nullable=True)
    is_new_user = Column(Boolean, default=False, nullable=False)
    device_info = Column(String(255), nullable=True)
    platform = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
