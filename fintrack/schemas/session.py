"""Client session and user schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    """Payload the app posts on every sign-in."""

    fcm_token: Optional[str] = Field(None, max_length=512)
    is_new_user: bool = False
    device_info: Optional[str] = Field(None, max_length=255)
    platform: Optional[str] = Field(None, max_length=50)


class SessionResponse(BaseModel):
    id: str
    user_id: str
    is_new_user: bool
    created_at: datetime

    class Config:
        from_attributes = True


class BadgeResponse(BaseModel):
    badge_count: int
