"""News item model."""

import enum

from sqlalchemy import Column, DateTime, Enum, String, Text
from sqlalchemy.sql import func

from fintrack.models import Base


class NewsCategory(str, enum.Enum):
    STOCKS = "stocks"
    CRYPTO = "crypto"


class NewsItem(Base):
    __tablename__ = "news"

    # Provider-assigned article id
    id = Column(String(64), primary_key=True)
    headline = Column(Text, nullable=False)
    summary = Column(Text, nullable=False)
    url = Column(Text, nullable=False, default="")
    source = Column(String(255), nullable=False, default="Unknown")
    image_url = Column(Text, nullable=True)
    related = Column(String(255), nullable=True)
    category = Column(
        Enum(NewsCategory, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    published_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
