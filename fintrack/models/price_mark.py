"""Last price a user was evaluated against, per symbol."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, String

from fintrack.models import Base


class PriceMark(Base):
    __tablename__ = "price_marks"

    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    symbol = Column(String(20), primary_key=True)
    price = Column(Float, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
