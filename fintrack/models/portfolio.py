"""Portfolio holding model (written by the mobile client)."""

import uuid
from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.sql import func

from fintrack.models import Base


class PortfolioAsset(Base):
    __tablename__ = "portfolio_assets"
    __table_args__ = (
        UniqueConstraint("user_id", "symbol", name="uq_portfolio_assets_user_symbol"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    symbol = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=True)
    quantity = Column(Numeric(precision=24, scale=8), default=Decimal("0"), nullable=False)
    average_price = Column(Numeric(precision=18, scale=8), default=Decimal("0"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
