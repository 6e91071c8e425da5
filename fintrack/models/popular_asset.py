"""Price record for the popular-asset watch-list."""

import enum

from sqlalchemy import Column, DateTime, Enum, Float, String

from fintrack.models import Base


class AssetClass(str, enum.Enum):
    CRYPTO = "crypto"
    STOCK = "stock"


class PopularAsset(Base):
    __tablename__ = "popular_assets"

    symbol = Column(String(20), primary_key=True)
    name = Column(String(200), nullable=True)
    asset_class = Column(
        Enum(AssetClass, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    current_price = Column(Float, nullable=False)
    previous_price = Column(Float, nullable=False)
    percent_change_24h = Column(Float, default=0.0, nullable=False)
    market_cap = Column(Float, nullable=True)
    volume_24h = Column(Float, nullable=True)
    high_24h = Column(Float, nullable=True)
    low_24h = Column(Float, nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False, index=True)
