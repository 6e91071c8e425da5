"""SQLAlchemy models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models so Base.metadata.create_all() picks them up
from fintrack.models.user import User  # noqa: E402, F401
from fintrack.models.portfolio import PortfolioAsset  # noqa: E402, F401
from fintrack.models.subscription import Subscription  # noqa: E402, F401
from fintrack.models.popular_asset import PopularAsset  # noqa: E402, F401
from fintrack.models.news import NewsItem  # noqa: E402, F401
from fintrack.models.sync_status import SyncStatus  # noqa: E402, F401
from fintrack.models.user_session import UserSession  # noqa: E402, F401
from fintrack.models.price_mark import PriceMark  # noqa: E402, F401
