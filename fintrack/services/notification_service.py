"""Notification dispatch: welcome messages, news digests and price alerts."""

import asyncio
import enum
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.clock import as_utc, utcnow
from fintrack.core.config import settings
from fintrack.models.news import NewsItem
from fintrack.models.popular_asset import PopularAsset
from fintrack.models.portfolio import PortfolioAsset
from fintrack.models.price_mark import PriceMark
from fintrack.models.user import User
from fintrack.models.user_session import UserSession
from fintrack.services.market_data import percent_change
from fintrack.services.push_service import PushNotification, PushService

logger = logging.getLogger(__name__)


class NotificationType(str, enum.Enum):
    WELCOME = "WELCOME"
    WELCOME_BACK = "WELCOME_BACK"
    NEWS_DIGEST = "NEWS_DIGEST"
    PRICE_CHANGE = "PRICE_CHANGE"


@dataclass
class PriceChange:
    """A symbol whose price moved past the alert threshold for one user."""

    symbol: str
    name: str
    change: float  # signed percent
    price: float

    @property
    def direction(self) -> str:
        return "up" if self.change > 0 else "down"

    def to_notification(self, badge: int = 1) -> PushNotification:
        emoji = "📈" if self.direction == "up" else "📉"
        magnitude = abs(self.change)
        return PushNotification(
            title=f"{emoji} {self.symbol} Price Alert",
            body=(
                f"{self.name} has moved {self.direction} by {magnitude:.2f}% "
                f"(Price: ${self.price:.2f})"
            ),
            data={
                "type": NotificationType.PRICE_CHANGE.value,
                "symbol": self.symbol,
                "name": self.name,
                "direction": self.direction,
                "change": f"{magnitude:.2f}",
                "price": str(self.price),
                "action": "VIEW_ASSET",
            },
            badge=badge,
        )


@dataclass(frozen=True)
class Recipient:
    """Plain copy of a user row, safe to use after a rollback."""

    id: str
    fcm_token: str


@dataclass(frozen=True)
class PriceSnapshot:
    symbol: str
    name: Optional[str]
    price: Optional[float]
    last_updated: Optional[datetime]


def welcome_notification(session: UserSession) -> PushNotification:
    if session.is_new_user:
        return PushNotification(
            title="Welcome to FinTrack! 👋",
            body="Start tracking your investments and stay updated with market news.",
            data={
                "type": NotificationType.WELCOME.value,
                "action": "OPEN_ONBOARDING",
                "userId": session.user_id,
            },
        )
    return PushNotification(
        title="Welcome Back! 👋",
        body="Check out the latest market updates since your last visit.",
        data={
            "type": NotificationType.WELCOME_BACK.value,
            "action": "OPEN_PORTFOLIO",
            "userId": session.user_id,
            "sessionId": session.id,
        },
    )


def build_digest_body(counts: Dict[str, int]) -> str:
    lines = ["Latest market updates:"]
    lines.extend(f"{count} {category} articles" for category, count in counts.items())
    return "\n".join(lines)


def detect_price_change(
    current_price: Optional[float],
    last_known_price: Optional[float],
    threshold: float,
) -> Optional[float]:
    """Signed percent change when it reaches the threshold, else None.

    An unknown last-known price defaults to the current price, i.e. no change.
    """
    if not current_price or current_price <= 0:
        return None
    baseline = last_known_price or current_price
    change = percent_change(current_price, baseline)
    if abs(change) >= threshold:
        return change
    return None


class NotificationDispatcher:
    """Computes who gets which notification and hands them to the push service."""

    def __init__(
        self,
        db: AsyncSession,
        push: PushService,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        alert_threshold: Optional[float] = None,
        alert_delay: Optional[float] = None,
    ):
        self.db = db
        self.push = push
        self.sleep = sleep
        self.alert_threshold = alert_threshold if alert_threshold is not None else settings.PRICE_ALERT_THRESHOLD_PERCENT
        self.alert_delay = alert_delay if alert_delay is not None else settings.PRICE_ALERT_DELAY_SECONDS
        self.digest_window = timedelta(hours=settings.NEWS_DIGEST_WINDOW_HOURS)
        self.stale_after = timedelta(minutes=settings.PRICE_STALE_AFTER_MINUTES)

    # Welcome / welcome back

    async def send_session_greeting(self, session_id: str) -> bool:
        """Greet a user after sign-in. Sessions without a push token are ignored."""
        session = await self.db.get(UserSession, session_id)
        if session is None or not session.user_id or not session.fcm_token:
            logger.info(f"Skipping welcome notification for session {session_id}: missing data")
            return False

        notification = welcome_notification(session)
        sent = await self.push.send(session.fcm_token, notification)
        if sent:
            logger.info(f"{notification.data['type']} notification sent to user {session.user_id}")
        return sent

    # News digest

    async def send_news_digest(self, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        since = now - self.digest_window

        result = await self.db.execute(
            select(NewsItem.category)
            .where(NewsItem.published_at >= since)
            .order_by(NewsItem.published_at.desc())
        )
        categories = [c.value if hasattr(c, "value") else c for c in result.scalars().all()]
        if not categories:
            logger.info(f"No news articles found in the last {self.digest_window}")
            return {"articles": 0, "recipients": 0, "sent": 0}

        body = build_digest_body(dict(Counter(categories)))
        users = await self._eligible_users()
        logger.info(f"Sending news digest to {len(users)} users")

        sent = 0
        for user in users:
            notification = PushNotification(
                title="Market News Digest 📰",
                body=body,
                data={
                    "type": NotificationType.NEWS_DIGEST.value,
                    "count": str(len(categories)),
                    "userId": user.id,
                },
            )
            try:
                if await self.push.send(user.fcm_token, notification):
                    sent += 1
            except Exception as e:
                logger.error(f"Error sending news digest to user {user.id}: {e}")

        return {"articles": len(categories), "recipients": len(users), "sent": sent}

    # Price alerts

    async def send_price_alerts(self, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        users = await self._eligible_users()
        if not users:
            logger.info("No users with notifications enabled")
            return {"users_checked": 0, "alerts_queued": 0, "sent": 0}

        popular = await self._load_prices()
        logger.info(f"Checking price changes for {len(users)} users against {len(popular)} popular assets")

        totals = {"users_checked": 0, "alerts_queued": 0, "sent": 0}
        for user in users:
            try:
                queued, sent = await self._process_user_alerts(user, popular, now)
            except Exception as e:
                logger.error(f"Error processing price alerts for user {user.id}: {type(e).__name__}: {e}")
                await self.db.rollback()
                continue
            totals["users_checked"] += 1
            totals["alerts_queued"] += queued
            totals["sent"] += sent

        logger.info(
            f"Price alert run complete: {totals['users_checked']} users, "
            f"{totals['alerts_queued']} alerts queued, {totals['sent']} sent"
        )
        return totals

    async def _process_user_alerts(self, user: Recipient, prices: Dict[str, PriceSnapshot], now: datetime):
        symbols = await self._symbols_for_user(user.id, prices)
        marks = await self._load_marks(user.id)

        changes: List[PriceChange] = []
        checked: Dict[str, float] = {}
        for symbol, name in symbols.items():
            asset = prices.get(symbol)
            if asset is None:
                logger.debug(f"No price data found for {symbol}")
                continue
            if not asset.price or asset.price <= 0 or asset.last_updated is None:
                logger.debug(f"Invalid price data for {symbol}")
                continue
            if now - as_utc(asset.last_updated) > self.stale_after:
                logger.debug(f"Stale price data for {symbol}, last updated {asset.last_updated}")
                continue

            checked[symbol] = asset.price
            change = detect_price_change(asset.price, marks.get(symbol), self.alert_threshold)
            if change is not None:
                changes.append(PriceChange(symbol=symbol, name=name, change=change, price=asset.price))

        sent = await self._deliver_alerts(user, changes)
        await self._save_marks(user.id, checked, now)
        return len(changes), sent

    async def _deliver_alerts(self, user: Recipient, changes: List[PriceChange]) -> int:
        """Send serially with a fixed delay; each send bumps the stored badge first."""
        sent = 0
        token = user.fcm_token
        for i, change in enumerate(changes):
            if self.push.is_invalidated(token):
                logger.info(f"Token for user {user.id} was invalidated, dropping remaining alerts")
                break
            if i > 0:
                await self.sleep(self.alert_delay)

            badge = await self.increment_badge(user.id)
            if await self.push.send(token, change.to_notification(badge=badge)):
                sent += 1
                logger.info(f"Price alert sent for {change.symbol} to user {user.id}")
        return sent

    async def increment_badge(self, user_id: str) -> int:
        """Atomically add one to the stored badge count and return the new value."""
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(badge_count=User.badge_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        badge = await self.db.scalar(select(User.badge_count).where(User.id == user_id))
        return badge or 1

    # Rows are copied into plain values: a per-user rollback expires every
    # loaded ORM instance, and the loops must keep going after one.

    async def _eligible_users(self) -> List[Recipient]:
        result = await self.db.execute(
            select(User.id, User.fcm_token)
            .where(
                User.notifications_enabled.is_(True),
                User.fcm_token.isnot(None),
                User.fcm_token != "",
            )
            .order_by(User.id)
        )
        return [Recipient(id=user_id, fcm_token=token) for user_id, token in result.all()]

    async def _load_prices(self) -> Dict[str, PriceSnapshot]:
        result = await self.db.execute(
            select(
                PopularAsset.symbol,
                PopularAsset.name,
                PopularAsset.current_price,
                PopularAsset.last_updated,
            )
        )
        return {
            symbol: PriceSnapshot(symbol=symbol, name=name, price=price, last_updated=last_updated)
            for symbol, name, price, last_updated in result.all()
        }

    async def _symbols_for_user(self, user_id: str, popular: Dict[str, PriceSnapshot]) -> Dict[str, str]:
        """Portfolio symbols first, then the watch-list, deduplicated by symbol."""
        result = await self.db.execute(
            select(PortfolioAsset.symbol, PortfolioAsset.name).where(PortfolioAsset.user_id == user_id)
        )
        symbols: Dict[str, str] = {}
        for symbol, name in result.all():
            symbol = symbol.upper()
            if symbol not in symbols:
                symbols[symbol] = name or symbol
        for symbol, asset in popular.items():
            if symbol not in symbols:
                symbols[symbol] = asset.name or symbol
        return symbols

    async def _load_marks(self, user_id: str) -> Dict[str, float]:
        result = await self.db.execute(
            select(PriceMark.symbol, PriceMark.price).where(PriceMark.user_id == user_id)
        )
        return {symbol: price for symbol, price in result.all()}

    async def _save_marks(self, user_id: str, prices: Dict[str, float], now: datetime) -> None:
        for symbol, price in prices.items():
            await self.db.merge(PriceMark(user_id=user_id, symbol=symbol, price=price, updated_at=now))
        await self.db.commit()
