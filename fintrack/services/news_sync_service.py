"""Market news synchronisation."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.clock import utcnow
from fintrack.core.config import settings
from fintrack.models.news import NewsItem
from fintrack.models.sync_status import SyncOutcome
from fintrack.schemas.market_data import FinnhubArticle
from fintrack.services.market_data import MarketDataClient
from fintrack.services.news_classifier import classify_article
from fintrack.services.sync_status_service import NEWS_SYNC, record_sync_status

logger = logging.getLogger(__name__)

CRYPTO_FEED = "crypto"


@dataclass
class NewsSyncResult:
    fetched: int = 0
    stored: int = 0
    skipped: int = 0
    pruned: int = 0
    last_article_id: Optional[str] = None
    by_category: Dict[str, int] = field(default_factory=dict)
    failed_categories: Dict[str, str] = field(default_factory=dict)
    write_error: Optional[str] = None
    prune_error: Optional[str] = None

    @property
    def error(self) -> Optional[str]:
        errors = [e for e in (self.write_error, self.prune_error) if e]
        return "; ".join(errors) if errors else None

    def as_stats(self) -> dict:
        return {
            "fetched": self.fetched,
            "newArticles": self.stored,
            "skipped": self.skipped,
            "pruned": self.pruned,
            "lastArticleId": self.last_article_id,
            "byCategory": self.by_category,
            "failedCategories": self.failed_categories,
        }


class NewsSyncService:
    """Fetches, validates, classifies, stores and prunes news articles."""

    def __init__(
        self,
        db: AsyncSession,
        client: MarketDataClient,
        categories: Optional[Sequence[str]] = None,
        retention_hours: Optional[int] = None,
    ):
        self.db = db
        self.client = client
        self.categories = list(categories if categories is not None else settings.NEWS_CATEGORIES)
        self.retention = timedelta(
            hours=retention_hours if retention_hours is not None else settings.NEWS_RETENTION_HOURS
        )

    async def run(self, now: Optional[datetime] = None) -> NewsSyncResult:
        """Run one sync pass and record the job status.

        Pruning runs even when fetching or the batch write failed.
        """
        now = now or utcnow()
        cutoff = now - self.retention
        result = NewsSyncResult()
        logger.info(f"Starting news sync at {now.isoformat()}")

        articles = await self.fetch_all(result)
        items = self.prepare(articles, cutoff, result)

        try:
            await self.store(items)
            result.stored = len(items)
            result.by_category = dict(Counter(item.category.value for item in items))
        except Exception as e:
            logger.error(f"Error writing news batch: {type(e).__name__}: {e}")
            await self.db.rollback()
            result.write_error = str(e)

        try:
            result.pruned = await self.prune(cutoff)
        except Exception as e:
            logger.error(f"Error pruning old news: {type(e).__name__}: {e}")
            await self.db.rollback()
            result.prune_error = str(e)

        if self.categories and len(result.failed_categories) == len(self.categories) and not result.error:
            result.write_error = "all news categories failed to fetch"

        outcome = SyncOutcome.ERROR if result.error else SyncOutcome.SUCCESS
        await record_sync_status(
            self.db, NEWS_SYNC, outcome, error=result.error, stats=result.as_stats()
        )
        logger.info(
            f"News sync finished ({outcome.value}): fetched={result.fetched} "
            f"stored={result.stored} skipped={result.skipped} pruned={result.pruned}"
        )
        return result

    async def fetch_all(self, result: NewsSyncResult) -> List[FinnhubArticle]:
        """Fetch every category; a failing category is logged and skipped."""
        articles: List[FinnhubArticle] = []
        for category in self.categories:
            try:
                fetched = await self.client.get_news(category)
            except Exception as e:
                logger.warning(f"Error fetching {category} news: {e}")
                result.failed_categories[category] = str(e)
                continue

            if category == CRYPTO_FEED:
                fetched = [a.model_copy(update={"category": CRYPTO_FEED}) for a in fetched]

            logger.info(f"Fetched {len(fetched)} {category} articles")
            articles.extend(fetched)

        result.fetched = len(articles)
        if articles and articles[0].id is not None:
            result.last_article_id = str(articles[0].id)
        return articles

    def prepare(
        self,
        articles: Sequence[FinnhubArticle],
        cutoff: datetime,
        result: Optional[NewsSyncResult] = None,
    ) -> List[NewsItem]:
        """Validate, dedup and classify articles into rows ready to upsert.

        The first valid occurrence of a provider id wins.
        """
        result = result or NewsSyncResult()
        seen: set = set()
        items: List[NewsItem] = []

        for article in articles:
            if article.id is None:
                result.skipped += 1
                continue
            article_id = str(article.id)
            if article_id in seen:
                logger.debug(f"Skipping duplicate article {article_id}")
                result.skipped += 1
                continue

            headline = (article.headline or "").strip()
            if not headline:
                logger.debug(f"Skipping article {article_id}: missing headline")
                result.skipped += 1
                continue
            if not article.published:
                logger.debug(f"Skipping article {article_id}: missing timestamp")
                result.skipped += 1
                continue

            published_at = datetime.fromtimestamp(article.published, tz=timezone.utc)
            if published_at < cutoff:
                logger.debug(f"Skipping old article {article_id} from {published_at.isoformat()}")
                result.skipped += 1
                continue

            seen.add(article_id)
            items.append(
                NewsItem(
                    id=article_id,
                    headline=headline,
                    summary=(article.summary or "").strip() or headline,
                    url=(article.url or "").strip(),
                    source=(article.source or "").strip() or "Unknown",
                    image_url=(article.image or "").strip() or None,
                    related=(article.related or "").strip() or None,
                    category=classify_article(article.category, headline, article.source),
                    published_at=published_at,
                )
            )
        return items

    async def store(self, items: Sequence[NewsItem]) -> None:
        """Upsert the batch keyed by provider id in a single commit."""
        if not items:
            return
        for item in items:
            await self.db.merge(item)
        await self.db.commit()
        logger.info(f"Saved {len(items)} articles")

    async def prune(self, cutoff: datetime) -> int:
        result = await self.db.execute(delete(NewsItem).where(NewsItem.published_at < cutoff))
        await self.db.commit()
        deleted = result.rowcount or 0
        if deleted:
            logger.info(f"Cleaned up {deleted} old articles")
        return deleted
