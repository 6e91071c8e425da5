"""News sync tests."""

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.clock import utcnow
from fintrack.core.exceptions import ProviderError
from fintrack.models.news import NewsCategory, NewsItem
from fintrack.models.sync_status import SyncOutcome, SyncStatus
from fintrack.schemas.market_data import FinnhubArticle
from fintrack.services.news_sync_service import NewsSyncService
from fintrack.services.sync_status_service import NEWS_SYNC


class FakeNewsClient:
    """Serves canned articles per category; categories in `failing` raise."""

    def __init__(self, feeds=None, failing=()):
        self.feeds = feeds or {}
        self.failing = set(failing)
        self.calls = []

    async def get_news(self, category):
        self.calls.append(category)
        if category in self.failing:
            raise ProviderError("finnhub", f"HTTP 503 for {category}")
        return [FinnhubArticle.model_validate(raw) for raw in self.feeds.get(category, [])]


def _article(article_id, hours_ago=1.0, now=None, **fields):
    now = now or utcnow()
    raw = {
        "id": article_id,
        "category": "general",
        "datetime": int((now - timedelta(hours=hours_ago)).timestamp()),
        "headline": f"Headline {article_id}",
        "summary": f"Summary {article_id}",
        "source": "Reuters",
        "url": f"https://example.com/{article_id}",
        "image": "",
        "related": "",
    }
    raw.update(fields)
    return raw


async def _stored(db: AsyncSession):
    result = await db.execute(select(NewsItem).order_by(NewsItem.id))
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_sync_stores_and_classifies(db_session: AsyncSession):
    now = utcnow()
    client = FakeNewsClient(
        feeds={
            "general": [_article(1, now=now), _article(2, now=now, headline="Bitcoin tops $100k")],
            "crypto": [_article(3, now=now, category="top news")],
        }
    )
    service = NewsSyncService(db_session, client, categories=["general", "crypto"])

    result = await service.run(now=now)

    items = {item.id: item for item in await _stored(db_session)}
    assert set(items) == {"1", "2", "3"}
    assert items["1"].category == NewsCategory.STOCKS
    assert items["2"].category == NewsCategory.CRYPTO
    # Articles from the crypto feed are relabelled before classification
    assert items["3"].category == NewsCategory.CRYPTO
    assert items["1"].image_url is None
    assert result.stored == 3
    assert result.by_category == {"stocks": 1, "crypto": 2}


@pytest.mark.asyncio
async def test_duplicates_and_invalid_items_are_skipped(db_session: AsyncSession):
    now = utcnow()
    client = FakeNewsClient(
        feeds={
            "general": [
                _article(1, now=now),
                _article(1, now=now, headline="Duplicate"),
                _article(2, now=now, headline="   "),
                _article(3, now=now, datetime=None),
                _article(None, now=now),
                _article(4, now=now, hours_ago=30),
                _article(5, now=now, summary="", source=""),
            ]
        }
    )
    service = NewsSyncService(db_session, client, categories=["general"])

    result = await service.run(now=now)

    items = {item.id: item for item in await _stored(db_session)}
    assert set(items) == {"1", "5"}
    assert items["1"].headline == "Headline 1"
    assert items["5"].summary == "Headline 5"
    assert items["5"].source == "Unknown"
    assert result.skipped == 5


@pytest.mark.asyncio
async def test_rerun_upserts_by_provider_id(db_session: AsyncSession):
    now = utcnow()
    client = FakeNewsClient(feeds={"general": [_article(1, now=now)]})
    service = NewsSyncService(db_session, client, categories=["general"])

    await service.run(now=now)
    client.feeds["general"] = [_article(1, now=now, headline="Updated headline")]
    await service.run(now=now)

    items = await _stored(db_session)
    assert len(items) == 1
    assert items[0].headline == "Updated headline"


@pytest.mark.asyncio
async def test_failed_category_does_not_block_others(db_session: AsyncSession):
    now = utcnow()
    client = FakeNewsClient(feeds={"general": [_article(1, now=now)]}, failing={"forex"})
    service = NewsSyncService(db_session, client, categories=["forex", "general"])

    result = await service.run(now=now)

    assert [item.id for item in await _stored(db_session)] == ["1"]
    assert "forex" in result.failed_categories
    status = await db_session.get(SyncStatus, NEWS_SYNC, populate_existing=True)
    assert status.status == SyncOutcome.SUCCESS


@pytest.mark.asyncio
async def test_old_articles_pruned_even_when_every_fetch_fails(db_session: AsyncSession):
    now = utcnow()
    db_session.add(
        NewsItem(
            id="old",
            headline="Yesterday's news",
            summary="Yesterday's news",
            url="",
            source="Reuters",
            category=NewsCategory.STOCKS,
            published_at=now - timedelta(hours=25),
        )
    )
    db_session.add(
        NewsItem(
            id="fresh",
            headline="Recent news",
            summary="Recent news",
            url="",
            source="Reuters",
            category=NewsCategory.STOCKS,
            published_at=now - timedelta(hours=2),
        )
    )
    await db_session.commit()

    client = FakeNewsClient(failing={"general", "crypto"})
    service = NewsSyncService(db_session, client, categories=["general", "crypto"])

    result = await service.run(now=now)

    assert [item.id for item in await _stored(db_session)] == ["fresh"]
    assert result.pruned == 1

    status = await db_session.get(SyncStatus, NEWS_SYNC, populate_existing=True)
    assert status.status == SyncOutcome.ERROR
    assert status.error


@pytest.mark.asyncio
async def test_status_records_stats(db_session: AsyncSession):
    now = utcnow()
    client = FakeNewsClient(feeds={"general": [_article(7, now=now)]})

    await NewsSyncService(db_session, client, categories=["general"]).run(now=now)

    status = await db_session.get(SyncStatus, NEWS_SYNC, populate_existing=True)
    assert status.status == SyncOutcome.SUCCESS
    assert status.error is None
    assert status.stats["newArticles"] == 1
    assert status.stats["lastArticleId"] == "7"


@pytest.mark.asyncio
async def test_explicit_zero_retention_is_respected(db_session: AsyncSession):
    service = NewsSyncService(db_session, FakeNewsClient(), categories=["general"], retention_hours=0)
    assert service.retention == timedelta(0)


@pytest.mark.asyncio
async def test_default_retention_is_a_day(db_session: AsyncSession):
    service = NewsSyncService(db_session, FakeNewsClient(), categories=["general"])
    assert service.retention == timedelta(hours=24)
