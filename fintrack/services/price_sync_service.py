"""Popular-asset price synchronisation."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.clock import as_utc, utcnow
from fintrack.core.config import settings
from fintrack.models.popular_asset import AssetClass, PopularAsset
from fintrack.models.sync_status import SyncOutcome
from fintrack.services.market_data import MarketDataClient, Quote, percent_change
from fintrack.services.sync_status_service import PRICE_SYNC, record_sync_status

logger = logging.getLogger(__name__)


@dataclass
class PriceSyncResult:
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    def as_stats(self) -> dict:
        return {
            "updated": len(self.updated),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "failedSymbols": sorted(self.failed),
        }


class PriceSyncService:
    """Refreshes the stored price of every watch-list symbol.

    Each symbol is fetched and committed on its own so one failing quote
    never rolls back or blocks the others.
    """

    def __init__(
        self,
        db: AsyncSession,
        client: MarketDataClient,
        crypto_symbols: Optional[Sequence[str]] = None,
        stock_symbols: Optional[Sequence[str]] = None,
    ):
        self.db = db
        self.client = client
        self.crypto_symbols = list(crypto_symbols if crypto_symbols is not None else settings.POPULAR_CRYPTO_SYMBOLS)
        self.stock_symbols = list(stock_symbols if stock_symbols is not None else settings.POPULAR_STOCK_SYMBOLS)

    async def run(self) -> PriceSyncResult:
        """Run one pass and record the job status."""
        logger.info("Starting popular assets sync...")
        try:
            result = await self.sync()
        except Exception as e:
            logger.error(f"Error syncing popular assets: {type(e).__name__}: {e}")
            await self.db.rollback()
            await record_sync_status(self.db, PRICE_SYNC, SyncOutcome.ERROR, error=str(e))
            raise

        await record_sync_status(self.db, PRICE_SYNC, SyncOutcome.SUCCESS, stats=result.as_stats())
        logger.info(
            f"Popular assets sync complete: {len(result.updated)} updated, {len(result.failed)} failed"
        )
        return result

    async def sync(self) -> PriceSyncResult:
        result = PriceSyncResult()
        for symbol in self.crypto_symbols:
            await self._sync_symbol(symbol, AssetClass.CRYPTO, result)
        for symbol in self.stock_symbols:
            await self._sync_symbol(symbol, AssetClass.STOCK, result)
        return result

    async def _sync_symbol(self, symbol: str, asset_class: AssetClass, result: PriceSyncResult) -> None:
        try:
            if asset_class == AssetClass.CRYPTO:
                quote = await self.client.get_crypto_quote(symbol)
            else:
                quote = await self.client.get_stock_quote(symbol)
        except Exception as e:
            logger.warning(f"Error fetching {asset_class.value} quote for {symbol}: {e}")
            result.failed[symbol] = str(e)
            return

        try:
            stored = await self.apply_quote(quote)
        except Exception as e:
            logger.error(f"Error storing price for {symbol}: {type(e).__name__}: {e}")
            await self.db.rollback()
            result.failed[symbol] = str(e)
            return

        if stored is None:
            result.skipped.append(quote.symbol)
        else:
            result.updated.append(quote.symbol)

    async def apply_quote(self, quote: Quote, now: Optional[datetime] = None) -> Optional[PopularAsset]:
        """Write one quote over the stored record and commit.

        Returns None when the stored record is newer than this run, which
        happens when two syncs overlap.
        """
        now = now or utcnow()
        existing = await self.db.get(PopularAsset, quote.symbol, populate_existing=True)

        if existing is not None and existing.last_updated and as_utc(existing.last_updated) > now:
            logger.info(f"Skipping stale quote for {quote.symbol}: stored record is newer")
            return None

        previous = existing.current_price if existing is not None and existing.current_price else quote.price
        change = quote.percent_change_24h
        if change is None:
            change = percent_change(quote.price, previous)

        if existing is None:
            existing = PopularAsset(symbol=quote.symbol, asset_class=quote.asset_class)
            self.db.add(existing)

        existing.name = quote.name or existing.name or quote.symbol
        existing.asset_class = quote.asset_class
        existing.previous_price = previous
        existing.current_price = quote.price
        existing.percent_change_24h = change
        existing.market_cap = quote.market_cap
        existing.volume_24h = quote.volume_24h
        existing.high_24h = quote.high_24h
        existing.low_24h = quote.low_24h
        existing.last_updated = now

        await self.db.commit()
        logger.debug(f"Updated {quote.asset_class.value} price for {quote.symbol}: ${quote.price}")
        return existing
