"""HTTP clients for the market-data and news providers."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from fintrack.core.config import settings
from fintrack.core.exceptions import (
    ProviderError,
    ProviderPayloadError,
    ProviderRateLimitError,
)
from fintrack.models.popular_asset import AssetClass
from fintrack.schemas.market_data import (
    CmcCoin,
    CmcQuotesResponse,
    FinnhubArticle,
    FinnhubQuote,
)

logger = logging.getLogger(__name__)


@dataclass
class Quote:
    """Normalised quote for one symbol."""

    symbol: str
    asset_class: AssetClass
    price: float
    name: Optional[str] = None
    percent_change_24h: Optional[float] = None
    previous_close: Optional[float] = None
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None
    high_24h: Optional[float] = None
    low_24h: Optional[float] = None


def percent_change(current: float, previous: Optional[float]) -> float:
    """Percent change from previous to current; 0.0 when previous is unknown or zero."""
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


class MarketDataClient:
    """Quotes from CoinMarketCap (crypto) and Finnhub (stocks), news from Finnhub."""

    CMC = "coinmarketcap"
    FINNHUB = "finnhub"

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        finnhub_api_key: Optional[str] = None,
        coinmarketcap_api_key: Optional[str] = None,
    ):
        self.finnhub_api_key = finnhub_api_key if finnhub_api_key is not None else settings.FINNHUB_API_KEY
        self.coinmarketcap_api_key = (
            coinmarketcap_api_key if coinmarketcap_api_key is not None else settings.COINMARKETCAP_API_KEY
        )
        self.http_client = http_client or httpx.AsyncClient(
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
        )

    async def close(self):
        """Close HTTP client."""
        await self.http_client.aclose()

    async def __aenter__(self) -> "MarketDataClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_json(
        self,
        provider: str,
        url: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = await self.http_client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderError(provider, f"timeout calling {url}") from e
        except httpx.TransportError as e:
            raise ProviderError(provider, f"transport error: {e}") from e

        if response.status_code == 429:
            raise ProviderRateLimitError(provider, "rate limited")
        if response.status_code >= 400:
            raise ProviderError(provider, f"HTTP {response.status_code} from {url}")

        try:
            return response.json()
        except ValueError as e:
            raise ProviderPayloadError(provider, "response is not JSON") from e

    async def get_crypto_quote(self, symbol: str, convert: str = "USD") -> Quote:
        """Latest CoinMarketCap quote for a crypto symbol."""
        symbol = symbol.upper()
        data = await self._get_json(
            self.CMC,
            f"{settings.COINMARKETCAP_BASE_URL}/v2/cryptocurrency/quotes/latest",
            params={"symbol": symbol, "convert": convert},
            headers={"X-CMC_PRO_API_KEY": self.coinmarketcap_api_key},
        )

        try:
            parsed = CmcQuotesResponse.model_validate(data)
        except ValidationError as e:
            raise ProviderPayloadError(self.CMC, f"invalid quote payload for {symbol}") from e

        entry = parsed.data.get(symbol)
        coin: Optional[CmcCoin] = None
        if isinstance(entry, list):
            coin = entry[0] if entry else None
        else:
            coin = entry
        if coin is None:
            raise ProviderPayloadError(self.CMC, f"no data for {symbol}")

        quote = coin.quote.get(convert)
        if quote is None or quote.price is None or quote.price <= 0:
            raise ProviderPayloadError(self.CMC, f"missing {convert} price for {symbol}")

        return Quote(
            symbol=symbol,
            asset_class=AssetClass.CRYPTO,
            name=coin.name,
            price=quote.price,
            percent_change_24h=quote.percent_change_24h,
            market_cap=quote.market_cap,
            volume_24h=quote.volume_24h,
        )

    async def get_stock_quote(self, symbol: str) -> Quote:
        """Latest Finnhub quote for a stock symbol."""
        symbol = symbol.upper()
        data = await self._get_json(
            self.FINNHUB,
            f"{settings.FINNHUB_BASE_URL}/quote",
            params={"symbol": symbol, "token": self.finnhub_api_key},
        )

        try:
            parsed = FinnhubQuote.model_validate(data)
        except ValidationError as e:
            raise ProviderPayloadError(self.FINNHUB, f"invalid quote payload for {symbol}") from e

        # Finnhub answers unknown symbols with all-zero quotes
        if not parsed.c or parsed.c <= 0:
            raise ProviderPayloadError(self.FINNHUB, f"missing current price for {symbol}")

        change = parsed.dp if parsed.dp is not None else percent_change(parsed.c, parsed.pc)
        return Quote(
            symbol=symbol,
            asset_class=AssetClass.STOCK,
            price=parsed.c,
            percent_change_24h=change,
            previous_close=parsed.pc,
            high_24h=parsed.h,
            low_24h=parsed.l,
        )

    async def get_news(self, category: str) -> List[FinnhubArticle]:
        """Finnhub market news for one provider category.

        Items that do not match the article schema at all are dropped here;
        field-level validation happens in the news sync.
        """
        data = await self._get_json(
            self.FINNHUB,
            f"{settings.FINNHUB_BASE_URL}/news",
            params={"category": category, "minId": 0, "token": self.finnhub_api_key},
        )
        if not isinstance(data, list):
            raise ProviderPayloadError(self.FINNHUB, f"news response for {category} is not a list")

        articles: List[FinnhubArticle] = []
        for raw in data:
            try:
                articles.append(FinnhubArticle.model_validate(raw))
            except ValidationError:
                logger.warning(f"Skipping malformed {category} article from Finnhub")
        return articles
