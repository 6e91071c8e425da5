"""Provider payload schemas.

Every field is optional: providers return partial objects often enough that
required-ness is checked by the sync services, which skip the item instead
of failing the batch.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ProviderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FinnhubArticle(ProviderModel):
    """One item of Finnhub's /news response."""

    id: Optional[int] = None
    category: Optional[str] = None
    published: Optional[int] = Field(None, alias="datetime")  # unix seconds
    headline: Optional[str] = None
    image: Optional[str] = None
    related: Optional[str] = None
    source: Optional[str] = None
    summary: Optional[str] = None
    url: Optional[str] = None


class FinnhubQuote(ProviderModel):
    """Finnhub /quote response."""

    c: Optional[float] = None  # current price
    d: Optional[float] = None  # change
    dp: Optional[float] = None  # percent change
    h: Optional[float] = None  # high of the day
    l: Optional[float] = None  # low of the day  # noqa: E741
    o: Optional[float] = None  # open
    pc: Optional[float] = None  # previous close
    t: Optional[int] = None


class CmcQuoteValue(ProviderModel):
    price: Optional[float] = None
    percent_change_24h: Optional[float] = None
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None


class CmcCoin(ProviderModel):
    name: Optional[str] = None
    symbol: Optional[str] = None
    quote: Dict[str, CmcQuoteValue] = Field(default_factory=dict)


class CmcQuotesResponse(ProviderModel):
    """CoinMarketCap /v2/cryptocurrency/quotes/latest response.

    v2 returns a list of coins per symbol; v1 returned a single object.
    """

    data: Dict[str, Union[List[CmcCoin], CmcCoin]] = Field(default_factory=dict)
