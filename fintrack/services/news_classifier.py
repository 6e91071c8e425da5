"""News category classification.

Provider labels are normalised to exactly two categories by an ordered list
of rules. Each rule looks at the article text and either returns a category
or passes; the first rule that answers wins.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from fintrack.models.news import NewsCategory

CRYPTO_SOURCES = (
    "coindesk",
    "cointelegraph",
    "cryptonews",
    "bitcoin.com",
    "decrypt",
    "theblock",
    "coinbase",
    "binance",
    "cryptoslate",
)

CRYPTO_KEYWORDS = (
    "crypto",
    "bitcoin",
    "btc",
    "ethereum",
    "eth",
    "blockchain",
    "defi",
    "nft",
    "web3",
    "altcoin",
    "cryptocurrency",
    "cryptocurrencies",
    "binance",
    "coinbase",
    "token",
    "mining",
    "staking",
    "dao",
    "dex",
    "wallet",
    "stablecoin",
)

PROVIDER_CATEGORY_MAP = {
    "top news": NewsCategory.STOCKS,
    "business": NewsCategory.STOCKS,
    "company news": NewsCategory.STOCKS,
    "crypto": NewsCategory.CRYPTO,
    "cryptocurrency": NewsCategory.CRYPTO,
    "forex": NewsCategory.STOCKS,
    "merger": NewsCategory.STOCKS,
    "general": NewsCategory.STOCKS,
}

DEFAULT_CATEGORY = NewsCategory.STOCKS

# Plain substring match: "tokenized" and "bitcoiners" count as crypto
_KEYWORD_RE = re.compile("|".join(re.escape(k) for k in CRYPTO_KEYWORDS), re.IGNORECASE)


@dataclass(frozen=True)
class ArticleText:
    headline: str = ""
    provider_category: str = ""
    source: str = ""


Rule = Callable[[ArticleText], Optional[NewsCategory]]


def source_rule(article: ArticleText) -> Optional[NewsCategory]:
    source = article.source.lower()
    if source and any(known in source for known in CRYPTO_SOURCES):
        return NewsCategory.CRYPTO
    return None


def keyword_rule(article: ArticleText) -> Optional[NewsCategory]:
    if _KEYWORD_RE.search(article.headline) or _KEYWORD_RE.search(article.provider_category):
        return NewsCategory.CRYPTO
    return None


def provider_category_rule(article: ArticleText) -> Optional[NewsCategory]:
    return PROVIDER_CATEGORY_MAP.get(article.provider_category.strip().lower())


def default_rule(article: ArticleText) -> Optional[NewsCategory]:
    return DEFAULT_CATEGORY


DEFAULT_RULES: Sequence[Rule] = (source_rule, keyword_rule, provider_category_rule, default_rule)


def classify(article: ArticleText, rules: Sequence[Rule] = DEFAULT_RULES) -> NewsCategory:
    for rule in rules:
        category = rule(article)
        if category is not None:
            return category
    return DEFAULT_CATEGORY


def classify_article(provider_category: Optional[str], headline: Optional[str], source: Optional[str]) -> NewsCategory:
    return classify(
        ArticleText(
            headline=headline or "",
            provider_category=provider_category or "general",
            source=source or "",
        )
    )
