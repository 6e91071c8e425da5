"""Pydantic schemas."""

from fintrack.schemas.market_data import (
    CmcCoin,
    CmcQuotesResponse,
    FinnhubArticle,
    FinnhubQuote,
)
from fintrack.schemas.session import (
    BadgeResponse,
    SessionCreate,
    SessionResponse,
)
from fintrack.schemas.system import SyncStatusResponse
from fintrack.schemas.webhook import (
    SubscriptionEvent,
    WebhookEnvelope,
    WebhookEnvelopeHead,
)
