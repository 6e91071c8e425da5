"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from fintrack.core.config import settings

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.rate_limit_storage,
    strategy="fixed-window",
)

# Specific rate limits for client endpoints
RATE_LIMITS = {
    "session_create": "30/minute",
    "badge_reset": "60/minute",
}
