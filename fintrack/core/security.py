"""Security utilities: webhook signatures and Firebase ID tokens."""

import hashlib
import hmac
import logging
import re
from typing import Optional

from firebase_admin import auth as firebase_auth

from fintrack.core.config import settings
from fintrack.core.exceptions import WebhookHeaderError, WebhookSignatureError
from fintrack.core.firebase import get_firebase_app

logger = logging.getLogger(__name__)

_HEX_DIGEST = re.compile(r"^[0-9a-fA-F]{64}$")


def compute_signature(payload: bytes, secret: str) -> str:
    """HMAC-SHA256 hex digest of a raw request body."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    signature: Optional[str],
    secret: Optional[str] = None,
) -> None:
    """Check the X-Signature header against the raw body.

    Raises WebhookHeaderError when the header is missing or is not a hex
    SHA-256 digest, and WebhookSignatureError when it does not match.
    """
    if not signature or not _HEX_DIGEST.match(signature.strip()):
        raise WebhookHeaderError()

    secret = secret if secret is not None else settings.REVENUECAT_WEBHOOK_SECRET
    if not secret:
        logger.error("RevenueCat webhook secret is not configured")
        raise WebhookSignatureError()

    expected = compute_signature(payload, secret)
    if not hmac.compare_digest(signature.strip().lower(), expected):
        raise WebhookSignatureError()


def verify_id_token(id_token: str) -> Optional[str]:
    """Return the Firebase uid for a client ID token, or None if invalid."""
    try:
        decoded = firebase_auth.verify_id_token(id_token, app=get_firebase_app())
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError) as e:
        logger.info(f"Rejected Firebase ID token: {type(e).__name__}")
        return None
    return decoded.get("uid")
