"""Firebase Admin SDK initialisation."""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from fintrack.core.config import settings

logger = logging.getLogger(__name__)

_app: Optional[firebase_admin.App] = None


def get_firebase_app() -> firebase_admin.App:
    """Initialise the default Firebase app on first use."""
    global _app
    if _app is None:
        if settings.has_firebase_credentials:
            cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
            _app = firebase_admin.initialize_app(cred)
        else:
            # Falls back to Application Default Credentials
            _app = firebase_admin.initialize_app()
        logger.info("Firebase app initialised")
    return _app
