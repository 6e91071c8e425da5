"""Application configuration."""

import os
from typing import List, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "FinTrack"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Secure default: disabled
    API_V1_PREFIX: str = "/api/v1"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"

    # Database - Credentials must come from environment
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "fintrack"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "fintrack"

    # Database pool configuration
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 3600

    @property
    def DATABASE_URL(self) -> str:
        """Build async database URL. Uses DATABASE_URL env var if set."""
        external = os.environ.get("DATABASE_URL", "")
        if external:
            return external.replace("postgresql://", "postgresql+asyncpg://")
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Build sync database URL for Alembic."""
        external = os.environ.get("DATABASE_URL", "")
        if external:
            return external.replace("postgresql+asyncpg://", "postgresql://")
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Redis (Celery broker, job locks, rate limiting)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    @property
    def REDIS_URL(self) -> str:
        """Build Redis URL. Uses REDIS_URL env var if set."""
        external = os.environ.get("REDIS_URL", "")
        if external:
            return external
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"

    # Rate limiting for client endpoints; empty means "use Redis"
    RATE_LIMIT_STORAGE_URI: str = ""
    RATE_LIMIT_PER_MINUTE: int = 60

    # External data providers
    FINNHUB_API_KEY: str = ""
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    COINMARKETCAP_API_KEY: str = ""
    COINMARKETCAP_BASE_URL: str = "https://pro-api.coinmarketcap.com"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Billing webhook
    REVENUECAT_WEBHOOK_SECRET: str = ""

    # Push delivery (Firebase Cloud Messaging)
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    PUSH_TIMEOUT_SECONDS: float = 10.0

    # Price sync
    POPULAR_CRYPTO_SYMBOLS: Union[str, List[str]] = "BTC,ETH,USDT,XRP,BNB,SOL,USDC,DOGE"
    POPULAR_STOCK_SYMBOLS: Union[str, List[str]] = "AAPL,MSFT,GOOGL,AMZN,META,TSLA,NVDA,WMT"

    # News sync
    NEWS_CATEGORIES: Union[str, List[str]] = "crypto,general,forex,merger,business"
    NEWS_RETENTION_HOURS: int = 24

    # Notifications
    NEWS_DIGEST_WINDOW_HOURS: int = 8
    PRICE_ALERT_THRESHOLD_PERCENT: float = 5.0
    PRICE_ALERT_DELAY_SECONDS: float = 1.0
    PRICE_STALE_AFTER_MINUTES: int = 60

    # Scheduled jobs
    JOB_LOCK_TIMEOUT_SECONDS: int = 600
    JOB_MAX_RETRIES: int = 3

    @field_validator(
        "POPULAR_CRYPTO_SYMBOLS",
        "POPULAR_STOCK_SYMBOLS",
        "NEWS_CATEGORIES",
        mode="before",
    )
    @classmethod
    def parse_csv_list(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return level

    @property
    def rate_limit_storage(self) -> str:
        return self.RATE_LIMIT_STORAGE_URI or self.REDIS_URL

    @property
    def has_firebase_credentials(self) -> bool:
        """Check if Firebase credentials are configured."""
        return bool(self.FIREBASE_CREDENTIALS_PATH)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
