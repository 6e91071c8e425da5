"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator, Dict, List, Tuple

# Set test env vars before any app import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("REVENUECAT_WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("FINNHUB_API_KEY", "test-finnhub-key")
os.environ.setdefault("COINMARKETCAP_API_KEY", "test-cmc-key")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fintrack.api.deps import get_current_uid, get_greeting_enqueuer
from fintrack.core.database import get_db
from fintrack.core.exceptions import PushDeliveryError, TokenInvalidError
from fintrack.main import app
from fintrack.models import Base
from fintrack.models.user import User
from fintrack.services.push_service import PushNotification, PushProvider, PushService

TEST_UID = "firebase-user-1"


class FakePushProvider(PushProvider):
    """Records deliveries; tokens listed in `unregistered` behave like FCM's."""

    def __init__(self, unregistered=(), failing=()):
        self.unregistered = set(unregistered)
        self.failing = set(failing)
        self.sent: List[Tuple[str, PushNotification]] = []
        self.attempts: List[str] = []

    async def send(self, token: str, notification: PushNotification) -> None:
        self.attempts.append(token)
        if token in self.unregistered:
            raise TokenInvalidError(token, "Requested entity was not found.")
        if token in self.failing:
            raise PushDeliveryError("service unavailable")
        self.sent.append((token, notification))


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and session for each test."""
    # One shared connection so every session sees the same in-memory database
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestSessionLocal = sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with TestSessionLocal() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
def enqueued() -> List[str]:
    """Session ids the API asked to greet."""
    return []


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, enqueued: List[str]) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database, auth and task-queue overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_uid] = lambda: TEST_UID
    app.dependency_overrides[get_greeting_enqueuer] = lambda: enqueued.append

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def anonymous_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Client without the auth override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def push_provider() -> FakePushProvider:
    return FakePushProvider()


@pytest.fixture
def push_service(db_session: AsyncSession, push_provider: FakePushProvider) -> PushService:
    return PushService(db_session, push_provider)


async def create_user(db: AsyncSession, user_id: str, **fields) -> User:
    """Helper to create a user with notifications enabled by default."""
    values: Dict = {"fcm_token": f"token-{user_id}", "notifications_enabled": True}
    values.update(fields)
    user = User(id=user_id, **values)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def make_user(db_session: AsyncSession):
    async def _make_user(user_id: str, **fields) -> User:
        return await create_user(db_session, user_id, **fields)

    return _make_user


@pytest.fixture
def current_uid() -> str:
    """Uid the authenticated client acts as."""
    return TEST_UID
