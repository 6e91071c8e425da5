"""Push delivery tests."""

import pytest
from firebase_admin import messaging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.models.user import User
from fintrack.services.push_service import FCMPushProvider, PushNotification, PushService

NOTIFICATION = PushNotification(title="Hello", body="World", data={"type": "TEST"})


@pytest.mark.asyncio
async def test_send_delivers(push_service: PushService, push_provider, make_user):
    user = await make_user("u1")

    assert await push_service.send(user.fcm_token, NOTIFICATION) is True
    assert push_provider.sent == [(user.fcm_token, NOTIFICATION)]


@pytest.mark.asyncio
async def test_send_without_token(push_service: PushService, push_provider):
    assert await push_service.send("", NOTIFICATION) is False
    assert await push_service.send(None, NOTIFICATION) is False
    assert push_provider.attempts == []


@pytest.mark.asyncio
async def test_invalid_token_is_cleared_from_every_holder(
    push_service: PushService, push_provider, make_user, db_session: AsyncSession
):
    await make_user("u1", fcm_token="shared-token")
    await make_user("u2", fcm_token="shared-token")
    await make_user("u3", fcm_token="other-token")
    push_provider.unregistered.add("shared-token")

    assert await push_service.send("shared-token", NOTIFICATION) is False

    result = await db_session.execute(select(User).order_by(User.id).execution_options(populate_existing=True))
    users = {u.id: u for u in result.scalars().all()}
    for user_id in ("u1", "u2"):
        assert users[user_id].fcm_token is None
        assert users[user_id].notifications_enabled is False
        assert users[user_id].last_token_error
        assert users[user_id].last_token_error_at is not None
    assert users["u3"].fcm_token == "other-token"
    assert users["u3"].notifications_enabled is True


@pytest.mark.asyncio
async def test_invalidated_token_is_not_retried(push_service: PushService, push_provider, make_user):
    await make_user("u1", fcm_token="dead-token")
    push_provider.unregistered.add("dead-token")

    await push_service.send("dead-token", NOTIFICATION)
    await push_service.send("dead-token", NOTIFICATION)

    assert push_provider.attempts == ["dead-token"]
    assert push_service.is_invalidated("dead-token")


@pytest.mark.asyncio
async def test_transient_failure_keeps_token(
    push_service: PushService, push_provider, make_user, db_session: AsyncSession
):
    await make_user("u1", fcm_token="flaky-token")
    push_provider.failing.add("flaky-token")

    assert await push_service.send("flaky-token", NOTIFICATION) is False

    user = await db_session.get(User, "u1", populate_existing=True)
    assert user.fcm_token == "flaky-token"
    assert user.notifications_enabled is True
    assert not push_service.is_invalidated("flaky-token")


def test_fcm_message_carries_badge_and_priority():
    provider = FCMPushProvider(app=object())
    notification = PushNotification(title="t", body="b", data={"type": "X"}, badge=4)

    message = provider.build_message("device-token", notification)

    assert message.token == "device-token"
    assert message.data == {"type": "X"}
    assert message.android.priority == "high"
    assert message.apns.headers["apns-priority"] == "10"
    assert message.apns.payload.aps.badge == 4
    assert isinstance(message.notification, messaging.Notification)
