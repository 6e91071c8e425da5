"""Billing provider webhooks."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.database import get_db
from fintrack.core.exceptions import WebhookError, WebhookPayloadError
from fintrack.core.security import verify_webhook_signature
from fintrack.schemas.webhook import WebhookEnvelope, WebhookEnvelopeHead
from fintrack.services.subscription_service import SubscriptionService, is_handled_event

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_envelope(body: bytes) -> Optional[WebhookEnvelope]:
    """Parse the event; None means a type this service does not handle."""
    try:
        head = WebhookEnvelopeHead.model_validate_json(body)
    except ValidationError as e:
        raise WebhookPayloadError("Invalid event payload") from e

    if not is_handled_event(head.type):
        return None

    try:
        return WebhookEnvelope.model_validate_json(body)
    except ValidationError as e:
        raise WebhookPayloadError(f"Invalid {head.type} event payload") from e


@router.post("/revenuecat")
async def revenuecat_webhook(
    request: Request,
    x_signature: Optional[str] = Header(None, alias="X-Signature"),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Reconcile a RevenueCat subscription event.

    4xx answers are permanent rejections; 500 asks RevenueCat to retry.
    """
    body = await request.body()

    try:
        verify_webhook_signature(body, x_signature)
        envelope = _parse_envelope(body)
    except WebhookError as e:
        logger.warning(f"Rejected RevenueCat webhook: {e.message}")
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    if envelope is None:
        event_type = WebhookEnvelopeHead.model_validate_json(body).type
        logger.warning(f"Unhandled event type: {event_type}")
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"success": True, "message": f"Ignored unhandled {event_type} event"},
        )

    try:
        result = await SubscriptionService(db).apply_event(envelope)
    except Exception as e:
        logger.error(f"Webhook error: {type(e).__name__}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "message": str(e) or type(e).__name__},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "message": f"Successfully processed {result.event_type} event for user {result.user_id}",
        },
    )
