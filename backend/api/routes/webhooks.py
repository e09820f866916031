"""
Billing provider webhook routes.
"""

import json
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_webhook_handler
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.billing import WebhookAck, WebhookErrorResponse
from services.subscription_webhooks import SubscriptionWebhookHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post(
    "/lemonsqueezy",
    response_model=WebhookAck,
    responses={
        400: {"model": WebhookErrorResponse},
        401: {"model": WebhookErrorResponse},
        500: {"model": WebhookErrorResponse},
    },
)
@limiter.limit(get_rate_limit("webhook"))
async def handle_lemonsqueezy_webhook(
    request: Request,
    handler: Annotated[SubscriptionWebhookHandler, Depends(get_webhook_handler)],
    x_signature: Annotated[Optional[str], Header(alias="X-Signature")] = None,
):
    """
    Handle Lemon Squeezy webhook events.

    - subscription_created: upsert the user's subscription row
    - subscription_updated: update status, period end and cancel flag
    - subscription_cancelled: remove the user's subscription row
    - order_created and anything else: acknowledged without changes
    """
    # Signature covers the raw bytes, so keep them untouched
    body = await request.body()

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Invalid JSON in webhook payload: %s", e)
        payload = None

    result = await handler.handle_webhook(body, x_signature, payload)
    return JSONResponse(status_code=result.status_code, content=result.body)
