"""
LemonSqueezy webhook adapter.

Verifies webhook signatures and turns raw webhook payloads into typed
``WebhookDelivery`` objects for the subscription handler.
"""

import hashlib
import hmac
import logging
import re
from typing import Any, Optional

from core.domain.webhook import (
    CustomData,
    OrderCreated,
    SubscriptionCancelled,
    SubscriptionCreated,
    SubscriptionUpdated,
    UnknownEvent,
    WebhookDelivery,
    WebhookEvent,
    WebhookEventType,
)
from core.errors import ValidationError
from infrastructure.config.settings import Settings

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_custom_data(payload: dict[str, Any]) -> CustomData:
    """
    Extract and validate ``meta.custom_data``.

    Args:
        payload: Parsed webhook body

    Returns:
        CustomData with the user id and email

    Raises:
        ValidationError: With reason ``missing_user_id``, ``empty_user_id``,
            ``missing_email`` or ``invalid_email``
    """
    meta = payload.get("meta") or {}
    custom_data = meta.get("custom_data") or {} if isinstance(meta, dict) else {}
    if not isinstance(custom_data, dict):
        custom_data = {}

    user_id = custom_data.get("user_id")
    if user_id is None or user_id == "":
        raise ValidationError("missing_user_id", "Missing user_id")
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("empty_user_id", "Invalid user_id")

    email = custom_data.get("email")
    if email is None or email == "":
        raise ValidationError("missing_email", "Missing email")
    if not isinstance(email, str) or not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("invalid_email", "Invalid email format")

    return CustomData(user_id=user_id, email=email)


def parse_event(event_name: Optional[str], data: dict[str, Any]) -> WebhookEvent:
    """Build the event variant for ``event_name`` from the ``data`` object."""
    attributes = data.get("attributes") or {}
    if not isinstance(attributes, dict):
        attributes = {}
    event_type = WebhookEventType.from_name(event_name)

    if event_type == WebhookEventType.SUBSCRIPTION_CREATED:
        return SubscriptionCreated(
            product_id=attributes.get("product_id"),
            subscription_id=_as_optional_str(data.get("id") or attributes.get("id")),
            status=attributes.get("status"),
            created_at=attributes.get("created_at"),
            renews_at=attributes.get("renews_at"),
        )
    if event_type == WebhookEventType.SUBSCRIPTION_UPDATED:
        return SubscriptionUpdated(
            status=attributes.get("status"),
            renews_at=attributes.get("renews_at"),
            ends_at=attributes.get("ends_at"),
        )
    if event_type == WebhookEventType.SUBSCRIPTION_CANCELLED:
        return SubscriptionCancelled(subscription_id=_as_optional_str(data.get("id")))
    if event_type == WebhookEventType.ORDER_CREATED:
        return OrderCreated(order_id=_as_optional_str(data.get("id")), attributes=dict(attributes))
    return UnknownEvent(event_name=event_name)


class LemonSqueezyAdapter:
    """
    LemonSqueezy webhook adapter.

    With no webhook secret configured the adapter runs in open mode: every
    signature is accepted and a warning is logged for each verification.
    """

    def __init__(self, webhook_secret: Optional[str] = None):
        """
        Initialize LemonSqueezy adapter.

        Args:
            webhook_secret: Webhook signing secret; None or empty for open mode
        """
        self.webhook_secret = webhook_secret or None

    @property
    def verification_enabled(self) -> bool:
        return self.webhook_secret is not None

    def compute_signature(self, payload: bytes) -> str:
        """Hex HMAC-SHA256 of ``payload`` under the configured secret."""
        if self.webhook_secret is None:
            raise RuntimeError("No webhook secret configured")
        return hmac.new(
            key=self.webhook_secret.encode("utf-8"),
            msg=payload,
            digestmod=hashlib.sha256,
        ).hexdigest()

    def verify_webhook_signature(self, payload: bytes, signature: Optional[str]) -> bool:
        """
        Verify webhook signature using HMAC SHA256.

        Args:
            payload: Raw webhook payload (bytes)
            signature: Signature from X-Signature header

        Returns:
            True if signature is valid or verification is disabled, False otherwise
        """
        if not self.verification_enabled:
            logger.warning("No webhook secret configured, skipping signature verification")
            return True

        if not signature:
            logger.warning("Webhook received without signature")
            return False

        expected_signature = self.compute_signature(payload)
        is_valid = hmac.compare_digest(
            expected_signature.encode("utf-8"), signature.strip().encode("utf-8")
        )

        if not is_valid:
            logger.warning("Webhook signature verification failed")

        return is_valid

    def parse_webhook_event(self, payload: dict[str, Any]) -> WebhookDelivery:
        """
        Validate custom data and parse the payload into a delivery.

        The event name is read from the top level of the payload, falling
        back to ``meta.event_name`` where LemonSqueezy puts it.

        Raises:
            ValidationError: If the payload is not an object or custom data is invalid
        """
        if not isinstance(payload, dict):
            raise ValidationError("invalid_json", "Invalid JSON payload")

        custom_data = parse_custom_data(payload)

        meta = payload.get("meta") or {}
        event_name = payload.get("event_name") or meta.get("event_name")
        data = payload.get("data") or {}
        if not isinstance(data, dict):
            data = {}

        return WebhookDelivery(
            event_name=event_name,
            custom_data=custom_data,
            event=parse_event(event_name, data),
        )


def create_lemonsqueezy_adapter(settings: Settings) -> LemonSqueezyAdapter:
    """Create a LemonSqueezy adapter from application settings."""
    return LemonSqueezyAdapter(webhook_secret=settings.webhook_secret)
