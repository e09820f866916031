"""
Subscription webhook handling.

Authenticates Lemon Squeezy deliveries, validates the checkout custom data
and applies the matching change to user_subscriptions, then mirrors the
plan onto the users row. Every outcome is reported as a HandlerResult so
the HTTP layer only has to serialise it.

The subscription row is always written first. If the users update fails the
delivery returns 500 and the provider retries; every write is idempotent,
so the retry converges both tables.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from adapters.payments.lemonsqueezy_adapter import LemonSqueezyAdapter
from core.domain.subscription import Subscription, SubscriptionChange
from core.domain.user import UserPlanChange
from core.domain.webhook import (
    OrderCreated,
    SubscriptionCancelled,
    SubscriptionCreated,
    SubscriptionUpdated,
    WebhookDelivery,
    WebhookEventType,
)
from core.errors import (
    AuthenticationError,
    MappingError,
    StoreError,
    SyncServiceError,
    ValidationError,
)
from core.interfaces.repositories import SubscriptionRepository, UserRepository
from core.plans import SubscriptionTier, resolve_tier

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of one webhook delivery."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @classmethod
    def success(cls) -> "HandlerResult":
        return cls(status_code=200, body={"success": True})

    @classmethod
    def failure(cls, status_code: int, message: str, error_kind: str) -> "HandlerResult":
        return cls(status_code=status_code, body={"error": message}, error_kind=error_kind)


class SubscriptionWebhookHandler:
    """Maps billing webhook events onto the subscription store."""

    def __init__(
        self,
        store: SubscriptionRepository,
        users: UserRepository,
        adapter: LemonSqueezyAdapter,
        product_tiers: Mapping[int, int],
    ):
        self.store = store
        self.users = users
        self.adapter = adapter
        self.product_tiers = dict(product_tiers)

    async def handle_webhook(
        self,
        raw_body: bytes,
        signature: Optional[str],
        payload: Optional[dict[str, Any]],
    ) -> HandlerResult:
        """
        Handle one webhook delivery.

        Args:
            raw_body: Request body exactly as received (signed bytes)
            signature: Value of the X-Signature header
            payload: Parsed JSON body, or None if the body was not valid JSON

        Returns:
            HandlerResult with the HTTP status and response body
        """
        event_name: Optional[str] = None
        user_id: Optional[str] = None

        try:
            if not self.adapter.verify_webhook_signature(raw_body, signature):
                raise AuthenticationError()

            if payload is None:
                raise ValidationError("invalid_json", "Invalid JSON payload")

            delivery = self.adapter.parse_webhook_event(payload)
            event_name = delivery.event_name
            user_id = delivery.user_id

            logger.info(
                "Processing webhook: %s for user: %s",
                event_name,
                user_id,
                extra={"event_name": event_name, "user_id": user_id},
            )
            await self.dispatch(delivery)

        except AuthenticationError:
            logger.error(
                "Invalid webhook signature",
                extra={"error_kind": AuthenticationError.kind},
            )
            return HandlerResult.failure(401, "Invalid signature", AuthenticationError.kind)

        except ValidationError as e:
            logger.error(
                "Webhook rejected (%s): %s",
                e.reason,
                e.message,
                extra={"error_kind": e.kind, "reason": e.reason},
            )
            return HandlerResult.failure(400, e.message, e.kind)

        except (MappingError, StoreError) as e:
            logger.error(
                "Webhook processing failed (%s) for user %s, event %s: %s",
                e.kind,
                user_id,
                event_name,
                e,
                extra={"error_kind": e.kind, "user_id": user_id, "event_name": event_name},
            )
            return HandlerResult.failure(500, INTERNAL_ERROR_MESSAGE, e.kind)

        except Exception as e:
            logger.error(
                "Webhook processing error for user %s, event %s: %s",
                user_id,
                event_name,
                e,
                exc_info=True,
                extra={"error_kind": SyncServiceError.kind, "user_id": user_id, "event_name": event_name},
            )
            return HandlerResult.failure(500, INTERNAL_ERROR_MESSAGE, SyncServiceError.kind)

        return HandlerResult.success()

    async def dispatch(self, delivery: WebhookDelivery) -> None:
        """Apply the store mutation for a validated delivery."""
        event = delivery.event
        user_id = delivery.user_id

        if isinstance(event, SubscriptionCreated):
            await self.handle_subscription_created(user_id, event)
        elif isinstance(event, SubscriptionUpdated):
            await self.handle_subscription_updated(user_id, event)
        elif isinstance(event, SubscriptionCancelled):
            await self.handle_subscription_cancelled(user_id, event)
        elif isinstance(event, OrderCreated):
            # One-time purchases have no target table yet
            logger.info(
                "Order created for user %s: order %s",
                user_id,
                event.order_id,
                extra={"event_name": delivery.event_name, "user_id": user_id},
            )
        else:
            logger.info(
                "Unhandled webhook event: %s",
                delivery.event_name,
                extra={"event_name": delivery.event_name, "user_id": user_id},
            )

    async def handle_subscription_created(self, user_id: str, event: SubscriptionCreated) -> None:
        # Resolve before touching the store so an unknown product commits nothing
        tier = resolve_tier(event.product_id, self.product_tiers)

        subscription = Subscription(
            user_id=user_id,
            tier=tier,
            lemon_squeezy_subscription_id=event.subscription_id,
            status=event.status,
            current_period_start=event.created_at,
            current_period_end=event.renews_at,
            cancel_at_period_end=False,
        )
        await self.store.upsert_subscription(subscription)
        await self.update_user_plan(
            user_id,
            UserPlanChange(
                status="active",
                tier=tier,
                lemon_squeezy_subscription_id=event.subscription_id,
                set_subscription_id=True,
            ),
            event.event_type,
        )

        logger.info(
            "Subscription created for user %s, tier %s",
            user_id,
            tier.slug,
            extra={"event_name": event.event_type.value, "user_id": user_id},
        )

    async def handle_subscription_updated(self, user_id: str, event: SubscriptionUpdated) -> None:
        ending = event.ends_at is not None
        change = SubscriptionChange(
            status=event.status,
            current_period_end=event.renews_at,
            cancel_at_period_end=ending,
        )
        rows = await self.store.update_subscription(user_id, change)

        if rows == 0:
            # Usually an update delivered before its subscription_created
            logger.warning(
                "Subscription update for user %s matched no rows",
                user_id,
                extra={"event_name": event.event_type.value, "user_id": user_id},
            )

        # A subscription with an end date drops the user back to free limits
        await self.update_user_plan(
            user_id,
            UserPlanChange(status=event.status, tier=SubscriptionTier.FREE if ending else None),
            event.event_type,
        )

        logger.info(
            "Subscription updated for user %s: status=%s",
            user_id,
            event.status,
            extra={"event_name": event.event_type.value, "user_id": user_id},
        )

    async def handle_subscription_cancelled(self, user_id: str, event: SubscriptionCancelled) -> None:
        rows = await self.store.cancel_subscription(user_id)
        await self.update_user_plan(
            user_id,
            UserPlanChange(
                status="active",
                tier=SubscriptionTier.FREE,
                lemon_squeezy_subscription_id=None,
                set_subscription_id=True,
            ),
            event.event_type,
        )
        logger.info(
            "Subscription cancelled for user %s (%d rows removed)",
            user_id,
            rows,
            extra={"event_name": event.event_type.value, "user_id": user_id},
        )

    async def update_user_plan(
        self,
        user_id: str,
        change: UserPlanChange,
        event_type: WebhookEventType,
    ) -> None:
        """Mirror a subscription change onto the users row."""
        rows = await self.users.update_user_subscription(user_id, change)
        if rows == 0:
            # User not imported from the directory yet; the next sync creates it
            logger.warning(
                "No users row for %s, plan not updated",
                user_id,
                extra={"event_name": event_type.value, "user_id": user_id},
            )
