"""
Service layer for business logic.
"""

from adapters.auth.clerk_adapter import create_clerk_adapter
from adapters.payments.lemonsqueezy_adapter import create_lemonsqueezy_adapter
from core.interfaces.repositories import SubscriptionRepository, UserRepository
from infrastructure.config.settings import Settings
from services.subscription_webhooks import HandlerResult, SubscriptionWebhookHandler
from services.user_sync import SyncSummary, UserSyncService


def build_webhook_handler(
    settings: Settings,
    store: SubscriptionRepository,
    users: UserRepository,
) -> SubscriptionWebhookHandler:
    """
    Build the subscription webhook handler.

    Returns:
        Handler wired to the given stores and the configured webhook secret
    """
    return SubscriptionWebhookHandler(
        store=store,
        users=users,
        adapter=create_lemonsqueezy_adapter(settings),
        product_tiers=settings.product_tier_mapping,
    )


def build_user_sync_service(settings: Settings, store: UserRepository) -> UserSyncService:
    """Build the Clerk -> users import service."""
    return UserSyncService(
        directory=create_clerk_adapter(settings),
        store=store,
        delay_seconds=settings.user_sync_delay_seconds,
    )


__all__ = [
    "HandlerResult",
    "SubscriptionWebhookHandler",
    "SyncSummary",
    "UserSyncService",
    "build_webhook_handler",
    "build_user_sync_service",
]
