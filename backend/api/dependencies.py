"""
API dependencies for service access and authorization.

Services are built once in the application lifespan and kept on
``app.state``; routes reach them only through these dependencies, so tests
swap them with ``app.dependency_overrides``.
"""

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from infrastructure.config.settings import Settings, get_settings
from services.subscription_webhooks import SubscriptionWebhookHandler
from services.user_sync import UserSyncService


def get_app_settings() -> Settings:
    return get_settings()


def get_webhook_handler(request: Request) -> SubscriptionWebhookHandler:
    """Return the webhook handler built at startup."""
    handler = getattr(request.app.state, "webhook_handler", None)
    if handler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook handler not initialised",
        )
    return handler


def get_user_sync_service(request: Request) -> UserSyncService:
    """Return the user sync service built at startup."""
    service = getattr(request.app.state, "user_sync", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User sync not initialised",
        )
    return service


async def require_admin_token(
    settings: Annotated[Settings, Depends(get_app_settings)],
    x_admin_token: Annotated[Optional[str], Header(alias="X-Admin-Token")] = None,
) -> None:
    """
    Dependency guarding operator-only routes with the shared ADMIN_API_TOKEN.

    With no token configured the routes are disabled rather than open.
    """
    if not settings.admin_api_token:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API not configured",
        )
    if not x_admin_token or not hmac.compare_digest(
        x_admin_token.encode("utf-8"), settings.admin_api_token.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
        )
