"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_app_settings
from infrastructure.config.settings import Settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Annotated[Settings, Depends(get_app_settings)]):
    """Basic health check."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "webhook_verification": settings.webhook_verification_enabled,
        "timestamp": datetime.now(UTC).isoformat(),
    }
