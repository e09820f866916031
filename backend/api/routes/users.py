"""
Directory user sync routes.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from api.dependencies import get_app_settings, get_user_sync_service, require_admin_token
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.users import BulkSyncResponse, SyncCounts, SyncFailureInfo, UserSyncResponse
from core.errors import DirectoryError, StoreError
from infrastructure.config.settings import Settings
from services.user_sync import UserSyncService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_admin_token)],
)


@router.post("/sync", response_model=BulkSyncResponse)
@limiter.limit(get_rate_limit("user_sync"))
async def sync_users(
    request: Request,
    service: Annotated[UserSyncService, Depends(get_user_sync_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    limit: Annotated[Optional[int], Query(ge=1, le=5000)] = None,
):
    """Import every directory user (up to ``limit``) into the users table."""
    try:
        summary = await service.sync_all_users(limit=limit or settings.clerk_sync_limit)
    except DirectoryError as e:
        logger.error("Bulk user sync failed: %s", e, extra={"error_kind": e.kind})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Directory provider request failed",
        )

    return BulkSyncResponse(
        success=True,
        summary=SyncCounts(total=summary.total, success=summary.success, errors=summary.errors),
        errors=[SyncFailureInfo(user_id=f.user_id, error=f.error) for f in summary.failures],
    )


@router.post("/sync/{user_id}", response_model=UserSyncResponse)
@limiter.limit(get_rate_limit("user_sync"))
async def sync_user(
    request: Request,
    user_id: str,
    service: Annotated[UserSyncService, Depends(get_user_sync_service)],
):
    """Import a single directory user."""
    try:
        row = await service.sync_single_user(user_id)
    except DirectoryError as e:
        logger.error(
            "User sync failed for %s: %s", user_id, e, extra={"user_id": user_id, "error_kind": e.kind}
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Directory provider request failed",
        )
    except StoreError as e:
        logger.error(
            "User sync failed for %s: %s", user_id, e, extra={"user_id": user_id, "error_kind": e.kind}
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    return UserSyncResponse(success=True, user=row)
