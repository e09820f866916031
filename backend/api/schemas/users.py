"""
User sync request/response schemas.
"""

from typing import Any

from pydantic import BaseModel, Field


class SyncCounts(BaseModel):
    total: int = Field(..., description="Users read from the directory")
    success: int = Field(..., description="Users upserted")
    errors: int = Field(..., description="Users that failed to upsert")


class SyncFailureInfo(BaseModel):
    user_id: str = Field(..., alias="userId", serialization_alias="userId")
    error: str

    model_config = {"populate_by_name": True}


class BulkSyncResponse(BaseModel):
    """Result of a bulk directory import."""

    success: bool = True
    summary: SyncCounts
    errors: list[SyncFailureInfo] = Field(default_factory=list)


class UserSyncResponse(BaseModel):
    """Result of a single-user import."""

    success: bool = True
    user: dict[str, Any]
