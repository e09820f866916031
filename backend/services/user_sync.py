"""
User import from the directory provider.

Copies Clerk users into the users table, upserting on clerk_id. A failure
on one user (store or directory) is recorded and the import moves on to
the next one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from core.domain.user import DirectoryUser
from core.errors import SyncServiceError
from core.interfaces.repositories import UserRepository
from core.interfaces.services import DirectoryService

logger = logging.getLogger(__name__)


@dataclass
class SyncFailure:
    user_id: str
    error: str


@dataclass
class SyncSummary:
    """Counts for one bulk import run."""

    total: int = 0
    success: int = 0
    errors: int = 0
    failures: list[SyncFailure] = field(default_factory=list)

    def record_failure(self, user_id: str, error: str) -> None:
        self.errors += 1
        self.failures.append(SyncFailure(user_id=user_id, error=error))


class UserSyncService:
    """Imports directory users into the data store."""

    def __init__(
        self,
        directory: DirectoryService,
        store: UserRepository,
        delay_seconds: float = 0.05,
    ):
        self.directory = directory
        self.store = store
        # Pause between upserts to stay under the data store's rate limits
        self.delay_seconds = delay_seconds

    async def sync_user(self, user: DirectoryUser) -> dict[str, Any]:
        """Upsert one directory user. Raises StoreError on failure."""
        return await self.store.upsert_user(user.to_user_row())

    async def sync_all_users(self, limit: int = 500) -> SyncSummary:
        """
        Import up to ``limit`` directory users.

        Raises:
            DirectoryError: If the user list cannot be fetched
        """
        logger.info("Starting bulk user sync (limit=%d)", limit)
        users = await self.directory.list_users(limit=limit)
        summary = SyncSummary(total=len(users))

        for index, user in enumerate(users):
            try:
                await self.sync_user(user)
                summary.success += 1
            except SyncServiceError as e:
                logger.error(
                    "Error syncing user %s: %s",
                    user.id,
                    e,
                    extra={"user_id": user.id, "error_kind": e.kind},
                )
                summary.record_failure(user.id, str(e))

            if self.delay_seconds and index < len(users) - 1:
                await asyncio.sleep(self.delay_seconds)

        logger.info(
            "Sync completed: total=%d success=%d errors=%d",
            summary.total,
            summary.success,
            summary.errors,
        )
        return summary

    async def sync_single_user(self, user_id: str) -> dict[str, Any]:
        """
        Fetch one user from the directory and upsert it.

        Raises:
            DirectoryError: If the directory lookup fails
            StoreError: If the upsert fails
        """
        user = await self.directory.get_user(user_id)
        row = await self.sync_user(user)
        logger.info("Synced user %s", user_id, extra={"user_id": user_id})
        return row
