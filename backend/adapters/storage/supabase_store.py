"""
Supabase data store adapter.

Implements the subscription and user repositories on top of the Supabase
(PostgREST) async client. Every call is bounded by a timeout so a slow
data store fails the request instead of hanging it.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from core.domain.subscription import Subscription, SubscriptionChange
from core.domain.user import UserPlanChange
from core.errors import StoreError
from core.interfaces.repositories import SubscriptionRepository, UserRepository
from infrastructure.config.settings import Settings

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
SUBSCRIPTIONS_TABLE = "user_subscriptions"


class SupabaseStore(SubscriptionRepository, UserRepository):
    """Supabase-backed store for users and user_subscriptions."""

    def __init__(self, client: AsyncClient, timeout: float = 5.0):
        """
        Initialize the store.

        Args:
            client: Connected Supabase async client (service role)
            timeout: Upper bound in seconds for each data store call
        """
        self.client = client
        self.timeout = timeout

    async def _execute(self, table: str, operation: str, query: Any) -> list[dict[str, Any]]:
        """
        Run a PostgREST query with the configured timeout.

        Returns:
            The rows returned by the data store (empty when nothing matched)

        Raises:
            StoreError: If the data store rejects the call or does not answer in time
        """
        try:
            response = await asyncio.wait_for(query.execute(), timeout=self.timeout)
        except TimeoutError:
            logger.error("Supabase %s on %s timed out after %.1fs", operation, table, self.timeout)
            raise StoreError(table, operation, f"timed out after {self.timeout}s")
        except APIError as e:
            logger.error("Supabase %s on %s failed: %s", operation, table, e.message)
            raise StoreError(table, operation, e.message or str(e))
        except httpx.HTTPError as e:
            logger.error("Supabase %s on %s request error: %s", operation, table, e)
            raise StoreError(table, operation, str(e))

        return list(response.data or [])

    async def upsert_subscription(self, subscription: Subscription) -> None:
        query = self.client.table(SUBSCRIPTIONS_TABLE).upsert(
            subscription.to_row(), on_conflict="user_id"
        )
        await self._execute(SUBSCRIPTIONS_TABLE, "upsert", query)

    async def update_subscription(self, user_id: str, change: SubscriptionChange) -> int:
        query = self.client.table(SUBSCRIPTIONS_TABLE).update(change.to_row()).eq("user_id", user_id)
        rows = await self._execute(SUBSCRIPTIONS_TABLE, "update", query)
        return len(rows)

    async def cancel_subscription(self, user_id: str) -> int:
        # Cancellation removes the row; a status-based cancel only needs to change this method
        query = self.client.table(SUBSCRIPTIONS_TABLE).delete().eq("user_id", user_id)
        rows = await self._execute(SUBSCRIPTIONS_TABLE, "delete", query)
        return len(rows)

    async def upsert_user(self, row: dict[str, Any]) -> dict[str, Any]:
        query = self.client.table(USERS_TABLE).upsert(
            row, on_conflict="clerk_id", ignore_duplicates=False
        )
        rows = await self._execute(USERS_TABLE, "upsert", query)
        return rows[0] if rows else row

    async def update_user_subscription(self, clerk_id: str, change: UserPlanChange) -> int:
        query = self.client.table(USERS_TABLE).update(change.to_row()).eq("clerk_id", clerk_id)
        rows = await self._execute(USERS_TABLE, "update", query)
        return len(rows)


async def create_supabase_store(
    settings: Settings,
    client: Optional[AsyncClient] = None,
) -> SupabaseStore:
    """
    Create a Supabase store from application settings.

    Args:
        settings: Application settings
        client: Pre-built client (defaults to one created from settings)

    Returns:
        SupabaseStore instance
    """
    if client is None:
        if not settings.supabase_service_role_key:
            raise ValueError("SUPABASE_SERVICE_ROLE_KEY is required to connect to Supabase")
        client = await acreate_client(settings.supabase_url, settings.supabase_service_role_key)
    return SupabaseStore(client=client, timeout=settings.store_timeout_seconds)
