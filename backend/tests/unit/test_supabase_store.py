"""
Unit tests for the Supabase store adapter.

The Supabase client is replaced by a MagicMock whose query builders are
chainable and whose ``execute`` is an AsyncMock.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from adapters.storage.supabase_store import (
    SUBSCRIPTIONS_TABLE,
    USERS_TABLE,
    SupabaseStore,
    create_supabase_store,
)
from core.domain.subscription import Subscription, SubscriptionChange
from core.domain.user import UserPlanChange
from core.errors import StoreError
from core.plans import SubscriptionTier
from infrastructure.config.settings import Settings


def make_client(data=None, side_effect=None):
    """Mock client where every query chain ends in the same execute()."""
    client = MagicMock()
    query = MagicMock()
    query.execute = AsyncMock(return_value=SimpleNamespace(data=data), side_effect=side_effect)

    table = client.table.return_value
    table.upsert.return_value = query
    table.update.return_value.eq.return_value = query
    table.delete.return_value.eq.return_value = query
    return client, query


@pytest.fixture
def subscription() -> Subscription:
    return Subscription(
        user_id="user_1",
        tier=1,
        lemon_squeezy_subscription_id="sub_1",
        status="active",
        current_period_start="2025-01-01T00:00:00Z",
        current_period_end="2025-02-01T00:00:00Z",
    )


class TestSubscriptionWrites:
    @pytest.mark.asyncio
    async def test_upsert_on_user_id(self, subscription):
        client, query = make_client(data=[subscription.to_row()])
        store = SupabaseStore(client)

        await store.upsert_subscription(subscription)

        client.table.assert_called_once_with(SUBSCRIPTIONS_TABLE)
        client.table.return_value.upsert.assert_called_once_with(
            subscription.to_row(), on_conflict="user_id"
        )
        query.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_returns_row_count(self):
        client, _ = make_client(data=[{"user_id": "user_1"}])
        store = SupabaseStore(client)
        change = SubscriptionChange(status="past_due", current_period_end=None, cancel_at_period_end=False)

        rows = await store.update_subscription("user_1", change)

        assert rows == 1
        table = client.table.return_value
        table.update.assert_called_once_with(change.to_row())
        table.update.return_value.eq.assert_called_once_with("user_id", "user_1")

    @pytest.mark.asyncio
    async def test_update_with_no_match(self):
        client, _ = make_client(data=[])
        store = SupabaseStore(client)
        change = SubscriptionChange(status="active", current_period_end=None, cancel_at_period_end=False)

        assert await store.update_subscription("user_1", change) == 0

    @pytest.mark.asyncio
    async def test_cancel_deletes_by_user(self):
        client, _ = make_client(data=None)
        store = SupabaseStore(client)

        rows = await store.cancel_subscription("user_1")

        assert rows == 0
        client.table.return_value.delete.return_value.eq.assert_called_once_with("user_id", "user_1")


class TestUserWrites:
    @pytest.mark.asyncio
    async def test_upsert_user_on_clerk_id(self):
        stored = {"id": 7, "clerk_id": "user_1"}
        client, _ = make_client(data=[stored])
        store = SupabaseStore(client)

        result = await store.upsert_user({"clerk_id": "user_1"})

        assert result == stored
        client.table.assert_called_once_with(USERS_TABLE)
        client.table.return_value.upsert.assert_called_once_with(
            {"clerk_id": "user_1"}, on_conflict="clerk_id", ignore_duplicates=False
        )

    @pytest.mark.asyncio
    async def test_upsert_user_without_returned_rows(self):
        client, _ = make_client(data=[])
        store = SupabaseStore(client)

        assert await store.upsert_user({"clerk_id": "user_1"}) == {"clerk_id": "user_1"}

    @pytest.mark.asyncio
    async def test_update_user_subscription_by_clerk_id(self):
        client, _ = make_client(data=[{"clerk_id": "user_1"}])
        store = SupabaseStore(client)
        change = UserPlanChange(status="active", tier=SubscriptionTier.PRO)

        rows = await store.update_user_subscription("user_1", change)

        assert rows == 1
        client.table.assert_called_once_with(USERS_TABLE)
        table = client.table.return_value
        written = table.update.call_args.args[0]
        assert written["subscription_tier"] == "pro"
        assert written["builds_limit"] == 200
        table.update.return_value.eq.assert_called_once_with("clerk_id", "user_1")

    @pytest.mark.asyncio
    async def test_update_user_subscription_failure(self):
        error = APIError({"message": "column does not exist", "code": "42703"})
        client, _ = make_client(side_effect=error)
        store = SupabaseStore(client)

        with pytest.raises(StoreError) as exc_info:
            await store.update_user_subscription("user_1", UserPlanChange(status="active"))

        assert exc_info.value.table == USERS_TABLE
        assert exc_info.value.operation == "update"


class TestStoreErrors:
    """Every failure mode becomes a StoreError."""

    @pytest.mark.asyncio
    async def test_api_error(self, subscription):
        error = APIError({"message": "permission denied for table", "code": "42501"})
        client, _ = make_client(side_effect=error)
        store = SupabaseStore(client)

        with pytest.raises(StoreError) as exc_info:
            await store.upsert_subscription(subscription)

        assert exc_info.value.table == SUBSCRIPTIONS_TABLE
        assert exc_info.value.operation == "upsert"
        assert exc_info.value.detail == "permission denied for table"

    @pytest.mark.asyncio
    async def test_http_error(self):
        client, _ = make_client(side_effect=httpx.ConnectError("connection refused"))
        store = SupabaseStore(client)

        with pytest.raises(StoreError) as exc_info:
            await store.cancel_subscription("user_1")

        assert exc_info.value.operation == "delete"

    @pytest.mark.asyncio
    async def test_timeout(self, subscription):
        async def hang():
            await asyncio.sleep(1)

        client = MagicMock()
        client.table.return_value.upsert.return_value.execute = hang
        store = SupabaseStore(client, timeout=0.01)

        with pytest.raises(StoreError, match="timed out"):
            await store.upsert_subscription(subscription)


class TestFactory:
    @pytest.mark.asyncio
    async def test_uses_given_client_and_timeout(self):
        client = MagicMock()
        settings = Settings(_env_file=None, store_timeout_seconds=2.5)

        store = await create_supabase_store(settings, client=client)

        assert store.client is client
        assert store.timeout == 2.5

    @pytest.mark.asyncio
    async def test_requires_service_role_key(self):
        settings = Settings(_env_file=None, supabase_service_role_key=None)

        with pytest.raises(ValueError, match="SUPABASE_SERVICE_ROLE_KEY"):
            await create_supabase_store(settings)
