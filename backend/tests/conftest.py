"""
Pytest configuration and shared fixtures for backend tests.
"""

import hashlib
import hmac
import json
import os
import sys
from pathlib import Path

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Tests never read a developer's .env secrets
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from typing import Any, AsyncGenerator, Optional

from httpx import AsyncClient, ASGITransport

# Import after path is set
from adapters.payments.lemonsqueezy_adapter import LemonSqueezyAdapter
from core.domain.subscription import Subscription, SubscriptionChange
from core.domain.user import DirectoryUser, UserPlanChange
from core.errors import StoreError
from core.interfaces.repositories import SubscriptionRepository, UserRepository
from infrastructure.config.settings import DEFAULT_PRODUCT_TIERS, Settings
from services.subscription_webhooks import SubscriptionWebhookHandler

TEST_WEBHOOK_SECRET = "test_webhook_secret"
TEST_ADMIN_TOKEN = "test-admin-token-0123456789abcdef0123"
BASIC_PRODUCT_ID = 568025
PRO_PRODUCT_ID = 568028


class InMemoryStore(SubscriptionRepository, UserRepository):
    """Dict-backed stand-in for the Supabase store.

    ``mutations`` records every write attempted; ``fail_with`` makes every
    call raise that StoreError instead, ``fail_tables`` only calls on the
    named tables.
    """

    def __init__(self):
        self.subscriptions: dict[str, dict[str, Any]] = {}
        self.users: dict[str, dict[str, Any]] = {}
        self.mutations: list[tuple[str, str]] = []
        self.fail_with: Optional[StoreError] = None
        self.fail_for_users: set[str] = set()
        self.fail_tables: set[str] = set()

    def _check(self, table: str, operation: str, key: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        if table in self.fail_tables:
            raise StoreError(table, operation, "connection reset by peer")
        if key in self.fail_for_users:
            raise StoreError(table, operation, "duplicate key value violates unique constraint")

    async def upsert_subscription(self, subscription: Subscription) -> None:
        self._check("user_subscriptions", "upsert", subscription.user_id)
        self.mutations.append(("upsert", subscription.user_id))
        self.subscriptions[subscription.user_id] = subscription.to_row()

    async def update_subscription(self, user_id: str, change: SubscriptionChange) -> int:
        self._check("user_subscriptions", "update", user_id)
        self.mutations.append(("update", user_id))
        row = self.subscriptions.get(user_id)
        if row is None:
            return 0
        row.update(change.to_row())
        return 1

    async def cancel_subscription(self, user_id: str) -> int:
        self._check("user_subscriptions", "delete", user_id)
        self.mutations.append(("delete", user_id))
        return 1 if self.subscriptions.pop(user_id, None) is not None else 0

    async def upsert_user(self, row: dict[str, Any]) -> dict[str, Any]:
        self._check("users", "upsert", row["clerk_id"])
        self.mutations.append(("upsert_user", row["clerk_id"]))
        self.users[row["clerk_id"]] = dict(row)
        return dict(row)

    async def update_user_subscription(self, clerk_id: str, change: UserPlanChange) -> int:
        self._check("users", "update", clerk_id)
        self.mutations.append(("update_user", clerk_id))
        row = self.users.get(clerk_id)
        if row is None:
            return 0
        row.update(change.to_row())
        return 1

    def add_user(self, clerk_id: str, email: str = "test@example.com") -> dict[str, Any]:
        """Seed a free-tier users row as the directory import would."""
        row = DirectoryUser(id=clerk_id, email=email).to_user_row()
        self.users[clerk_id] = row
        return row


def sign(body: bytes, secret: str = TEST_WEBHOOK_SECRET) -> str:
    """Hex HMAC-SHA256 signature as Lemon Squeezy sends it in X-Signature."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def make_payload(
    event_name: str,
    attributes: Optional[dict[str, Any]] = None,
    user_id: Optional[str] = "user_2abcdef",
    email: Optional[str] = "test@example.com",
    data_id: Optional[str] = "sub_1001",
) -> dict[str, Any]:
    """Build a webhook payload; pass None to leave a custom data field out."""
    custom_data: dict[str, Any] = {}
    if user_id is not None:
        custom_data["user_id"] = user_id
    if email is not None:
        custom_data["email"] = email

    return {
        "event_name": event_name,
        "meta": {"event_name": event_name, "custom_data": custom_data},
        "data": {
            "type": "subscriptions",
            "id": data_id,
            "attributes": attributes or {},
        },
    }


def encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def handler(store: InMemoryStore) -> SubscriptionWebhookHandler:
    """Webhook handler with signature verification enabled."""
    return SubscriptionWebhookHandler(
        store=store,
        users=store,
        adapter=LemonSqueezyAdapter(webhook_secret=TEST_WEBHOOK_SECRET),
        product_tiers=DEFAULT_PRODUCT_TIERS,
    )


@pytest.fixture
def open_handler(store: InMemoryStore) -> SubscriptionWebhookHandler:
    """Webhook handler with no secret configured (open mode)."""
    return SubscriptionWebhookHandler(
        store=store,
        users=store,
        adapter=LemonSqueezyAdapter(webhook_secret=None),
        product_tiers=DEFAULT_PRODUCT_TIERS,
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="development",
        webhook_secret=TEST_WEBHOOK_SECRET,
        admin_api_token=TEST_ADMIN_TOKEN,
        clerk_secret_key="sk_test_dummykey123456",
        user_sync_delay_seconds=0,
    )


@pytest.fixture
async def async_client(
    handler: SubscriptionWebhookHandler,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here to avoid import-time side effects during collection
    from main import app
    from api.dependencies import get_app_settings, get_webhook_handler

    app.dependency_overrides[get_webhook_handler] = lambda: handler
    app.dependency_overrides[get_app_settings] = lambda: test_settings

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
