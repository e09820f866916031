"""
Unit tests for the Clerk directory adapter.

HTTP calls go through httpx.MockTransport; no network access.
"""

import json
from datetime import UTC, datetime

import httpx
import pytest

from adapters.auth.clerk_adapter import ClerkAdapter, create_clerk_adapter, user_from_api_response
from core.errors import DirectoryError
from infrastructure.config.settings import Settings


def clerk_user(user_id: str, created_at: int = 1_700_000_000_000) -> dict:
    """Clerk user object as returned by GET /users."""
    return {
        "id": user_id,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "username": "ada",
        "image_url": "https://img.clerk.com/ada.png",
        "primary_email_address_id": "idn_2",
        "email_addresses": [
            {"id": "idn_1", "email_address": "old@example.com"},
            {"id": "idn_2", "email_address": "ada@example.com"},
        ],
        "public_metadata": {"bio": "Analyst"},
        "created_at": created_at,
        "updated_at": created_at,
    }


def paged_transport(total: int, requests: list[httpx.Request]) -> httpx.MockTransport:
    """Serve ``total`` users through limit/offset paging."""
    users = [clerk_user(f"user_{i}") for i in range(total)]

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        limit = int(request.url.params["limit"])
        offset = int(request.url.params["offset"])
        return httpx.Response(200, json=users[offset:offset + limit])

    return httpx.MockTransport(handler)


class TestUserMapping:
    def test_user_from_api_response(self):
        user = user_from_api_response(clerk_user("user_1"))

        assert user.id == "user_1"
        assert user.email == "ada@example.com"
        assert user.full_name == "Ada Lovelace"
        assert user.username == "ada"
        assert user.image_url == "https://img.clerk.com/ada.png"
        assert user.bio == "Analyst"
        assert user.created_at == datetime.fromtimestamp(1_700_000_000, tz=UTC)

    def test_sparse_user(self):
        user = user_from_api_response({"id": "user_2", "email_addresses": []})

        assert user.email == ""
        assert user.full_name is None
        assert user.bio is None

    def test_falls_back_to_first_email(self):
        data = clerk_user("user_3")
        data["primary_email_address_id"] = "missing"

        assert user_from_api_response(data).email == "old@example.com"


class TestListUsers:
    @pytest.mark.asyncio
    async def test_pages_until_limit(self):
        requests: list[httpx.Request] = []
        adapter = ClerkAdapter(secret_key="sk_test_x", transport=paged_transport(250, requests))

        users = await adapter.list_users(limit=200, page_size=100)

        assert len(users) == 200
        assert [r.url.params["offset"] for r in requests] == ["0", "100"]
        assert requests[0].url.params["order_by"] == "-created_at"
        assert requests[0].headers["Authorization"] == "Bearer sk_test_x"

    @pytest.mark.asyncio
    async def test_stops_on_short_page(self):
        requests: list[httpx.Request] = []
        adapter = ClerkAdapter(secret_key="sk_test_x", transport=paged_transport(130, requests))

        users = await adapter.list_users(limit=500, page_size=100)

        assert len(users) == 130
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_wrapped_response(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"data": [clerk_user("user_1")], "total_count": 1})
        )
        adapter = ClerkAdapter(secret_key="sk_test_x", transport=transport)

        users = await adapter.list_users(limit=10)

        assert [u.id for u in users] == ["user_1"]

    @pytest.mark.asyncio
    async def test_api_error_message(self):
        body = {"errors": [{"message": "Unauthorized", "long_message": "Invalid secret key"}]}
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json=body))
        adapter = ClerkAdapter(secret_key="sk_test_x", transport=transport)

        with pytest.raises(DirectoryError, match="Invalid secret key"):
            await adapter.list_users()

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway"))
        adapter = ClerkAdapter(secret_key="sk_test_x", transport=transport)

        with pytest.raises(DirectoryError):
            await adapter.list_users()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        adapter = ClerkAdapter(secret_key="sk_test_x", transport=httpx.MockTransport(handler))

        with pytest.raises(DirectoryError, match="connection refused"):
            await adapter.list_users()

    @pytest.mark.asyncio
    async def test_missing_secret_key(self):
        adapter = ClerkAdapter(secret_key=None)

        with pytest.raises(DirectoryError, match="CLERK_SECRET_KEY"):
            await adapter.list_users()


class TestGetUser:
    @pytest.mark.asyncio
    async def test_get_user(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, content=json.dumps(clerk_user("user_9")))

        adapter = ClerkAdapter(
            secret_key="sk_test_x",
            base_url="https://clerk.test/v1/",
            transport=httpx.MockTransport(handler),
        )

        user = await adapter.get_user("user_9")

        assert user.id == "user_9"
        assert seen == ["/v1/users/user_9"]

    @pytest.mark.asyncio
    async def test_user_not_found(self):
        body = {"errors": [{"message": "not found"}]}
        transport = httpx.MockTransport(lambda request: httpx.Response(404, json=body))
        adapter = ClerkAdapter(secret_key="sk_test_x", transport=transport)

        with pytest.raises(DirectoryError, match="not found"):
            await adapter.get_user("user_missing")

    def test_factory_reads_settings(self):
        settings = Settings(
            _env_file=None,
            clerk_secret_key="sk_test_abc",
            clerk_api_url="https://clerk.test/v1",
            clerk_timeout_seconds=3.0,
        )

        adapter = create_clerk_adapter(settings)

        assert adapter.secret_key == "sk_test_abc"
        assert adapter.base_url == "https://clerk.test/v1"
        assert adapter.timeout == 3.0
