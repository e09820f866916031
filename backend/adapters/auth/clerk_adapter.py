"""
Clerk directory adapter.

Reads users from the Clerk Backend API so they can be imported into the
users table.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Optional
from urllib.parse import quote

import httpx

from core.domain.user import DirectoryUser
from core.errors import DirectoryError
from core.interfaces.services import DirectoryService
from infrastructure.config.settings import Settings

logger = logging.getLogger(__name__)


def _from_epoch_ms(value: Any) -> datetime:
    """Clerk timestamps are milliseconds since the epoch."""
    if value is None:
        return datetime.now(UTC)
    return datetime.fromtimestamp(int(value) / 1000, tz=UTC)


def _primary_email(data: dict[str, Any]) -> str:
    primary_id = data.get("primary_email_address_id")
    addresses = data.get("email_addresses") or []
    for address in addresses:
        if address.get("id") == primary_id:
            return address.get("email_address") or ""
    return addresses[0].get("email_address") or "" if addresses else ""


def user_from_api_response(data: dict[str, Any]) -> DirectoryUser:
    """Create a DirectoryUser from a Clerk user object."""
    name_parts = [data.get("first_name"), data.get("last_name")]
    full_name = " ".join(part for part in name_parts if part) or None
    public_metadata = data.get("public_metadata") or {}

    return DirectoryUser(
        id=data["id"],
        email=_primary_email(data),
        full_name=full_name,
        username=data.get("username") or None,
        image_url=data.get("image_url") or None,
        bio=public_metadata.get("bio") or None,
        created_at=_from_epoch_ms(data.get("created_at")),
        updated_at=_from_epoch_ms(data.get("updated_at")),
    )


class ClerkAdapter(DirectoryService):
    """
    Clerk Backend API adapter.

    Provides read access to the user directory: paged listing and
    single-user lookup.
    """

    API_BASE_URL = "https://api.clerk.com/v1"

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Clerk adapter.

        Args:
            secret_key: Clerk secret key (sk_live_... / sk_test_...)
            base_url: Backend API base URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.secret_key = secret_key
        self.base_url = (base_url or self.API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

        if not self.secret_key:
            logger.warning("Clerk secret key not configured. Set CLERK_SECRET_KEY in settings.")

    def _get_headers(self) -> dict[str, str]:
        """Get HTTP headers for API requests."""
        if not self.secret_key:
            raise DirectoryError("Clerk secret key not configured. Set CLERK_SECRET_KEY in settings.")

        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.secret_key}",
        }

    async def _get(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Make a GET request to the Clerk API.

        Raises:
            DirectoryError: If the request fails or times out
        """
        url = f"{self.base_url}/{endpoint}"
        headers = self._get_headers()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                logger.info("Making GET request to Clerk %s", endpoint)
                response = await client.get(url, headers=headers, params=params)
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            error_detail = str(e)
            try:
                body = e.response.json()
                errors = body.get("errors", []) if isinstance(body, dict) else []
                if errors and isinstance(errors[0], dict):
                    error_detail = errors[0].get("long_message") or errors[0].get("message", error_detail)
            except ValueError:
                pass

            logger.error("Clerk API error: %s", error_detail)
            raise DirectoryError(f"Clerk API request failed: {error_detail}")
        except httpx.RequestError as e:
            logger.error("Clerk request error: %s", e)
            raise DirectoryError(f"Clerk request failed: {e}")

    async def list_users(self, limit: int = 500, page_size: int = 100) -> list[DirectoryUser]:
        """
        List users, paging through the directory until ``limit`` users are read.

        Args:
            limit: Maximum number of users to return
            page_size: Users requested per page (Clerk caps this at 500)

        Returns:
            List of DirectoryUser objects, newest first
        """
        users: list[DirectoryUser] = []
        offset = 0

        while len(users) < limit:
            batch_size = min(page_size, limit - len(users))
            batch = await self._get(
                "users",
                params={"limit": batch_size, "offset": offset, "order_by": "-created_at"},
            )
            # Some API versions wrap the list as {"data": [...]}
            if isinstance(batch, dict):
                batch = batch.get("data", [])
            if not batch:
                break

            users.extend(user_from_api_response(item) for item in batch)
            if len(batch) < batch_size:
                break
            offset += len(batch)

        logger.info("Fetched %d users from Clerk", len(users))
        return users

    async def get_user(self, user_id: str) -> DirectoryUser:
        """
        Get a user by Clerk id.

        Raises:
            DirectoryError: If the user does not exist or the request fails
        """
        logger.info("Fetching Clerk user %s", user_id)
        data = await self._get(f"users/{quote(user_id, safe='')}")
        return user_from_api_response(data)


def create_clerk_adapter(settings: Settings) -> ClerkAdapter:
    """Create a Clerk adapter from application settings."""
    return ClerkAdapter(
        secret_key=settings.clerk_secret_key,
        base_url=settings.clerk_api_url,
        timeout=settings.clerk_timeout_seconds,
    )
