"""Repository interfaces for data access."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain.subscription import Subscription, SubscriptionChange
from ..domain.user import UserPlanChange


class SubscriptionRepository(ABC):
    """Abstract repository for user_subscriptions rows, keyed by user_id."""

    @abstractmethod
    async def upsert_subscription(self, subscription: Subscription) -> None:
        """Insert the row, or overwrite the existing row for the same user_id."""
        ...

    @abstractmethod
    async def update_subscription(self, user_id: str, change: SubscriptionChange) -> int:
        """Update the row for user_id. Returns rows affected; zero is not an error."""
        ...

    @abstractmethod
    async def cancel_subscription(self, user_id: str) -> int:
        """Remove the subscription for user_id. Returns rows affected; zero is not an error."""
        ...


class UserRepository(ABC):
    """Abstract repository for users rows, keyed by clerk_id."""

    @abstractmethod
    async def upsert_user(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert or overwrite a user row on conflict clerk_id. Returns the stored row."""
        ...

    @abstractmethod
    async def update_user_subscription(self, clerk_id: str, change: UserPlanChange) -> int:
        """Write plan fields onto the users row for clerk_id. Returns rows affected; zero is not an error."""
        ...
