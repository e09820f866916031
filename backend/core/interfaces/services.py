"""Service interfaces for external integrations."""

from abc import ABC, abstractmethod

from ..domain.user import DirectoryUser


class DirectoryService(ABC):
    """Abstract user directory (identity provider)."""

    @abstractmethod
    async def list_users(self, limit: int = 500) -> list[DirectoryUser]:
        """List up to ``limit`` users."""
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> DirectoryUser:
        """Get a single user by directory id."""
        ...
