# Interfaces (Abstract Contracts)
# Adapters implement these interfaces
from .repositories import SubscriptionRepository, UserRepository
from .services import DirectoryService

__all__ = [
    "SubscriptionRepository",
    "UserRepository",
    "DirectoryService",
]
