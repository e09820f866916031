"""Directory provider adapters."""

from .clerk_adapter import ClerkAdapter, create_clerk_adapter, user_from_api_response

__all__ = [
    "ClerkAdapter",
    "create_clerk_adapter",
    "user_from_api_response",
]
