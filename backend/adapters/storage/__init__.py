"""Storage adapters for the Supabase data store."""

from .supabase_store import (
    SUBSCRIPTIONS_TABLE,
    USERS_TABLE,
    SupabaseStore,
    create_supabase_store,
)

__all__ = [
    "SupabaseStore",
    "create_supabase_store",
    "SUBSCRIPTIONS_TABLE",
    "USERS_TABLE",
]
