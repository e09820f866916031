"""
Plan configuration for subscription tiers.

This module is the single source of truth for tier ids and usage limits.
It lives in core/ so both service and API layers can import from it
without creating circular dependencies.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum

from core.errors import MappingError


class SubscriptionTier(IntEnum):
    """Subscription tiers, valued by the tier id stored in user_subscriptions."""

    FREE = 0
    BASIC = 1
    PRO = 2
    PRO_PLUS = 3
    ENTERPRISE = 4

    @property
    def slug(self) -> str:
        """Tier name as stored in users.subscription_tier."""
        return self.name.lower()


@dataclass(frozen=True)
class TierLimits:
    builds_limit: int
    remixes_limit: int


TIER_LIMITS: dict[SubscriptionTier, TierLimits] = {
    SubscriptionTier.FREE: TierLimits(builds_limit=5, remixes_limit=3),
    SubscriptionTier.BASIC: TierLimits(builds_limit=50, remixes_limit=25),
    SubscriptionTier.PRO: TierLimits(builds_limit=200, remixes_limit=100),
    SubscriptionTier.PRO_PLUS: TierLimits(builds_limit=500, remixes_limit=250),
    SubscriptionTier.ENTERPRISE: TierLimits(builds_limit=1000, remixes_limit=500),
}


def get_tier_limits(tier: SubscriptionTier | str) -> TierLimits:
    """Look up limits by tier or tier name ("pro_plus").

    Raises:
        KeyError: If the name is not a known tier
    """
    if isinstance(tier, str):
        tier = SubscriptionTier[tier.upper()]
    return TIER_LIMITS[tier]


def resolve_tier(product_id: object, product_tiers: Mapping[int, int]) -> SubscriptionTier:
    """
    Resolve a billing product id to its subscription tier.

    Lemon Squeezy sends product ids as integers, but string ids are
    accepted as long as they are numeric.

    Raises:
        MappingError: If the product id is missing, malformed or unmapped
    """
    try:
        key = int(product_id)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        raise MappingError(product_id)

    tier_id = product_tiers.get(key)
    if tier_id is None:
        raise MappingError(product_id)

    try:
        return SubscriptionTier(tier_id)
    except ValueError:
        raise MappingError(product_id, f"Product {product_id} maps to unknown tier id {tier_id}")
