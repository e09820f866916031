"""Subscription domain entities."""
from dataclasses import dataclass
from typing import Any, Optional

from core.plans import SubscriptionTier


@dataclass
class Subscription:
    """A user_subscriptions row; one per user, keyed by the directory user id."""

    user_id: str
    tier: SubscriptionTier
    lemon_squeezy_subscription_id: Optional[str]
    status: Optional[str]  # active, cancelled, past_due, on_trial, paused, expired, unpaid

    # ISO-8601 strings exactly as delivered by the billing provider
    current_period_start: Optional[str] = None
    current_period_end: Optional[str] = None
    cancel_at_period_end: bool = False

    def __post_init__(self):
        if isinstance(self.tier, int) and not isinstance(self.tier, SubscriptionTier):
            self.tier = SubscriptionTier(self.tier)

    def to_row(self) -> dict[str, Any]:
        """Column mapping for the user_subscriptions table."""
        return {
            "user_id": self.user_id,
            "tier_id": int(self.tier),
            "lemon_squeezy_subscription_id": self.lemon_squeezy_subscription_id,
            "status": self.status,
            "current_period_start": self.current_period_start,
            "current_period_end": self.current_period_end,
            "cancel_at_period_end": self.cancel_at_period_end,
        }


@dataclass
class SubscriptionChange:
    """Fields a subscription_updated event may change. Tier and ids are left alone."""

    status: Optional[str]
    current_period_end: Optional[str]
    cancel_at_period_end: bool

    def to_row(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "current_period_end": self.current_period_end,
            "cancel_at_period_end": self.cancel_at_period_end,
        }
