"""User domain entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Optional

from core.plans import SubscriptionTier, get_tier_limits


@dataclass
class DirectoryUser:
    """A user as known to the directory provider (Clerk)."""

    id: str
    email: str = ""
    full_name: Optional[str] = None
    username: Optional[str] = None
    image_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_user_row(self, tier: SubscriptionTier = SubscriptionTier.FREE) -> dict[str, Any]:
        """Build a users row for this directory user, keyed by clerk_id.

        Imported users start on the given tier with zeroed usage counters.
        """
        limits = get_tier_limits(tier)
        return {
            "clerk_id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "username": self.username,
            "avatar_url": self.image_url,
            "bio": self.bio,
            "subscription_tier": tier.slug,
            "subscription_status": "active",
            "builds_used": 0,
            "remixes_used": 0,
            "builds_limit": limits.builds_limit,
            "remixes_limit": limits.remixes_limit,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class UserPlanChange:
    """Plan fields a subscription webhook writes onto the users row.

    ``tier`` None leaves tier and limits as they are. The billing
    subscription id is only written when ``set_subscription_id`` is true,
    so None can clear it.
    """

    status: Optional[str]
    tier: Optional[SubscriptionTier] = None
    lemon_squeezy_subscription_id: Optional[str] = None
    set_subscription_id: bool = False

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "subscription_status": self.status,
            "updated_at": datetime.now(UTC).isoformat(),
        }
        if self.tier is not None:
            limits = get_tier_limits(self.tier)
            row["subscription_tier"] = self.tier.slug
            row["builds_limit"] = limits.builds_limit
            row["remixes_limit"] = limits.remixes_limit
        if self.set_subscription_id:
            row["lemon_squeezy_subscription_id"] = self.lemon_squeezy_subscription_id
        return row
