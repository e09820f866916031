"""
Billing and webhook request/response schemas.
"""

from pydantic import BaseModel, Field


class TierLimitsInfo(BaseModel):
    """Usage limits for a subscription tier."""

    builds_limit: int = Field(..., description="Builds allowed per period")
    remixes_limit: int = Field(..., description="Remixes allowed per period")


class TierInfo(BaseModel):
    """A subscription tier and the billing products that grant it."""

    id: int = Field(..., description="Tier id stored in user_subscriptions.tier_id")
    name: str = Field(..., description="Tier name (free, basic, pro, pro_plus, enterprise)")
    limits: TierLimitsInfo
    product_ids: list[int] = Field(
        default_factory=list, description="Lemon Squeezy product ids mapped to this tier"
    )


class TiersResponse(BaseModel):
    """All subscription tiers."""

    tiers: list[TierInfo]


class WebhookAck(BaseModel):
    """Accepted webhook delivery."""

    success: bool = True


class WebhookErrorResponse(BaseModel):
    """Rejected or failed webhook delivery."""

    error: str = Field(
        ...,
        description=(
            "Invalid signature | Missing user_id | Invalid user_id | Missing email | "
            "Invalid email format | Invalid JSON payload | Internal server error"
        ),
    )
