"""
Billing catalogue routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_app_settings
from api.schemas.billing import TierInfo, TierLimitsInfo, TiersResponse
from core.plans import TIER_LIMITS
from infrastructure.config.settings import Settings

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/tiers", response_model=TiersResponse)
async def get_tiers(settings: Annotated[Settings, Depends(get_app_settings)]):
    """List subscription tiers, their limits and the products that grant them."""
    mapping = settings.product_tier_mapping
    tiers = []
    for tier, limits in TIER_LIMITS.items():
        tiers.append(
            TierInfo(
                id=int(tier),
                name=tier.slug,
                limits=TierLimitsInfo(
                    builds_limit=limits.builds_limit,
                    remixes_limit=limits.remixes_limit,
                ),
                product_ids=sorted(p for p, t in mapping.items() if t == int(tier)),
            )
        )
    return TiersResponse(tiers=tiers)
