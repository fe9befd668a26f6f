"""
Pricing routes — expand a cost sheet into a deployable price table.
Version: 1.0.0
"""
from fastapi import APIRouter, Depends

from candle_admin.core.auth import get_current_admin
from candle_admin.schemas.auth import AdminIdentity
from candle_admin.schemas.pricing import CostPricingConfig, PricingConfig
from candle_admin.utils.pricing import build_pricing_config

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/price-table", response_model=PricingConfig)
async def build_price_table(
    payload: CostPricingConfig,
    admin: AdminIdentity = Depends(get_current_admin),
):
    """Price every vessel × wax × wick combination from unit costs and margin."""
    return build_pricing_config(payload)
