"""
Pricing schemas — desired vessel catalog and cost-based pricing input.

PricingConfig is the desired state handed to the deployment reconciler.
CostPricingConfig is the admin panel's cost sheet that gets expanded into
a PricingConfig price table.
Version: 1.0.0
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class VesselConfig(BaseModel):
    """One vessel product family and its per-combination prices."""
    handle: str = Field(..., description="Stable Shopify handle, the join key with the live catalog")
    title: str
    size_oz: Optional[int] = None
    wax_options: List[str] = Field(default_factory=list)
    wick_options: List[str] = Field(default_factory=list)
    # wax -> wick -> price ("19.00")
    prices: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    enabled: bool = True

    @property
    def has_variants(self) -> bool:
        return self.enabled and bool(self.wax_options) and bool(self.wick_options)

    def price_for(self, wax: str, wick: str) -> Optional[str]:
        return (self.prices.get(wax) or {}).get(wick)


class PricingConfig(BaseModel):
    """Ordered collection of vessel definitions."""
    vessels: List[VesselConfig] = Field(default_factory=list)

    def get(self, handle: str) -> Optional[VesselConfig]:
        for vessel in self.vessels:
            if vessel.handle == handle:
                return vessel
        return None


# ---------------------------------------------------------------------------
# Cost sheet
# ---------------------------------------------------------------------------

class CostVessel(BaseModel):
    name: str
    size_oz: int = Field(..., gt=0)
    base_cost_cents: int = Field(..., ge=0)
    margin_pct: Optional[float] = None
    enabled: bool = True


class CostWax(BaseModel):
    name: str
    price_per_oz_cents: int = Field(..., ge=0)


class CostWick(BaseModel):
    name: str
    cost_cents: int = Field(..., ge=0)


class CostPricingConfig(BaseModel):
    """
    Cost-based pricing sheet.

    price = round((vessel base + wick + wax per oz * size) * (1 + margin / 100)) cents,
    where a vessel's own margin_pct overrides the sheet-wide one.
    """
    vessels: List[CostVessel] = Field(default_factory=list)
    waxes: List[CostWax] = Field(default_factory=list)
    wicks: List[CostWick] = Field(default_factory=list)
    margin_pct: float = 20.0
