"""
Pricing helpers — handles, SKUs, price normalisation, config validation.

Pure functions shared by the reconciler, the price-table route and the
Shopify catalog service.
Version: 1.0.0
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, Optional

from candle_admin.core.constants.deployment import MAX_VARIANTS_PER_PRODUCT
from candle_admin.schemas.pricing import (
    CostPricingConfig,
    PricingConfig,
    VesselConfig,
)

_HANDLE_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_CENT = Decimal("0.01")


def slugify(value: str) -> str:
    """Lowercase, spaces to dashes, drop everything outside [a-z0-9-]."""
    value = re.sub(r"\s+", "-", value.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", value)


def vessel_handle(name: str, size_oz: int) -> str:
    """Handle for a vessel family, e.g. ("Wide Mason", 16) -> "wide-mason-16oz"."""
    return slugify(f"{name} {size_oz}oz")


def variant_sku(handle: str, wax: str, wick: str) -> str:
    return f"{handle}-{slugify(wax)}-{slugify(wick)}"


def normalize_price(raw: str | int | float | Decimal | None) -> Optional[str]:
    """
    Format a price as a two-place decimal string.

    Returns None for anything that is not a non-negative number.
    """
    if raw is None:
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def calculate_price_cents(
    base_cost_cents: int,
    wick_cost_cents: int,
    wax_price_per_oz_cents: int,
    size_oz: int,
    margin_pct: float,
) -> int:
    base = Decimal(base_cost_cents + wick_cost_cents + wax_price_per_oz_cents * size_oz)
    with_margin = base * (Decimal(1) + Decimal(str(margin_pct)) / Decimal(100))
    return int(with_margin.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def cents_to_price(cents: int) -> str:
    return str((Decimal(cents) / 100).quantize(_CENT))


def build_pricing_config(cost_config: CostPricingConfig) -> PricingConfig:
    """Expand a cost sheet into the desired catalog with a full price table."""
    wax_names = [w.name for w in cost_config.waxes]
    wick_names = [w.name for w in cost_config.wicks]
    vessels = []
    for vessel in cost_config.vessels:
        margin = vessel.margin_pct if vessel.margin_pct is not None else cost_config.margin_pct
        prices = {
            wax.name: {
                wick.name: cents_to_price(calculate_price_cents(
                    vessel.base_cost_cents,
                    wick.cost_cents,
                    wax.price_per_oz_cents,
                    vessel.size_oz,
                    margin,
                ))
                for wick in cost_config.wicks
            }
            for wax in cost_config.waxes
        }
        vessels.append(VesselConfig(
            handle=vessel_handle(vessel.name, vessel.size_oz),
            title=f"{vessel.name} {vessel.size_oz}oz",
            size_oz=vessel.size_oz,
            wax_options=list(wax_names),
            wick_options=list(wick_names),
            prices=prices,
            enabled=vessel.enabled,
        ))
    return PricingConfig(vessels=vessels)


def validate_pricing_config(
    config: PricingConfig,
    delete_handles: Iterable[str] = (),
) -> List[str]:
    """
    Return every problem in the config; an empty list means it is valid.

    Checks: handle format, duplicate handles, duplicate option values
    (compared by slug), the per-product variant limit, missing or malformed
    price cells for enabled vessels, and handles that are both enabled and
    listed for deletion.
    """
    problems: List[str] = []
    seen: set[str] = set()

    for index, vessel in enumerate(config.vessels):
        label = vessel.handle or f"vessels[{index}]"
        if not vessel.handle:
            problems.append(f"vessels[{index}]: handle is required")
        elif not _HANDLE_RE.match(vessel.handle):
            problems.append(f"{label}: handle must be lowercase letters, digits and dashes")
        if vessel.handle in seen:
            problems.append(f"{label}: duplicate handle")
        seen.add(vessel.handle)

        if not vessel.title.strip():
            problems.append(f"{label}: title is required")

        for kind, values in (("wax", vessel.wax_options), ("wick", vessel.wick_options)):
            # Options that slugify alike would share a SKU
            slugs = [slugify(v) for v in values]
            if len(set(slugs)) != len(slugs):
                problems.append(f"{label}: duplicate {kind} option")
            if any(not s for s in slugs):
                problems.append(f"{label}: empty {kind} option")

        if not vessel.has_variants:
            continue
        combos = len(vessel.wax_options) * len(vessel.wick_options)
        if combos > MAX_VARIANTS_PER_PRODUCT:
            problems.append(
                f"{label}: {combos} wax x wick combinations exceed the "
                f"{MAX_VARIANTS_PER_PRODUCT}-variant limit per product"
            )
        for wax in vessel.wax_options:
            for wick in vessel.wick_options:
                raw = vessel.price_for(wax, wick)
                if raw is None:
                    problems.append(f"{label}: missing price for ({wax}, {wick})")
                elif normalize_price(raw) is None:
                    problems.append(f"{label}: invalid price {raw!r} for ({wax}, {wick})")

    for handle in delete_handles:
        vessel = config.get(handle)
        if vessel is not None and vessel.has_variants:
            problems.append(f"{handle}: listed for deletion but enabled in the configuration")

    return problems
