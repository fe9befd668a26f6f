"""
Change detection — diff the desired vessel catalog against live Shopify state.

Pure: no network calls, inputs are never mutated, same inputs give the
same DeploymentDiff.
Version: 1.0.0
"""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from candle_admin.schemas.deployment import DeploymentDiff
from candle_admin.schemas.pricing import PricingConfig, VesselConfig
from candle_admin.schemas.shopify import RemoteProduct
from candle_admin.utils.pricing import normalize_price, variant_sku

# (wax, wick, sku, price)
VariantKey = Tuple[str, str, str, str]


def desired_variant_set(vessel: VesselConfig) -> List[VariantKey]:
    """Sorted (wax, wick, sku, price) tuples for every enabled combination."""
    if not vessel.has_variants:
        return []
    keys = [
        (
            wax,
            wick,
            variant_sku(vessel.handle, wax, wick),
            normalize_price(vessel.price_for(wax, wick)) or "",
        )
        for wax in vessel.wax_options
        for wick in vessel.wick_options
    ]
    return sorted(keys)


def remote_variant_set(product: RemoteProduct) -> List[VariantKey]:
    keys = [
        (v.wax or "", v.wick or "", v.sku, normalize_price(v.price) or v.price)
        for v in product.variants
    ]
    return sorted(keys)


def needs_update(vessel: VesselConfig, product: RemoteProduct) -> bool:
    """True when the live product differs from the desired vessel."""
    if not product.enabled:
        return True
    if any(not v.enabled for v in product.variants):
        return True
    return desired_variant_set(vessel) != remote_variant_set(product)


def format_summary(diff: DeploymentDiff) -> str:
    return (
        f"{len(diff.to_create)} to create, {len(diff.to_update)} to update, "
        f"{len(diff.to_disable)} to disable, {len(diff.to_delete)} to delete"
    )


def compute_deployment_diff(
    desired: PricingConfig,
    actual: Sequence[RemoteProduct],
    delete_handles: Optional[Iterable[str]] = None,
) -> DeploymentDiff:
    """
    Compute which vessels to create, update, disable or delete.

    - desired vessel with variants, missing remotely -> create
    - desired vessel with variants, present but different -> update
    - remote vessel still enabled but not desired -> disable
    - remote vessel whose handle is in delete_handles -> delete

    Absence from the desired config alone never deletes anything.
    """
    delete_set = set(delete_handles or ())
    by_handle: Dict[str, RemoteProduct] = {}
    for product in actual:
        by_handle.setdefault(product.handle, product)

    to_create: List[str] = []
    to_update: List[str] = []
    to_disable: List[str] = []
    to_delete: List[str] = []
    wanted: set[str] = set()

    for vessel in desired.vessels:
        if not vessel.has_variants or vessel.handle in delete_set or vessel.handle in wanted:
            continue
        wanted.add(vessel.handle)
        product = by_handle.get(vessel.handle)
        if product is None:
            to_create.append(vessel.handle)
        elif needs_update(vessel, product):
            to_update.append(vessel.handle)

    for handle, product in by_handle.items():
        if handle in wanted:
            continue
        if handle in delete_set:
            to_delete.append(handle)
        elif product.enabled:
            to_disable.append(handle)

    diff = DeploymentDiff(
        to_create=to_create,
        to_update=to_update,
        to_disable=to_disable,
        to_delete=to_delete,
        remote_ids={handle: p.product_id for handle, p in by_handle.items()},
    )
    diff.summary = format_summary(diff)
    return diff
