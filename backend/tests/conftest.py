"""
Pytest configuration and shared fixtures for candle admin tests.

Provides settings, vessel / snapshot builders, and a stateful fake Shopify
catalog the deployment service can run against.
Version: 1.0.0
"""
import os

os.environ.setdefault("PROGRESS_STORE_BACKEND", "memory")
os.environ.setdefault("DEPLOYMENT_LOCK_BACKEND", "memory")

import pytest
from typing import Dict, Iterable, List, Optional, Set, Tuple
from unittest.mock import AsyncMock, MagicMock

from candle_admin.core.exceptions import ExternalAPIError
from candle_admin.schemas.auth import AdminIdentity
from candle_admin.schemas.pricing import PricingConfig, VesselConfig
from candle_admin.schemas.shopify import RemoteProduct, RemoteVariant
from candle_admin.utils.pricing import normalize_price, variant_sku


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_vessel(
    handle: str = "wide-mason",
    waxes: Iterable[str] = ("Soy",),
    wicks: Iterable[str] = ("Wood", "Cotton"),
    price: str = "19.00",
    prices: Optional[Dict[str, Dict[str, str]]] = None,
    enabled: bool = True,
    title: Optional[str] = None,
) -> VesselConfig:
    waxes, wicks = list(waxes), list(wicks)
    if prices is None:
        prices = {wax: {wick: price for wick in wicks} for wax in waxes}
    return VesselConfig(
        handle=handle,
        title=title or handle.replace("-", " ").title(),
        wax_options=waxes,
        wick_options=wicks,
        prices=prices,
        enabled=enabled,
    )


def build_remote(
    vessel: VesselConfig,
    product_id: Optional[str] = None,
    enabled: bool = True,
    price_overrides: Optional[Dict[Tuple[str, str], str]] = None,
) -> RemoteProduct:
    """Snapshot of a vessel exactly as a successful deploy would leave it."""
    price_overrides = price_overrides or {}
    variants = []
    for i, wax in enumerate(vessel.wax_options):
        for j, wick in enumerate(vessel.wick_options):
            variants.append(RemoteVariant(
                variant_id=f"gid://shopify/ProductVariant/{vessel.handle}-{i}-{j}",
                sku=variant_sku(vessel.handle, wax, wick),
                wax=wax,
                wick=wick,
                price=price_overrides.get((wax, wick), normalize_price(vessel.price_for(wax, wick))),
                enabled=enabled,
            ))
    return RemoteProduct(
        product_id=product_id or f"gid://shopify/Product/{vessel.handle}",
        handle=vessel.handle,
        title=vessel.title,
        status="ACTIVE",
        variants=tuple(variants),
    )


class FakeCatalog:
    """In-memory stand-in for ShopifyCatalogService."""

    catalog_id = "test-store.myshopify.com"

    def __init__(self, products: Iterable[RemoteProduct] = ()) -> None:
        self.products: Dict[str, RemoteProduct] = {p.handle: p for p in products}
        self.calls: List[Tuple[str, str]] = []
        self.fail_on: Set[Tuple[str, str]] = set()
        self.read_error: Optional[Exception] = None
        self._next_id = 1

    def _handle_for(self, product_id: str) -> str:
        for handle, product in self.products.items():
            if product.product_id == product_id:
                return handle
        raise ExternalAPIError("Shopify", f"product {product_id} not found", status_code=404)

    def _maybe_fail(self, operation: str, handle: str) -> None:
        self.calls.append((operation, handle))
        if (operation, handle) in self.fail_on:
            raise ExternalAPIError("Shopify", f"{operation} rejected for {handle}", status_code=500)

    async def fetch_vessel_products(self) -> List[RemoteProduct]:
        self.calls.append(("read", "*"))
        if self.read_error is not None:
            raise self.read_error
        return list(self.products.values())

    async def create_vessel(self, vessel: VesselConfig) -> dict:
        self._maybe_fail("create", vessel.handle)
        product_id = f"gid://shopify/Product/{self._next_id}"
        self._next_id += 1
        product = build_remote(vessel, product_id=product_id)
        self.products[vessel.handle] = product
        return {"product_id": product_id, "variant_count": len(product.variants)}

    async def update_vessel(self, product_id: str, vessel: VesselConfig) -> dict:
        handle = self._handle_for(product_id)
        self._maybe_fail("update", handle)
        product = build_remote(vessel, product_id=product_id)
        self.products[handle] = product
        return {"product_id": product_id, "variant_count": len(product.variants)}

    async def disable_vessel(self, product_id: str) -> dict:
        handle = self._handle_for(product_id)
        self._maybe_fail("disable", handle)
        current = self.products[handle]
        self.products[handle] = current.model_copy(update={
            "variants": tuple(v.model_copy(update={"enabled": False}) for v in current.variants),
        })
        return {"product_id": product_id, "variant_count": len(current.variants)}

    async def delete_vessel(self, product_id: str) -> dict:
        handle = self._handle_for(product_id)
        self._maybe_fail("delete", handle)
        del self.products[handle]
        return {"product_id": product_id, "variant_count": 0}

    def mutations(self) -> List[Tuple[str, str]]:
        return [call for call in self.calls if call[0] != "read"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def vessel_factory():
    return build_vessel


@pytest.fixture
def remote_factory():
    return build_remote


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def sample_config():
    """Two vessels: wide-mason (1 wax x 2 wicks) and tumbler (2 waxes x 1 wick)."""
    return PricingConfig(vessels=[
        build_vessel("wide-mason", waxes=["Soy"], wicks=["Wood", "Cotton"], price="19.00"),
        build_vessel("tumbler", waxes=["Soy", "Coconut"], wicks=["Cotton"], price="24.50"),
    ])


@pytest.fixture
def mock_settings():
    """Settings object with test defaults (no real credentials)."""
    from candle_admin.core.config import Settings
    return Settings(
        shopify_store_domain="test-store.myshopify.com",
        shopify_admin_api_token="shpat_test_token",
        shopify_api_version="2025-07",
        shopify_publication_name=None,
        firebase_project_id="candle-admin-test",
        authorized_emails=["owner@threechicks.test", "Helper@ThreeChicks.test"],
        progress_store_backend="memory",
        deployment_lock_backend="memory",
    )


@pytest.fixture
def admin_identity():
    return AdminIdentity(uid="admin-uid", email="owner@threechicks.test", email_verified=True, name="Owner")


@pytest.fixture
def mock_shopify_client():
    """Mocked ShopifyClient (GraphQL transport only)."""
    client = MagicMock()
    client.store_domain = "test-store.myshopify.com"
    client.query = AsyncMock(return_value={})
    client.call_shopify_graphql = AsyncMock(return_value={"data": {}})
    return client
