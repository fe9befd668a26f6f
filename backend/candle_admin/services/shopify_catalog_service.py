"""
Shopify catalog service — read and mutate Magic Request vessel products.

Wraps ShopifyClient with the vessel-level operations the deployment
reconciler needs:
- fetch_vessel_products: paginated snapshot of every vessel product
- create_vessel / update_vessel: product, options, variants, metafields
  (create also stocks the new variants at the primary location)
- disable_vessel: flip magic_request.enabled to "0" on every variant
- delete_vessel: productDelete (irreversible)

Every mutation checks userErrors and raises ShopifyUserError.
Version: 1.0.0
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from candle_admin.clients.shopify_client import ShopifyClient
from candle_admin.core.config import Settings
from candle_admin.core.constants.deployment import (
    DISABLED_VALUE,
    ENABLED_KEY,
    ENABLED_VALUE,
    MAX_VARIANTS_PER_PRODUCT,
    METAFIELD_NAMESPACE,
    PRODUCT_TAGS,
    PRODUCT_TYPE,
    WAX_OPTION,
    WICK_OPTION,
)
from candle_admin.core.exceptions import ShopifyUserError
from candle_admin.schemas.pricing import VesselConfig
from candle_admin.schemas.shopify import ProductById, ProductsPage, RemoteProduct
from candle_admin.utils.pricing import normalize_price, variant_sku

logger = logging.getLogger("shopify_catalog_service")

# Shopify accepts at most 25 metafields per metafieldsSet call
METAFIELDS_SET_LIMIT = 25

_PRODUCT_FIELDS = """
    id
    handle
    title
    status
    variants(first: %(max_variants)d) {
        edges {
            node {
                id
                sku
                price
                selectedOptions { name value }
                enabled: metafield(namespace: "%(namespace)s", key: "%(key)s") { value }
            }
        }
    }
""" % {"max_variants": MAX_VARIANTS_PER_PRODUCT, "namespace": METAFIELD_NAMESPACE, "key": ENABLED_KEY}

VESSEL_PRODUCTS_QUERY = """
query VesselProducts($first: Int!, $after: String, $query: String!) {
    products(first: $first, after: $after, query: $query) {
        edges { node { %s } }
        pageInfo { hasNextPage endCursor }
    }
}
""" % _PRODUCT_FIELDS

PRODUCT_BY_ID_QUERY = """
query VesselProduct($id: ID!) {
    product(id: $id) { %s }
}
""" % _PRODUCT_FIELDS

PRODUCT_CREATE_MUTATION = """
mutation productCreate($product: ProductCreateInput!) {
    productCreate(product: $product) {
        product { id }
        userErrors { field message }
    }
}
"""

PRODUCT_UPDATE_MUTATION = """
mutation productUpdate($product: ProductUpdateInput!) {
    productUpdate(product: $product) {
        product { id }
        userErrors { field message }
    }
}
"""

VARIANTS_BULK_CREATE_MUTATION = """
mutation productVariantsBulkCreate($productId: ID!, $variants: [ProductVariantsBulkInput!]!, $strategy: ProductVariantsBulkCreateStrategy) {
    productVariantsBulkCreate(productId: $productId, variants: $variants, strategy: $strategy) {
        productVariants { id inventoryItem { id tracked } }
        userErrors { field message }
    }
}
"""

VARIANTS_BULK_UPDATE_MUTATION = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
    productVariantsBulkUpdate(productId: $productId, variants: $variants) {
        productVariants { id }
        userErrors { field message }
    }
}
"""

VARIANTS_BULK_DELETE_MUTATION = """
mutation productVariantsBulkDelete($productId: ID!, $variantsIds: [ID!]!) {
    productVariantsBulkDelete(productId: $productId, variantsIds: $variantsIds) {
        product { id }
        userErrors { field message }
    }
}
"""

METAFIELDS_SET_MUTATION = """
mutation metafieldsSet($metafields: [MetafieldsSetInput!]!) {
    metafieldsSet(metafields: $metafields) {
        metafields { id }
        userErrors { field message }
    }
}
"""

PRODUCT_DELETE_MUTATION = """
mutation productDelete($input: ProductDeleteInput!) {
    productDelete(input: $input) {
        deletedProductId
        userErrors { field message }
    }
}
"""

PRIMARY_LOCATION_QUERY = """
query {
    locations(first: 1, query: "isPrimary:true") {
        edges { node { id } }
    }
}
"""

INVENTORY_ITEM_UPDATE_MUTATION = """
mutation inventoryItemUpdate($id: ID!, $input: InventoryItemInput!) {
    inventoryItemUpdate(id: $id, input: $input) {
        inventoryItem { id tracked }
        userErrors { field message }
    }
}
"""

INVENTORY_ACTIVATE_MUTATION = """
mutation inventoryActivate($inventoryItemId: ID!, $locationId: ID!) {
    inventoryActivate(inventoryItemId: $inventoryItemId, locationId: $locationId) {
        inventoryLevel { id }
        userErrors { field message }
    }
}
"""

INVENTORY_SET_QUANTITIES_MUTATION = """
mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {
    inventorySetQuantities(input: $input) {
        inventoryAdjustmentGroup { id }
        userErrors { field message }
    }
}
"""

PUBLICATIONS_QUERY = """
query {
    publications(first: 25) {
        edges { node { id name } }
    }
}
"""

PUBLISH_MUTATION = """
mutation publishablePublish($id: ID!, $input: [PublicationInput!]!) {
    publishablePublish(id: $id, input: $input) {
        userErrors { field message }
    }
}
"""


def _check_user_errors(payload: Optional[Dict[str, Any]], operation: str) -> Dict[str, Any]:
    payload = payload or {}
    errors = payload.get("userErrors") or []
    if errors:
        raise ShopifyUserError(operation, errors)
    return payload


def _deployment_version() -> str:
    return "v" + datetime.now(timezone.utc).strftime("%Y%m%d%H%M")


class ShopifyCatalogService:
    """Vessel-level reads and mutations against the Shopify Admin API."""

    def __init__(self, client: ShopifyClient, settings: Settings) -> None:
        self._client = client
        self._page_size = settings.shopify_page_size
        self._publication_name = settings.shopify_publication_name
        self._publication_id: Optional[str] = None
        self._inventory_quantity = settings.shopify_inventory_quantity
        self._location_id: Optional[str] = None

    @property
    def catalog_id(self) -> str:
        """Key for the single-deployment lease: one catalog per store."""
        return self._client.store_domain or "default"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_vessel_products(self) -> List[RemoteProduct]:
        """Read every Magic Request product, following pagination."""
        products: List[RemoteProduct] = []
        after: Optional[str] = None
        while True:
            page = await self._client.query(
                VESSEL_PRODUCTS_QUERY,
                {"first": self._page_size, "after": after, "query": f'product_type:"{PRODUCT_TYPE}"'},
                model=ProductsPage,
            )
            products.extend(RemoteProduct.from_node(edge.node) for edge in page.products.edges)
            info = page.products.page_info
            if not info.has_next_page or not info.end_cursor:
                break
            after = info.end_cursor
        logger.info("shopify vessel snapshot products=%s", len(products))
        return products

    async def get_product(self, product_id: str) -> Optional[RemoteProduct]:
        result = await self._client.query(PRODUCT_BY_ID_QUERY, {"id": product_id}, model=ProductById)
        if result.product is None:
            return None
        return RemoteProduct.from_node(result.product)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_vessel(self, vessel: VesselConfig) -> Dict[str, Any]:
        """Create the product with Wax/Wick options and one variant per combination."""
        data = await self._client.query(PRODUCT_CREATE_MUTATION, {
            "product": {
                "title": vessel.title,
                "handle": vessel.handle,
                "productType": PRODUCT_TYPE,
                "tags": PRODUCT_TAGS,
                "status": "ACTIVE",
                "productOptions": [
                    {"name": WAX_OPTION, "position": 1, "values": [{"name": w} for w in vessel.wax_options]},
                    {"name": WICK_OPTION, "position": 2, "values": [{"name": w} for w in vessel.wick_options]},
                ],
                "metafields": self._product_metafields(vessel),
            },
        })
        payload = _check_user_errors(data.get("productCreate"), "productCreate")
        product_id = (payload.get("product") or {}).get("id")
        if not product_id:
            raise ShopifyUserError("productCreate", [{"message": f"no product returned for {vessel.handle}"}])
        logger.info("shopify vessel created handle=%s id=%s", vessel.handle, product_id)

        variants = [
            {**self._variant_input(vessel, wax, wick), "metafields": [self._enabled_metafield_input(ENABLED_VALUE)]}
            for wax in vessel.wax_options
            for wick in vessel.wick_options
        ]
        data = await self._client.query(VARIANTS_BULK_CREATE_MUTATION, {
            "productId": product_id,
            "variants": variants,
            "strategy": "REMOVE_STANDALONE_VARIANT",
        })
        payload = _check_user_errors(data.get("productVariantsBulkCreate"), "productVariantsBulkCreate")

        await self._activate_inventory(vessel.handle, payload.get("productVariants") or [])
        await self._publish(product_id)
        return {"product_id": product_id, "variant_count": len(variants)}

    async def update_vessel(self, product_id: str, vessel: VesselConfig) -> Dict[str, Any]:
        """
        Bring an existing product in line with the vessel config.

        Missing combinations are created, existing ones get price/SKU and
        enabled=1, and variants outside the desired set are deleted. Creation
        runs before deletion so the product never drops to zero variants.
        """
        product = await self.get_product(product_id)
        if product is None:
            raise ShopifyUserError("product", [{"message": f"product {product_id} not found"}])

        data = await self._client.query(PRODUCT_UPDATE_MUTATION, {
            "product": {
                "id": product_id,
                "title": vessel.title,
                "metafields": self._product_metafields(vessel),
            },
        })
        _check_user_errors(data.get("productUpdate"), "productUpdate")

        desired = [(wax, wick) for wax in vessel.wax_options for wick in vessel.wick_options]
        desired_set = set(desired)
        existing: Dict[tuple, str] = {}
        stale: List[str] = []
        for variant in product.variants:
            key = (variant.wax, variant.wick)
            if key in desired_set and key not in existing:
                existing[key] = variant.variant_id
            else:
                stale.append(variant.variant_id)

        missing = [combo for combo in desired if combo not in existing]
        if missing:
            data = await self._client.query(VARIANTS_BULK_CREATE_MUTATION, {
                "productId": product_id,
                "variants": [
                    {**self._variant_input(vessel, wax, wick), "metafields": [self._enabled_metafield_input(ENABLED_VALUE)]}
                    for wax, wick in missing
                ],
            })
            _check_user_errors(data.get("productVariantsBulkCreate"), "productVariantsBulkCreate")

        if existing:
            data = await self._client.query(VARIANTS_BULK_UPDATE_MUTATION, {
                "productId": product_id,
                "variants": [
                    {"id": variant_id, **self._variant_input(vessel, wax, wick, with_options=False)}
                    for (wax, wick), variant_id in existing.items()
                ],
            })
            _check_user_errors(data.get("productVariantsBulkUpdate"), "productVariantsBulkUpdate")
            await self._set_enabled(list(existing.values()), ENABLED_VALUE)

        if stale:
            data = await self._client.query(VARIANTS_BULK_DELETE_MUTATION, {
                "productId": product_id,
                "variantsIds": stale,
            })
            _check_user_errors(data.get("productVariantsBulkDelete"), "productVariantsBulkDelete")

        logger.info(
            "shopify vessel updated handle=%s id=%s created=%s updated=%s deleted=%s",
            vessel.handle, product_id, len(missing), len(existing), len(stale),
        )
        return {"product_id": product_id, "variant_count": len(desired)}

    async def disable_vessel(self, product_id: str) -> Dict[str, Any]:
        """Hide a vessel from the storefront without removing it."""
        product = await self.get_product(product_id)
        if product is None:
            raise ShopifyUserError("product", [{"message": f"product {product_id} not found"}])
        variant_ids = [v.variant_id for v in product.variants]
        await self._set_enabled(variant_ids, DISABLED_VALUE)
        logger.info("shopify vessel disabled handle=%s variants=%s", product.handle, len(variant_ids))
        return {"product_id": product_id, "variant_count": len(variant_ids)}

    async def delete_vessel(self, product_id: str) -> Dict[str, Any]:
        data = await self._client.query(PRODUCT_DELETE_MUTATION, {"input": {"id": product_id}})
        payload = _check_user_errors(data.get("productDelete"), "productDelete")
        if not payload.get("deletedProductId"):
            raise ShopifyUserError("productDelete", [{"message": f"product {product_id} was not deleted"}])
        logger.info("shopify vessel deleted id=%s", product_id)
        return {"product_id": product_id, "variant_count": 0}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _variant_input(self, vessel: VesselConfig, wax: str, wick: str, with_options: bool = True) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "price": normalize_price(vessel.price_for(wax, wick)),
            "inventoryItem": {"sku": variant_sku(vessel.handle, wax, wick)},
        }
        if with_options:
            body["optionValues"] = [
                {"optionName": WAX_OPTION, "name": wax},
                {"optionName": WICK_OPTION, "name": wick},
            ]
        return body

    def _enabled_metafield_input(self, value: str) -> Dict[str, Any]:
        return {"namespace": METAFIELD_NAMESPACE, "key": ENABLED_KEY, "type": "number_integer", "value": value}

    def _product_metafields(self, vessel: VesselConfig) -> List[Dict[str, Any]]:
        metafields = [
            {"namespace": METAFIELD_NAMESPACE, "key": "waxTypes", "type": "list.single_line_text_field",
             "value": json.dumps(vessel.wax_options)},
            {"namespace": METAFIELD_NAMESPACE, "key": "wickTypes", "type": "list.single_line_text_field",
             "value": json.dumps(vessel.wick_options)},
            {"namespace": METAFIELD_NAMESPACE, "key": "containerType", "type": "single_line_text_field",
             "value": vessel.title},
            {"namespace": METAFIELD_NAMESPACE, "key": "deploymentVersion", "type": "single_line_text_field",
             "value": _deployment_version()},
        ]
        if vessel.size_oz:
            metafields.append({"namespace": METAFIELD_NAMESPACE, "key": "sizeOz", "type": "number_integer",
                               "value": str(vessel.size_oz)})
        return metafields

    async def _set_enabled(self, variant_ids: List[str], value: str) -> None:
        metafields = [{"ownerId": vid, **self._enabled_metafield_input(value)} for vid in variant_ids]
        for start in range(0, len(metafields), METAFIELDS_SET_LIMIT):
            chunk = metafields[start:start + METAFIELDS_SET_LIMIT]
            data = await self._client.query(METAFIELDS_SET_MUTATION, {"metafields": chunk})
            _check_user_errors(data.get("metafieldsSet"), "metafieldsSet")

    async def _publish(self, product_id: str) -> None:
        if not self._publication_name:
            return
        if self._publication_id is None:
            data = await self._client.query(PUBLICATIONS_QUERY)
            for edge in (data.get("publications") or {}).get("edges", []):
                node = edge.get("node") or {}
                if node.get("name") == self._publication_name:
                    self._publication_id = node.get("id")
                    break
        if self._publication_id is None:
            logger.warning("shopify publication not found name=%s, skipping publish", self._publication_name)
            return
        data = await self._client.query(PUBLISH_MUTATION, {
            "id": product_id,
            "input": [{"publicationId": self._publication_id}],
        })
        _check_user_errors(data.get("publishablePublish"), "publishablePublish")

    async def _primary_location_id(self) -> Optional[str]:
        if self._location_id is None:
            data = await self._client.query(PRIMARY_LOCATION_QUERY)
            edges = (data.get("locations") or {}).get("edges") or []
            if edges:
                self._location_id = (edges[0].get("node") or {}).get("id")
        return self._location_id

    async def _activate_inventory(self, handle: str, variants: List[Dict[str, Any]]) -> None:
        """
        Track, activate and stock new variants at the primary location.

        Skipped when the store reports no primary location. The quantity is
        only set when SHOPIFY_INVENTORY_QUANTITY is configured.
        """
        items = [v.get("inventoryItem") or {} for v in variants]
        items = [item for item in items if item.get("id")]
        if not items:
            return

        location_id = await self._primary_location_id()
        if location_id is None:
            logger.warning("shopify primary location not found, skipping inventory handle=%s", handle)
            return

        for item in items:
            if not item.get("tracked"):
                data = await self._client.query(INVENTORY_ITEM_UPDATE_MUTATION, {
                    "id": item["id"],
                    "input": {"tracked": True},
                })
                _check_user_errors(data.get("inventoryItemUpdate"), "inventoryItemUpdate")
            data = await self._client.query(INVENTORY_ACTIVATE_MUTATION, {
                "inventoryItemId": item["id"],
                "locationId": location_id,
            })
            _check_user_errors(data.get("inventoryActivate"), "inventoryActivate")

        if self._inventory_quantity is not None:
            data = await self._client.query(INVENTORY_SET_QUANTITIES_MUTATION, {
                "input": {
                    "name": "available",
                    "reason": "correction",
                    "ignoreCompareQuantity": True,
                    "quantities": [
                        {"inventoryItemId": item["id"], "locationId": location_id, "quantity": self._inventory_quantity}
                        for item in items
                    ],
                },
            })
            _check_user_errors(data.get("inventorySetQuantities"), "inventorySetQuantities")

        logger.info("shopify inventory activated handle=%s items=%s", handle, len(items))
