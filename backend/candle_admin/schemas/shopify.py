"""
Shopify schemas — typed GraphQL response contract for vessel products.

The raw GraphQL node models (ProductNode, VariantNode, ...) are validated
at the client boundary; RemoteProduct / RemoteVariant are the flattened
read-only snapshot the reconciler works with.
Version: 1.0.0
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from candle_admin.core.constants.deployment import (
    DISABLED_VALUE,
    WAX_OPTION,
    WICK_OPTION,
)


# ---------------------------------------------------------------------------
# GraphQL nodes
# ---------------------------------------------------------------------------

class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SelectedOption(_Node):
    name: str
    value: str


class MetafieldValue(_Node):
    value: Optional[str] = None


class VariantNode(_Node):
    id: str
    sku: Optional[str] = None
    price: Optional[str] = None
    selected_options: List[SelectedOption] = Field(default_factory=list, alias="selectedOptions")
    enabled: Optional[MetafieldValue] = None


class VariantEdge(_Node):
    node: VariantNode


class VariantConnection(_Node):
    edges: List[VariantEdge] = Field(default_factory=list)


class ProductNode(_Node):
    id: str
    handle: str
    title: str = ""
    status: Optional[str] = None
    variants: VariantConnection = Field(default_factory=VariantConnection)


class ProductEdge(_Node):
    node: ProductNode


class PageInfo(_Node):
    has_next_page: bool = Field(False, alias="hasNextPage")
    end_cursor: Optional[str] = Field(None, alias="endCursor")


class ProductConnection(_Node):
    edges: List[ProductEdge] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class ProductsPage(_Node):
    products: ProductConnection


class ProductById(_Node):
    product: Optional[ProductNode] = None


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class RemoteVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant_id: str
    sku: str = ""
    wax: Optional[str] = None
    wick: Optional[str] = None
    price: str = ""
    enabled: bool = True


class RemoteProduct(BaseModel):
    """Read-only view of one vessel product as it exists in Shopify."""
    model_config = ConfigDict(frozen=True)

    product_id: str
    handle: str
    title: str = ""
    status: Optional[str] = None
    variants: tuple[RemoteVariant, ...] = ()

    @property
    def enabled(self) -> bool:
        """A vessel is market-enabled while at least one variant is enabled."""
        return any(v.enabled for v in self.variants)

    @classmethod
    def from_node(cls, node: ProductNode) -> "RemoteProduct":
        variants = []
        for edge in node.variants.edges:
            v = edge.node
            options = {opt.name: opt.value for opt in v.selected_options}
            flag = v.enabled.value if v.enabled else None
            variants.append(RemoteVariant(
                variant_id=v.id,
                sku=v.sku or "",
                wax=options.get(WAX_OPTION),
                wick=options.get(WICK_OPTION),
                price=v.price or "",
                enabled=flag != DISABLED_VALUE,
            ))
        return cls(
            product_id=node.id,
            handle=node.handle,
            title=node.title,
            status=node.status,
            variants=tuple(variants),
        )
