"""
Deployment constants — Shopify product type, options, metafield keys.

Every Magic Request storefront contract lives here. The storefront reads
these exact names, so change them in ONE place.
Version: 1.0.0
"""

# Product type used to select vessel products from the catalog
PRODUCT_TYPE: str = "Magic Request"
PRODUCT_TAGS: list[str] = ["custom-candle", "magic-request"]

# Product option names (position 1 and 2)
WAX_OPTION: str = "Wax"
WICK_OPTION: str = "Wick"

# Metafields
METAFIELD_NAMESPACE: str = "magic_request"
ENABLED_KEY: str = "enabled"
ENABLED_VALUE: str = "1"
DISABLED_VALUE: str = "0"

# variants(first: N) page size when reading a vessel product
MAX_VARIANTS_PER_PRODUCT: int = 100

DEPLOY_RUN_PREFIX: str = "deploy"
