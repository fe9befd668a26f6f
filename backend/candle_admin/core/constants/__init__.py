"""
Constants package — re-exports from domain-specific modules.

Usage:
    from candle_admin.core.constants.deployment import PRODUCT_TYPE
    # or
    from candle_admin.core.constants import deployment
Version: 1.0.0
"""

from candle_admin.core.constants import deployment
from candle_admin.core.constants.deployment import (
    PRODUCT_TYPE,
    PRODUCT_TAGS,
    WAX_OPTION,
    WICK_OPTION,
    METAFIELD_NAMESPACE,
    ENABLED_KEY,
    ENABLED_VALUE,
    DISABLED_VALUE,
    MAX_VARIANTS_PER_PRODUCT,
    DEPLOY_RUN_PREFIX,
)

__all__ = [
    "deployment",
    "PRODUCT_TYPE",
    "PRODUCT_TAGS",
    "WAX_OPTION",
    "WICK_OPTION",
    "METAFIELD_NAMESPACE",
    "ENABLED_KEY",
    "ENABLED_VALUE",
    "DISABLED_VALUE",
    "MAX_VARIANTS_PER_PRODUCT",
    "DEPLOY_RUN_PREFIX",
]
