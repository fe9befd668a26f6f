"""
Unit tests for core constants.

These names are read by the storefront, so the values are pinned.
Version: 1.0.0
"""
import pytest

from candle_admin.core import constants
from candle_admin.core.constants import deployment


pytestmark = pytest.mark.unit


class TestDeploymentConstants:
    def test_storefront_contract(self):
        assert deployment.PRODUCT_TYPE == "Magic Request"
        assert (deployment.WAX_OPTION, deployment.WICK_OPTION) == ("Wax", "Wick")
        assert deployment.METAFIELD_NAMESPACE == "magic_request"
        assert deployment.ENABLED_KEY == "enabled"
        assert (deployment.ENABLED_VALUE, deployment.DISABLED_VALUE) == ("1", "0")

    def test_package_reexports(self):
        for name in constants.__all__:
            assert hasattr(constants, name)
        assert constants.PRODUCT_TAGS is deployment.PRODUCT_TAGS
