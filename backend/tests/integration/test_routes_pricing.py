"""
Integration tests for POST /api/v1/pricing/price-table.
Version: 1.0.0
"""
import pytest

from fastapi.testclient import TestClient


@pytest.fixture
def client(admin_identity):
    from candle_admin.main import app
    from candle_admin.core.auth import get_current_admin

    app.dependency_overrides[get_current_admin] = lambda: admin_identity
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


COST_SHEET = {
    "vessels": [{"name": "Wide Mason", "size_oz": 16, "base_cost_cents": 500}],
    "waxes": [{"name": "Soy", "price_per_oz_cents": 10}],
    "wicks": [{"name": "Wood", "cost_cents": 25}, {"name": "Cotton", "cost_cents": 5}],
    "margin_pct": 20,
}


@pytest.mark.integration
class TestPriceTable:
    def test_expands_cost_sheet(self, client):
        response = client.post("/api/v1/pricing/price-table", json=COST_SHEET)

        assert response.status_code == 200
        vessel = response.json()["vessels"][0]
        assert vessel["handle"] == "wide-mason-16oz"
        assert vessel["prices"] == {"Soy": {"Wood": "8.22", "Cotton": "7.98"}}

    def test_negative_cost_rejected(self, client):
        sheet = dict(COST_SHEET, wicks=[{"name": "Wood", "cost_cents": -1}])
        assert client.post("/api/v1/pricing/price-table", json=sheet).status_code == 422
