"""
Integration tests for POST /api/v1/descriptions/reengineer.
Version: 1.0.0
"""
import json
import pytest
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from candle_admin.services.description_service import DescriptionService


@pytest.fixture
def gemini():
    return MagicMock()


@pytest.fixture
def client(gemini, admin_identity):
    from candle_admin.main import app
    from candle_admin.container import get_description_service
    from candle_admin.core.auth import get_current_admin

    app.dependency_overrides[get_current_admin] = lambda: admin_identity
    app.dependency_overrides[get_description_service] = lambda: DescriptionService(gemini)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


BODY = {
    "original_description": "<p>Hand-poured soy candle.</p>",
    "user_prompt": "More whimsical",
    "product_context": {"name": "Lavender Fields"},
}


@pytest.mark.integration
class TestReengineer:
    def test_returns_rewrite(self, client, gemini):
        gemini.generate_content.return_value = json.dumps({
            "reengineeredDescription": "<p>Lavender, but make it magic.</p>",
            "reasoning": "Whimsy",
            "changes": ["Playful tone"],
        })

        response = client.post("/api/v1/descriptions/reengineer", json=BODY)

        assert response.status_code == 200
        assert response.json() == {
            "reengineered_description": "<p>Lavender, but make it magic.</p>",
            "reasoning": "Whimsy",
            "changes": ["Playful tone"],
        }

    def test_model_failure_still_200_with_original(self, client, gemini):
        gemini.generate_content.side_effect = RuntimeError("boom")
        response = client.post("/api/v1/descriptions/reengineer", json=BODY)
        assert response.status_code == 200
        assert response.json()["reengineered_description"] == BODY["original_description"]

    def test_empty_prompt_rejected(self, client):
        response = client.post("/api/v1/descriptions/reengineer", json=dict(BODY, user_prompt=""))
        assert response.status_code == 422
