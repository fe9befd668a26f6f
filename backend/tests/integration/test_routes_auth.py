"""
Integration tests for auth routes.

Tests GET /api/v1/auth/me with the admin dependency overridden, and the
real dependency's rejection of requests without a bearer token.
Version: 1.0.0
"""
import pytest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from candle_admin.schemas.auth import AdminIdentity, AuthResult


@pytest.fixture
def client(admin_identity):
    """Create a test client with auth dependency overridden."""
    from candle_admin.main import app
    from candle_admin.core.auth import get_current_admin

    app.dependency_overrides[get_current_admin] = lambda: admin_identity
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def unauthenticated_client():
    """Create a test client WITHOUT auth override to test 401/403."""
    from candle_admin.main import app
    app.dependency_overrides.clear()
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.mark.integration
class TestAuthMe:
    """Tests for GET /api/v1/auth/me."""

    def test_me_returns_admin(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 200
        assert response.json() == {"uid": "admin-uid", "email": "owner@threechicks.test", "name": "Owner"}

    def test_me_requires_auth(self, unauthenticated_client):
        response = unauthenticated_client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"

    def test_unlisted_email_is_forbidden(self, unauthenticated_client):
        denied = AuthResult(
            authorized=False,
            identity=AdminIdentity(uid="someone", email="stranger@example.com"),
            error="Email is not authorized",
        )
        with patch("candle_admin.core.auth.verify_admin_token", AsyncMock(return_value=denied)):
            response = unauthenticated_client.get(
                "/api/v1/auth/me", headers={"Authorization": "Bearer some-token"}
            )
        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "FORBIDDEN"
