"""
Unit tests for Firebase token verification and the admin allow-list.

Signs real RS256 tokens with a throwaway key so signature, issuer and
audience checks run through python-jose for real.
Version: 1.0.0
"""
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwk, jwt

from candle_admin.core import firebase
from candle_admin.core.auth import get_current_admin, is_email_authorized, verify_admin_token
from candle_admin.schemas.auth import AdminIdentity, AuthResult


pytestmark = pytest.mark.unit

KID = "test-kid"


@pytest.fixture(scope="module")
def rsa_keys():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    public_jwk = jwk.construct(public_pem, algorithm="RS256").to_dict()
    public_jwk["kid"] = KID
    return private_pem, {"keys": [public_jwk]}


def _claims(project="candle-admin-test", **overrides):
    now = int(time.time())
    claims = {
        "iss": f"https://securetoken.google.com/{project}",
        "aud": project,
        "sub": "uid-1",
        "iat": now,
        "exp": now + 3600,
        "email": "owner@threechicks.test",
        "email_verified": True,
        "name": "Owner",
    }
    claims.update(overrides)
    return claims


def _sign(private_pem, claims, kid=KID):
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": kid})


class TestVerifyFirebaseToken:
    """Tests for firebase.verify_firebase_token."""

    @pytest.fixture(autouse=True)
    def _patches(self, rsa_keys, mock_settings):
        _, jwks = rsa_keys
        with patch("candle_admin.core.firebase.get_jwks", AsyncMock(return_value=jwks)), \
                patch("candle_admin.core.firebase.get_settings", return_value=mock_settings):
            yield

    @pytest.mark.asyncio
    async def test_valid_token_returns_claims(self, rsa_keys):
        private_pem, _ = rsa_keys
        payload = await firebase.verify_firebase_token(_sign(private_pem, _claims()))
        assert payload["sub"] == "uid-1"
        assert firebase.extract_user_info(payload) == {
            "uid": "uid-1",
            "email": "owner@threechicks.test",
            "email_verified": True,
            "name": "Owner",
        }

    @pytest.mark.asyncio
    async def test_wrong_audience_rejected(self, rsa_keys):
        private_pem, _ = rsa_keys
        with pytest.raises(JWTError):
            await firebase.verify_firebase_token(_sign(private_pem, _claims(project="someone-else")))

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, rsa_keys):
        private_pem, _ = rsa_keys
        past = int(time.time()) - 7200
        with pytest.raises(JWTError):
            await firebase.verify_firebase_token(_sign(private_pem, _claims(iat=past, exp=past + 60)))

    @pytest.mark.asyncio
    async def test_unknown_kid_rejected(self, rsa_keys):
        private_pem, _ = rsa_keys
        with pytest.raises(JWTError, match="signing key"):
            await firebase.verify_firebase_token(_sign(private_pem, _claims(), kid="rotated"))

    @pytest.mark.asyncio
    async def test_missing_subject_rejected(self, rsa_keys):
        private_pem, _ = rsa_keys
        with pytest.raises(JWTError):
            await firebase.verify_firebase_token(_sign(private_pem, _claims(sub="")))


class TestJwksCache:
    @pytest.mark.asyncio
    async def test_jwks_fetched_once_then_cached(self, monkeypatch, mock_settings):
        monkeypatch.setattr(firebase, "_jwks_cache", {})
        monkeypatch.setattr(firebase, "_jwks_cache_time", 0)
        response = MagicMock()
        response.json.return_value = {"keys": [{"kid": "a"}]}
        response.raise_for_status = MagicMock()

        with patch("candle_admin.core.firebase.get_settings", return_value=mock_settings), \
                patch("candle_admin.core.firebase.httpx.AsyncClient") as MockAsyncClient:
            ctx = AsyncMock()
            ctx.get = AsyncMock(return_value=response)
            MockAsyncClient.return_value.__aenter__ = AsyncMock(return_value=ctx)
            MockAsyncClient.return_value.__aexit__ = AsyncMock(return_value=False)

            first = await firebase.get_jwks()
            second = await firebase.get_jwks()

        assert first == second == {"keys": [{"kid": "a"}]}
        ctx.get.assert_called_once()

    def test_signing_key_lookup(self):
        token = jwt.encode({"sub": "x"}, "secret", algorithm="HS256", headers={"kid": "k2"})
        jwks = {"keys": [{"kid": "k1"}, {"kid": "k2", "n": "abc"}]}
        assert firebase.get_signing_key(token, jwks) == {"kid": "k2", "n": "abc"}
        assert firebase.get_signing_key("not-a-jwt", jwks) is None


class TestVerifyAdminToken:
    """verify_admin_token never raises."""

    @pytest.fixture(autouse=True)
    def _settings(self, mock_settings):
        with patch("candle_admin.core.auth.get_settings", return_value=mock_settings):
            yield

    @pytest.mark.asyncio
    async def test_allow_listed_email_is_authorized(self):
        payload = _claims()
        with patch("candle_admin.core.auth.verify_firebase_token", AsyncMock(return_value=payload)):
            result = await verify_admin_token("token")
        assert result.authorized is True
        assert result.identity.uid == "uid-1"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_allow_list_is_case_insensitive(self):
        payload = _claims(email="helper@threechicks.TEST")
        with patch("candle_admin.core.auth.verify_firebase_token", AsyncMock(return_value=payload)):
            result = await verify_admin_token("token")
        assert result.authorized is True

    @pytest.mark.asyncio
    async def test_unlisted_email_is_denied_with_identity(self):
        payload = _claims(email="stranger@example.com")
        with patch("candle_admin.core.auth.verify_firebase_token", AsyncMock(return_value=payload)):
            result = await verify_admin_token("token")
        assert result.authorized is False
        assert result.identity.email == "stranger@example.com"
        assert "not authorized" in result.error

    @pytest.mark.asyncio
    async def test_bad_token_is_denied_without_identity(self):
        with patch("candle_admin.core.auth.verify_firebase_token", AsyncMock(side_effect=JWTError("bad sig"))):
            result = await verify_admin_token("token")
        assert result == AuthResult(authorized=False, error="Invalid or expired token: bad sig")

    @pytest.mark.asyncio
    async def test_empty_token(self):
        result = await verify_admin_token("")
        assert result.authorized is False

    def test_is_email_authorized_rejects_none(self):
        assert is_email_authorized(None) is False


class TestGetCurrentAdmin:
    """Tests for the FastAPI dependency."""

    @pytest.mark.asyncio
    async def test_missing_credentials_is_401(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_admin(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_authorized_returns_identity(self):
        identity = AdminIdentity(uid="uid-1", email="owner@threechicks.test")
        result = AuthResult(authorized=True, identity=identity)
        with patch("candle_admin.core.auth.verify_admin_token", AsyncMock(return_value=result)):
            admin = await get_current_admin(HTTPAuthorizationCredentials(scheme="Bearer", credentials="tok"))
        assert admin == identity

    @pytest.mark.asyncio
    async def test_unlisted_is_403(self):
        identity = AdminIdentity(uid="uid-2", email="stranger@example.com")
        result = AuthResult(authorized=False, identity=identity, error="nope")
        with patch("candle_admin.core.auth.verify_admin_token", AsyncMock(return_value=result)):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_admin(HTTPAuthorizationCredentials(scheme="Bearer", credentials="tok"))
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self):
        result = AuthResult(authorized=False, error="Invalid or expired token")
        with patch("candle_admin.core.auth.verify_admin_token", AsyncMock(return_value=result)):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_admin(HTTPAuthorizationCredentials(scheme="Bearer", credentials="tok"))
        assert exc_info.value.status_code == 401
