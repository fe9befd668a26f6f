"""
Firebase ID token validation — JWKS fetch and RS256 verification.

The admin dashboard signs in with Firebase Auth and sends the ID token as
a bearer token. Google publishes the signing keys as a JWKS document.
"""
import time
import logging
from typing import Optional
import httpx
from jose import jwt, jwk, JWTError
from candle_admin.core.config import get_settings

logger = logging.getLogger(__name__)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


async def get_jwks() -> dict:
    """
    Fetch and cache the securetoken JWKS.

    Falls back to a stale cache when Google cannot be reached.
    """
    global _jwks_cache, _jwks_cache_time

    settings = get_settings()
    current_time = time.time()

    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(settings.firebase_jwks_url, timeout=10.0)
            response.raise_for_status()
            _jwks_cache = response.json()
            _jwks_cache_time = current_time
            logger.info("Fetched Firebase JWKS")
            return _jwks_cache
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch Firebase JWKS: {e}")
        if _jwks_cache:
            logger.warning("Using stale JWKS cache")
            return _jwks_cache
        raise


def get_signing_key(token: str, jwks: dict) -> Optional[dict]:
    """Return the JWK whose kid matches the token header, or None."""
    try:
        headers = jwt.get_unverified_headers(token)
    except JWTError as e:
        logger.warning(f"Error extracting token headers: {e}")
        return None

    kid = headers.get("kid")
    if not kid:
        logger.warning("Token missing 'kid' header")
        return None

    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    logger.warning(f"No matching key found for kid: {kid}")
    return None


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token and return its claims.

    Raises:
        JWTError: If the signature, issuer, audience, expiry or subject
            check fails.
    """
    settings = get_settings()
    if not settings.firebase_project_id:
        raise JWTError("FIREBASE_PROJECT_ID is not configured")

    jwks = await get_jwks()

    signing_key = get_signing_key(token, jwks)
    if not signing_key:
        raise JWTError("Unable to find signing key for token")

    try:
        public_key = jwk.construct(signing_key, algorithm="RS256")
    except (JWTError, ValueError, TypeError) as e:
        raise JWTError(f"Invalid signing key: {e}")

    payload = jwt.decode(
        token,
        public_key,
        algorithms=["RS256"],
        audience=settings.firebase_project_id,
        issuer=settings.firebase_issuer,
        options={
            "verify_signature": True,
            "verify_exp": True,
            "verify_iat": True,
            "verify_iss": True,
            "verify_aud": True,
        },
    )

    if not payload.get("sub"):
        raise JWTError("Token has no subject")

    return payload


def extract_user_info(payload: dict) -> dict:
    return {
        "uid": payload.get("sub"),
        "email": payload.get("email"),
        "email_verified": bool(payload.get("email_verified", False)),
        "name": payload.get("name"),
    }
