"""
Authentication — Firebase ID token verification plus the admin allow-list.

verify_admin_token() never raises and returns an AuthResult;
get_current_admin() is the FastAPI dependency protecting every /api/v1
route (401 for a bad token, 403 for an email outside AUTHORIZED_EMAILS).
Version: 1.0.0
"""
import logging

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from candle_admin.core.config import get_settings
from candle_admin.core.firebase import verify_firebase_token, extract_user_info
from candle_admin.schemas.auth import AdminIdentity, AuthResult

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

NOT_AUTHORIZED = "Email is not authorized for admin access"


def is_email_authorized(email: str | None) -> bool:
    if not email:
        return False
    allowed = {e.lower() for e in get_settings().authorized_emails}
    return email.strip().lower() in allowed


async def verify_admin_token(token: str) -> AuthResult:
    """Verify a bearer token and check the allow-list."""
    if not token:
        return AuthResult(authorized=False, error="Missing token")

    try:
        payload = await verify_firebase_token(token)
    except JWTError as e:
        logger.warning(f"Authentication failed - JWT error: {e}")
        return AuthResult(authorized=False, error=f"Invalid or expired token: {e}")
    except httpx.HTTPError as e:
        logger.error(f"Authentication failed - JWKS unavailable: {e}")
        return AuthResult(authorized=False, error="Unable to verify token")

    identity = AdminIdentity(**extract_user_info(payload))
    if not is_email_authorized(identity.email):
        logger.warning(f"Access denied for {identity.email}")
        return AuthResult(authorized=False, identity=identity, error=NOT_AUTHORIZED)

    return AuthResult(authorized=True, identity=identity)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AdminIdentity:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHORIZED", "message": "Missing bearer token"},
        )

    result = await verify_admin_token(credentials.credentials)
    if result.authorized and result.identity is not None:
        logger.debug(f"Authentication successful - uid: {result.identity.uid}")
        return result.identity

    if result.identity is not None:
        # Token was valid, email is not on the list
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "FORBIDDEN", "message": result.error or NOT_AUTHORIZED},
        )
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "UNAUTHORIZED", "message": result.error or "Authentication failed"},
    )
