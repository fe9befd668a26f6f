"""
Authentication API endpoints.

Provides:
- GET /auth/me - Identity behind the bearer token
"""
from fastapi import APIRouter, Depends

from candle_admin.core.auth import get_current_admin
from candle_admin.schemas.auth import AdminIdentity, CurrentUserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(admin: AdminIdentity = Depends(get_current_admin)):
    """
    Get the signed-in admin.

    Requires a Firebase ID token for an allow-listed email.
    """
    return CurrentUserResponse(uid=admin.uid, email=admin.email, name=admin.name)
