"""
Auth schemas — verified admin identity and verification outcome.
Version: 1.0.0
"""
from typing import Optional

from pydantic import BaseModel


class AdminIdentity(BaseModel):
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None


class AuthResult(BaseModel):
    """Outcome of verify_admin_token; never raised, always returned."""
    authorized: bool
    identity: Optional[AdminIdentity] = None
    error: Optional[str] = None


class CurrentUserResponse(BaseModel):
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
