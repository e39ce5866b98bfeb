# Authentication models

from typing import Optional
from pydantic import BaseModel


class TokenData(BaseModel):
    """Identity resolved from a bearer token and the users table"""
    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    is_admin: bool = False


class UserInfo(BaseModel):
    """Current user profile"""
    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: Optional[str] = None
    student_id: Optional[str] = None
    phone_number: Optional[str] = None
    is_admin: bool = False
    created_at: str


class RefreshTokenResponse(BaseModel):
    """Refreshed access token"""
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 86400
