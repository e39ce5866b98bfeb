# Authentication module

from .routes import router as auth_router
from .models import TokenData, UserInfo, RefreshTokenResponse

__all__ = [
    "auth_router",
    "TokenData",
    "UserInfo",
    "RefreshTokenResponse"
]
