# Authentication routes and request dependencies
# Sign-in happens at the identity provider; this service only accepts its bearer tokens

import logging
from typing import Dict, Any
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .models import TokenData, UserInfo, RefreshTokenResponse
from db.manager import DatabaseManager
from db.models import UserRole
from db.supporting_operations import SupportingOperations
from utils.config import Config
from utils.security import JWTManager
from utils.response import create_success_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

config = Config()
jwt_manager = JWTManager(
    secret_key=config.get("auth.jwt_secret_key", "development-secret-key"),
    algorithm=config.get("auth.jwt_algorithm", "HS256"),
    access_token_expire_minutes=config.get("auth.access_token_expire_minutes", 1440)
)
security = HTTPBearer()


def get_database():
    """Per-request database connection"""
    db_config = config.get_database_config()
    db_manager = DatabaseManager(
        db_config["path"],
        auto_connect=True,
        busy_timeout=db_config["busy_timeout_seconds"]
    )
    try:
        yield db_manager
    finally:
        db_manager.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: DatabaseManager = Depends(get_database)
) -> TokenData:
    """Resolve the bearer token's subject to a known user"""
    payload = jwt_manager.verify_token(credentials.credentials)

    if not payload or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token, please sign in again"
        )

    user_info = SupportingOperations(db).get_user_by_id(payload["sub"])

    if not user_info:
        logger.warning(f"Token for unknown user {payload['sub']}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if user_info["role"] is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is pending approval"
        )

    return TokenData(
        user_id=user_info["user_id"],
        email=user_info["email"],
        first_name=user_info["first_name"],
        last_name=user_info["last_name"],
        role=user_info["role"],
        is_admin=user_info["role"] == UserRole.ADMIN.value
    )


def get_admin_user(current_user: TokenData = Depends(get_current_user)) -> TokenData:
    """Canteen staff only"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


@router.post("/refresh", response_model=Dict[str, Any])
async def refresh_token(
    current_user: TokenData = Depends(get_current_user)
):
    """Issue a fresh access token for the current user"""
    new_access_token = jwt_manager.create_access_token({"sub": current_user.user_id})

    response_data = RefreshTokenResponse(
        access_token=new_access_token,
        expires_in=jwt_manager.access_token_expire_minutes * 60
    )

    return create_success_response(
        data=response_data.model_dump(),
        message="Token refreshed"
    )


@router.get("/me", response_model=Dict[str, Any])
async def get_current_user_info(
    current_user: TokenData = Depends(get_current_user),
    db: DatabaseManager = Depends(get_database)
):
    """Current user profile"""
    user_info = SupportingOperations(db).get_user_by_id(current_user.user_id)

    response_data = UserInfo(
        **user_info,
        is_admin=current_user.is_admin
    )

    return create_success_response(
        data=response_data.model_dump(),
        message="User profile loaded"
    )
