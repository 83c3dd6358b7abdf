"""Authentication routes"""

from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.orm import Session
from typing import Optional

from servicedesk.core.database import get_db
from servicedesk.config import settings
from servicedesk.schemas.user import (
    UserLogin,
    UserRegister,
    UserResponse,
    CurrentUserResponse,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    LogoutRequest,
)
from servicedesk.services.user_service import user_service
from servicedesk.services.token_service import token_service
from servicedesk.services.permission_service import permission_service
from servicedesk.services.rate_limiter import rate_limiter
from servicedesk.api.permissions import authorize
from servicedesk.models.user import User

router = APIRouter()


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
def login(
    credentials: UserLogin,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Login endpoint - authenticate by email and return a token pair

    Args:
        credentials: Email and password
        db: Database session

    Returns:
        User info, access token and refresh token
    """
    client_ip = request.client.host if request.client else "unknown"
    rate_limiter.check_login(client_ip, credentials.email)

    user = user_service.authenticate_user(db, credentials.email, credentials.password)
    access_token, refresh_token = token_service.issue_token_pair(db, user)

    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: UserRegister,
    db: Session = Depends(get_db)
):
    """Self-service registration with the default role"""
    user = user_service.register_user(db, data)
    return UserResponse.model_validate(user)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh_token(
    req: RefreshTokenRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange a refresh token for a new access token

    The refresh token must belong to an active, unexpired session;
    a valid signature alone is not enough.
    """
    _, access_token = token_service.refresh_access_token(db, req.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(
    body: Optional[LogoutRequest] = None,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db)
):
    """
    Logout endpoint - revoke the session of the presented refresh token

    Args:
        body: Refresh token to revoke
        current_user: Current authenticated user

    Returns:
        Success message
    """
    revoked = 0
    if body and body.refresh_token:
        revoked = token_service.revoke_session(db, current_user.id, body.refresh_token)

    return {
        "success": True,
        "message": "Logged out successfully",
        "sessions_revoked": revoked,
    }


@router.post("/logout-all", status_code=status.HTTP_200_OK)
def logout_all(
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db)
):
    """Revoke every session of the current user"""
    revoked = token_service.revoke_all_sessions(db, current_user.id)
    return {
        "success": True,
        "message": "Logged out from all devices",
        "sessions_revoked": revoked,
    }


@router.get("/me", response_model=CurrentUserResponse)
def get_current_user_info(
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db)
):
    """Current user with roles and effective permissions"""
    response = CurrentUserResponse.model_validate(current_user)
    response.permissions = permission_service.get_effective_permissions(db, current_user.id)
    return response
