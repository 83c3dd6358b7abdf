"""API dependencies - authentication"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from servicedesk.core.database import get_db
from servicedesk.core.security import decode_access_token
from servicedesk.core.exceptions import AuthenticationError
from servicedesk.models.user import User
from servicedesk.services.user_service import user_service

# HTTP Bearer token scheme; a missing header is reported as 401 below
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token

    Args:
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        Current user

    Raises:
        AuthenticationError: If token is missing or invalid, or the user is unknown or inactive
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")

    # Decode token
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    # Get user ID from token
    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise AuthenticationError("Invalid token payload")

    # Get user from database
    user = user_service.get_user_by_id(db, int(user_id))
    if not user:
        raise AuthenticationError("User not found")

    # Check if user is active
    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    return user
