"""Refresh-token session issuance and revocation service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Tuple
import logging

from sqlalchemy.orm import Session

from servicedesk.core.exceptions import AuthenticationError
from servicedesk.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_token,
    utcnow,
)
from servicedesk.models.security import UserSession
from servicedesk.models.user import User

logger = logging.getLogger(__name__)


def token_claims(user: User) -> dict:
    return {"sub": str(user.id), "email": user.email, "username": user.username}


class TokenService:
    """Manage refresh-token session lifecycle."""

    @staticmethod
    def _naive_utc(dt: datetime) -> datetime:
        return dt.replace(tzinfo=None) if dt and dt.tzinfo else dt

    @staticmethod
    def issue_token_pair(db: Session, user: User) -> Tuple[str, str]:
        """
        Issue an access token and a refresh token backed by a session row.

        Returns:
            (access_token, refresh_token)
        """
        claims = token_claims(user)
        access_token = create_access_token(claims)
        refresh_token = create_refresh_token(claims)

        payload = decode_refresh_token(refresh_token) or {}
        exp = payload.get("exp")
        if not exp:
            raise AuthenticationError("Failed to generate refresh token")

        db.add(UserSession(
            user_id=user.id,
            refresh_token_hash=hash_token(refresh_token),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc).replace(tzinfo=None),
            is_active=True,
        ))
        db.commit()
        return access_token, refresh_token

    @staticmethod
    def refresh_access_token(db: Session, refresh_token: str) -> Tuple[User, str]:
        """
        Exchange a refresh token for a new access token.

        The token must carry a valid signature AND match an active,
        unexpired session of an active user.
        """
        payload = decode_refresh_token(refresh_token)
        if not payload:
            raise AuthenticationError("Invalid or expired refresh token")

        session = (
            db.query(UserSession)
            .filter(
                UserSession.refresh_token_hash == hash_token(refresh_token),
                UserSession.is_active == True,  # noqa: E712
            )
            .first()
        )
        if not session or str(session.user_id) != str(payload.get("sub")):
            raise AuthenticationError("Invalid or expired refresh token")

        expires_at = TokenService._naive_utc(session.expires_at)
        if expires_at <= utcnow():
            raise AuthenticationError("Invalid or expired refresh token")

        user = session.user
        if not user or not user.is_active:
            raise AuthenticationError("User not found or inactive")

        return user, create_access_token(token_claims(user))

    @staticmethod
    def revoke_session(db: Session, user_id: int, refresh_token: str) -> int:
        """Deactivate the caller's session matching the presented refresh token"""
        count = (
            db.query(UserSession)
            .filter(
                UserSession.user_id == user_id,
                UserSession.refresh_token_hash == hash_token(refresh_token),
                UserSession.is_active == True,  # noqa: E712
            )
            .update({"is_active": False, "revoked_at": utcnow()}, synchronize_session=False)
        )
        db.commit()
        logger.info(f"User {user_id} logged out ({count} session revoked)")
        return count

    @staticmethod
    def revoke_all_sessions(db: Session, user_id: int) -> int:
        """Deactivate every active session of the user"""
        count = (
            db.query(UserSession)
            .filter(UserSession.user_id == user_id, UserSession.is_active == True)  # noqa: E712
            .update({"is_active": False, "revoked_at": utcnow()}, synchronize_session=False)
        )
        db.commit()
        logger.info(f"All sessions revoked for user {user_id} ({count} sessions)")
        return count


token_service = TokenService()
