"""User service - handles user management and authentication"""

from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import timedelta

from servicedesk.core.permissions import ADMIN_ROLE, DEFAULT_USER_ROLE
from servicedesk.models.audit import AuditLog
from servicedesk.models.user import Permission, Role, User
from servicedesk.schemas.user import UserCreate, UserRegister, UserUpdate
from servicedesk.core.security import get_password_hash, verify_password, utcnow
from servicedesk.core.exceptions import (
    AccountDisabledError,
    InvalidCredentialsError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    SelfDeletionError,
)
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service
from servicedesk.services.pagination import paginate
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Service for user management"""

    @staticmethod
    def _ensure_unique(db: Session, email: Optional[str], username: Optional[str], exclude_id: Optional[int] = None) -> None:
        if email:
            query = db.query(User).filter(User.email == email)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ResourceAlreadyExistsError("User with this email")
        if username:
            query = db.query(User).filter(User.username == username)
            if exclude_id is not None:
                query = query.filter(User.id != exclude_id)
            if query.first():
                raise ResourceAlreadyExistsError("User with this username")

    @staticmethod
    def _load_roles(db: Session, role_ids: List[int]) -> List[Role]:
        wanted = set(role_ids)
        roles = db.query(Role).filter(Role.id.in_(wanted)).all() if wanted else []
        if len(roles) != len(wanted):
            raise ResourceNotFoundError("Role")
        return roles

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> User:
        """
        Authenticate user by email and password

        Args:
            db: Database session
            email: Login email
            password: Password

        Returns:
            Authenticated user
        """
        user = db.query(User).filter(User.email == email).first()

        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning(f"Login attempt on deactivated account {email}")
            raise AccountDisabledError()

        user.last_login_at = utcnow()
        db.commit()
        db.refresh(user)

        logger.info(f"User authenticated: {user.username}")
        return user

    @staticmethod
    def register_user(db: Session, data: UserRegister) -> User:
        """
        Self-service registration; the new account gets the default role.

        Args:
            db: Database session
            data: Registration data

        Returns:
            Created user
        """
        UserService._ensure_unique(db, data.email, data.username)

        user = User(
            email=data.email,
            username=data.username,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            is_active=True,
            is_verified=False,
        )
        default_role = db.query(Role).filter(Role.name == DEFAULT_USER_ROLE).first()
        if default_role:
            user.roles = [default_role]
        else:
            logger.warning(f"Default role '{DEFAULT_USER_ROLE}' missing; registering {data.email} without roles")

        db.add(user)
        db.commit()
        db.refresh(user)

        audit_service.record(
            db,
            actor_id=user.id,
            action=AuditAction.REGISTER_USER,
            resource_type=ResourceType.USER,
            resource_id=user.id,
            new_values=user.to_dict(),
        )
        logger.info(f"Registered user: {user.username}")
        return user

    @staticmethod
    def create_user(db: Session, data: UserCreate, actor_id: int) -> User:
        """
        Create new user with an explicit role set

        Args:
            db: Database session
            data: User creation data
            actor_id: Acting administrator

        Returns:
            Created user
        """
        UserService._ensure_unique(db, data.email, data.username)
        roles = UserService._load_roles(db, data.role_ids)

        user = User(
            email=data.email,
            username=data.username,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            is_active=data.is_active,
            is_verified=data.is_verified,
        )
        user.roles = roles

        db.add(user)
        db.commit()
        db.refresh(user)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.CREATE_USER,
            resource_type=ResourceType.USER,
            resource_id=user.id,
            new_values=user.to_dict(),
        )
        logger.info(f"Created user: {user.username} (roles: {[r.name for r in roles]})")
        return user

    @staticmethod
    def update_user(db: Session, user_id: int, data: UserUpdate, actor_id: int) -> User:
        """
        Update profile fields, password, active flag and role set

        Args:
            db: Database session
            user_id: Target user ID
            data: Fields to change; omitted fields are left untouched
            actor_id: Acting administrator

        Returns:
            Updated user
        """
        user = UserService.get_user(db, user_id)
        old_values = user.to_dict()

        changes = data.model_dump(exclude_unset=True)
        password = changes.pop("password", None)
        role_ids = changes.pop("role_ids", None)

        UserService._ensure_unique(db, changes.get("email"), changes.get("username"), exclude_id=user.id)

        for field, value in changes.items():
            setattr(user, field, value)
        if password:
            user.password_hash = get_password_hash(password)
        if role_ids is not None:
            user.roles = UserService._load_roles(db, role_ids)

        db.commit()
        db.refresh(user)

        new_values = user.to_dict()
        if password:
            new_values["password_changed"] = True
        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_USER,
            resource_type=ResourceType.USER,
            resource_id=user.id,
            old_values=old_values,
            new_values=new_values,
        )
        logger.info(f"Updated user: {user.username}")
        return user

    @staticmethod
    def delete_user(db: Session, user_id: int, actor_id: int) -> None:
        """
        Hard-delete a user; administrators cannot delete themselves

        Args:
            db: Database session
            user_id: Target user ID
            actor_id: Acting administrator
        """
        user = UserService.get_user(db, user_id)
        if user.id == actor_id:
            logger.warning(f"User {actor_id} attempted to delete their own account")
            raise SelfDeletionError()

        old_values = user.to_dict()
        db.delete(user)
        db.commit()

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.DELETE_USER,
            resource_type=ResourceType.USER,
            resource_id=user_id,
            old_values=old_values,
        )
        logger.info(f"Deleted user: {old_values['username']}")

    @staticmethod
    def ensure_admin_user(db: Session, email: str, username: str, password: str) -> Optional[User]:
        """
        Create the bootstrap administrator if no account uses its email or username

        Returns:
            The created user, or None when it already exists
        """
        email = email.strip().lower()
        username = username.strip().lower()
        existing = db.query(User).filter(or_(User.email == email, User.username == username)).first()
        if existing:
            return None

        admin_role = db.query(Role).filter(Role.name == ADMIN_ROLE).first()
        user = User(
            email=email,
            username=username,
            password_hash=get_password_hash(password),
            is_active=True,
            is_verified=True,
        )
        user.roles = [admin_role] if admin_role else []
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created admin user: {user.username}")
        return user

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = UserService.get_user_by_id(db, user_id)
        if not user:
            raise ResourceNotFoundError("User")
        return user

    @staticmethod
    def list_users(db: Session, page: int, limit: int, search: Optional[str] = None) -> dict:
        """
        Paginated user list, optionally filtered by a search term

        Args:
            db: Database session
            page: Page number (1-based)
            limit: Page size
            search: Matched against email, username and names

        Returns:
            Page dict with data and pagination
        """
        query = db.query(User)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                User.email.ilike(pattern),
                User.username.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            ))
        query = query.order_by(User.created_at.desc(), User.id.desc())
        return paginate(query, page, limit)

    @staticmethod
    def get_dashboard_stats(db: Session) -> dict:
        """Counts for the admin dashboard"""
        now = utcnow()
        return {
            "total_users": db.query(User).count(),
            "total_roles": db.query(Role).count(),
            "total_permissions": db.query(Permission).count(),
            "active_users": db.query(User).filter(User.last_login_at >= now - timedelta(days=30)).count(),
            "recent_audit_logs": db.query(AuditLog).filter(AuditLog.created_at >= now - timedelta(hours=24)).count(),
        }


# Singleton instance
user_service = UserService()
