"""Permission service - role aggregation and catalog seeding"""

from typing import Iterable, Set

from sqlalchemy.orm import Session

from servicedesk.core.permissions import PERMISSION_CATALOG, DEFAULT_ROLES, permission_tag
from servicedesk.models.user import Permission, Role, User, role_permissions, user_roles
import logging

logger = logging.getLogger(__name__)


class PermissionService:
    """Effective permission computation and bootstrap seeding"""

    @staticmethod
    def get_effective_permissions(db: Session, user_id: int) -> Set[str]:
        """
        Union of every permission granted by every role assigned to the user.

        Evaluated against the database on each call, so role or permission
        changes apply to the next request without re-issuing tokens.

        Args:
            db: Database session
            user_id: User ID

        Returns:
            Set of "resource:action" tags; empty for an unknown user or a user without roles
        """
        rows = (
            db.query(Permission.resource, Permission.action)
            .join(role_permissions, role_permissions.c.permission_id == Permission.id)
            .join(user_roles, user_roles.c.role_id == role_permissions.c.role_id)
            .filter(user_roles.c.user_id == user_id)
            .all()
        )
        return {permission_tag(resource, action) for resource, action in rows}

    @staticmethod
    def has_permissions(effective: Iterable[str], required: Iterable[str]) -> bool:
        """AND semantics: every required tag must be held. No requirements means allowed."""
        held = set(effective)
        return all(tag in held for tag in required)

    @staticmethod
    def seed_permission_catalog(db: Session) -> int:
        """
        Insert catalog permissions that are not present yet.

        Returns:
            Number of permissions created
        """
        existing = {p.tag for p in db.query(Permission).all()}
        created = 0
        for resource, action, description in PERMISSION_CATALOG:
            if permission_tag(resource, action) in existing:
                continue
            db.add(Permission(resource=resource, action=action, description=description))
            created += 1
        db.commit()
        if created:
            logger.info(f"Seeded {created} permissions")
        return created

    @staticmethod
    def seed_default_roles(db: Session) -> int:
        """
        Create default roles that do not exist yet. Existing roles keep
        whatever permissions an administrator gave them.

        Returns:
            Number of roles created
        """
        by_tag = {p.tag: p for p in db.query(Permission).all()}
        created = 0
        for name, (description, tags) in DEFAULT_ROLES.items():
            if db.query(Role).filter(Role.name == name).first():
                continue
            role = Role(name=name, description=description)
            role.permissions = [by_tag[tag] for tag in sorted(tags) if tag in by_tag]
            db.add(role)
            created += 1
        db.commit()
        if created:
            logger.info(f"Seeded {created} default roles")
        return created

    @staticmethod
    def list_permissions(db: Session):
        return db.query(Permission).order_by(Permission.resource, Permission.action).all()

    @staticmethod
    def get_user_roles(db: Session, user_id: int):
        user = db.query(User).filter(User.id == user_id).first()
        return list(user.roles) if user else []


permission_service = PermissionService()
