"""Role service - role CRUD and permission grants"""

from typing import List

from sqlalchemy.orm import Session

from servicedesk.core.exceptions import ResourceAlreadyExistsError, ResourceNotFoundError, RoleInUseError
from servicedesk.models.user import Permission, Role
from servicedesk.schemas.role import RoleCreate, RoleUpdate
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service
import logging

logger = logging.getLogger(__name__)


class RoleService:
    """Service for role management"""

    @staticmethod
    def _load_permissions(db: Session, permission_ids: List[int]) -> List[Permission]:
        wanted = set(permission_ids)
        permissions = db.query(Permission).filter(Permission.id.in_(wanted)).all() if wanted else []
        if len(permissions) != len(wanted):
            raise ResourceNotFoundError("Permission")
        return permissions

    @staticmethod
    def _ensure_unique_name(db: Session, name: str, exclude_id=None) -> None:
        query = db.query(Role).filter(Role.name == name)
        if exclude_id is not None:
            query = query.filter(Role.id != exclude_id)
        if query.first():
            raise ResourceAlreadyExistsError("Role with this name")

    @staticmethod
    def list_roles(db: Session) -> List[Role]:
        return db.query(Role).order_by(Role.name).all()

    @staticmethod
    def get_role(db: Session, role_id: int) -> Role:
        role = db.query(Role).filter(Role.id == role_id).first()
        if not role:
            raise ResourceNotFoundError("Role")
        return role

    @staticmethod
    def create_role(db: Session, data: RoleCreate, actor_id: int) -> Role:
        """
        Create a role with an initial permission set

        Args:
            db: Database session
            data: Role name, description and permission IDs
            actor_id: Acting administrator

        Returns:
            Created role
        """
        RoleService._ensure_unique_name(db, data.name)
        role = Role(name=data.name, description=data.description)
        role.permissions = RoleService._load_permissions(db, data.permission_ids)

        db.add(role)
        db.commit()
        db.refresh(role)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.CREATE_ROLE,
            resource_type=ResourceType.ROLE,
            resource_id=role.id,
            new_values=role.to_dict(),
        )
        logger.info(f"Created role: {role.name}")
        return role

    @staticmethod
    def update_role(db: Session, role_id: int, data: RoleUpdate, actor_id: int) -> Role:
        """
        Rename a role or replace its permission set.

        Holders of the role see the new permissions on their next request.
        """
        role = RoleService.get_role(db, role_id)
        old_values = role.to_dict()

        if data.name is not None and data.name != role.name:
            RoleService._ensure_unique_name(db, data.name, exclude_id=role.id)
            role.name = data.name
        if data.description is not None:
            role.description = data.description
        if data.permission_ids is not None:
            role.permissions = RoleService._load_permissions(db, data.permission_ids)

        db.commit()
        db.refresh(role)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_ROLE,
            resource_type=ResourceType.ROLE,
            resource_id=role.id,
            old_values=old_values,
            new_values=role.to_dict(),
        )
        logger.info(f"Updated role: {role.name}")
        return role

    @staticmethod
    def delete_role(db: Session, role_id: int, actor_id: int) -> None:
        """Delete a role; refused while any user holds it"""
        role = RoleService.get_role(db, role_id)
        assigned = role.user_count
        if assigned:
            logger.warning(f"Refused to delete role {role.name}: assigned to {assigned} users")
            raise RoleInUseError(assigned)

        old_values = role.to_dict()
        db.delete(role)
        db.commit()

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.DELETE_ROLE,
            resource_type=ResourceType.ROLE,
            resource_id=role_id,
            old_values=old_values,
        )
        logger.info(f"Deleted role: {old_values['name']}")


role_service = RoleService()
