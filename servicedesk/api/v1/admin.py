"""Admin routes - users, roles, permissions, audit trail and dashboard"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from servicedesk.core.database import get_db
from servicedesk.schemas.user import UserCreate, UserUpdate, UserResponse
from servicedesk.schemas.role import RoleCreate, RoleUpdate, RoleResponse, PermissionResponse
from servicedesk.schemas.audit import AuditLogFilter, AuditLogResponse
from servicedesk.schemas.response import Page
from servicedesk.services.user_service import user_service
from servicedesk.services.role_service import role_service
from servicedesk.services.permission_service import permission_service
from servicedesk.services.audit_service import audit_service
from servicedesk.api.permissions import authorize
from servicedesk.models.user import User

router = APIRouter(dependencies=[Depends(authorize)])


@router.get("/dashboard/stats")
def get_dashboard_stats(db: Session = Depends(get_db)):
    """User, role, permission and audit counts"""
    return user_service.get_dashboard_stats(db)


# Users

@router.get("/users", response_model=Page[UserResponse])
def list_users(
    page: int = 1,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    List users

    Args:
        page: Page number, starting at 1
        limit: Page size, capped by MAX_PAGE_SIZE
        search: Matched against email, username and names
    """
    return user_service.list_users(db, page, limit, search)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Create a user with an explicit role set"""
    return user_service.create_user(db, user_data, current_user.id)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return user_service.get_user(db, user_id)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Update profile fields, password, active flag or role set"""
    return user_service.update_user(db, user_id, user_data, current_user.id)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """
    Delete user (hard delete)

    Args:
        user_id: Target user
        current_user: Acting administrator; cannot be the target
    """
    user_service.delete_user(db, user_id, current_user.id)


# Roles

@router.get("/roles", response_model=List[RoleResponse])
def list_roles(db: Session = Depends(get_db)):
    return role_service.list_roles(db)


@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    role_data: RoleCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return role_service.create_role(db, role_data, current_user.id)


@router.get("/roles/{role_id}", response_model=RoleResponse)
def get_role(role_id: int, db: Session = Depends(get_db)):
    return role_service.get_role(db, role_id)


@router.put("/roles/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: int,
    role_data: RoleUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Rename a role or replace its permission set"""
    return role_service.update_role(db, role_id, role_data, current_user.id)


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(
    role_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Delete a role that no user holds"""
    role_service.delete_role(db, role_id, current_user.id)


# Permissions and audit

@router.get("/permissions", response_model=List[PermissionResponse])
def list_permissions(db: Session = Depends(get_db)):
    """Seeded permission catalog"""
    return permission_service.list_permissions(db)


@router.get("/audit-logs", response_model=Page[AuditLogResponse])
def get_audit_logs(
    page: int = 1,
    limit: Optional[int] = None,
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
):
    """List audit trail entries, newest first"""
    filters = AuditLogFilter(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        start_date=start_date,
        end_date=end_date,
    )
    return audit_service.list_logs(db, filters, page, limit)
