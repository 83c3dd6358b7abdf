"""Database models"""

from servicedesk.models.user import User, Role, Permission, user_roles, role_permissions
from servicedesk.models.security import UserSession
from servicedesk.models.audit import AuditLog
from servicedesk.models.asset import Asset, MaintenanceSchedule
from servicedesk.models.service_request import ServiceRequest, RequestComment
from servicedesk.models.issue import Issue, Release, release_issues
from servicedesk.models.warehouse import InventoryItem, StockMovement, StockAlert

__all__ = [
    "User", "Role", "Permission", "user_roles", "role_permissions",
    "UserSession", "AuditLog",
    "Asset", "MaintenanceSchedule",
    "ServiceRequest", "RequestComment",
    "Issue", "Release", "release_issues",
    "InventoryItem", "StockMovement", "StockAlert",
]
