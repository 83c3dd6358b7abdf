"""Pydantic schemas for API validation"""

from servicedesk.schemas.user import (
    UserLogin,
    UserRegister,
    UserCreate,
    UserUpdate,
    UserResponse,
    CurrentUserResponse,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    LogoutRequest,
)
from servicedesk.schemas.role import RoleCreate, RoleUpdate, RoleResponse, PermissionResponse
from servicedesk.schemas.audit import AuditLogFilter, AuditLogResponse
from servicedesk.schemas.asset import AssetCreate, AssetUpdate, AssetAssignment, AssetResponse
from servicedesk.schemas.service_request import (
    RequestCreate, RequestUpdate, RequestAssign, RequestStatusUpdate, RequestResponse,
    CommentCreate, CommentResponse,
)
from servicedesk.schemas.issue import (
    IssueCreate, IssueUpdate, IssueAssign, IssueStatusUpdate, IssueResponse, LabelCreate,
    ReleaseCreate, ReleaseUpdate, ReleaseIssueLink, ReleaseResponse,
)
from servicedesk.schemas.warehouse import (
    InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse,
    StockMovementCreate, StockMovementResponse, StockAlertResponse,
)
from servicedesk.schemas.response import APIResponse, ErrorResponse, Page, Pagination

__all__ = [
    "UserLogin", "UserRegister", "UserCreate", "UserUpdate", "UserResponse", "CurrentUserResponse",
    "LoginResponse", "RefreshTokenRequest", "AccessTokenResponse", "LogoutRequest",
    "RoleCreate", "RoleUpdate", "RoleResponse", "PermissionResponse",
    "AuditLogFilter", "AuditLogResponse",
    "AssetCreate", "AssetUpdate", "AssetAssignment", "AssetResponse",
    "RequestCreate", "RequestUpdate", "RequestAssign", "RequestStatusUpdate", "RequestResponse",
    "CommentCreate", "CommentResponse",
    "IssueCreate", "IssueUpdate", "IssueAssign", "IssueStatusUpdate", "IssueResponse", "LabelCreate",
    "ReleaseCreate", "ReleaseUpdate", "ReleaseIssueLink", "ReleaseResponse",
    "InventoryItemCreate", "InventoryItemUpdate", "InventoryItemResponse",
    "StockMovementCreate", "StockMovementResponse", "StockAlertResponse",
    "APIResponse", "ErrorResponse", "Page", "Pagination",
]
