"""Route permission table and the authorization dependency"""

from functools import lru_cache
from typing import Dict, Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from starlette.routing import compile_path

from servicedesk.api.deps import get_current_user
from servicedesk.config import settings
from servicedesk.core.database import get_db
from servicedesk.core.exceptions import AuthorizationError
from servicedesk.models.user import User
from servicedesk.services.permission_service import permission_service
import logging

logger = logging.getLogger(__name__)

AUTHENTICATED = ()

# (method, path relative to the API prefix) -> required permission tags.
# Every listed tag must be held. An empty tuple admits any authenticated user.
# Routes guarded by `authorize` but missing here are denied.
ROUTE_PERMISSIONS: Dict[Tuple[str, str], Tuple[str, ...]] = {
    # Session
    ("POST", "/auth/logout"): AUTHENTICATED,
    ("POST", "/auth/logout-all"): AUTHENTICATED,
    ("GET", "/auth/me"): AUTHENTICATED,

    # Administration
    ("GET", "/admin/dashboard/stats"): ("admin:read",),
    ("GET", "/admin/users"): ("users:read",),
    ("POST", "/admin/users"): ("users:create",),
    ("GET", "/admin/users/{user_id}"): ("users:read",),
    ("PUT", "/admin/users/{user_id}"): ("users:update",),
    ("DELETE", "/admin/users/{user_id}"): ("users:delete",),
    ("GET", "/admin/roles"): ("roles:read",),
    ("POST", "/admin/roles"): ("roles:create",),
    ("GET", "/admin/roles/{role_id}"): ("roles:read",),
    ("PUT", "/admin/roles/{role_id}"): ("roles:update",),
    ("DELETE", "/admin/roles/{role_id}"): ("roles:delete",),
    ("GET", "/admin/permissions"): ("permissions:read",),
    ("GET", "/admin/audit-logs"): ("audit:read",),

    # Assets
    ("GET", "/inventory/assets"): ("assets:read",),
    ("POST", "/inventory/assets"): ("assets:create",),
    ("GET", "/inventory/assets/{asset_id}"): ("assets:read",),
    ("PUT", "/inventory/assets/{asset_id}"): ("assets:update",),
    ("DELETE", "/inventory/assets/{asset_id}"): ("assets:delete",),
    ("PUT", "/inventory/assets/{asset_id}/assign"): ("assets:assign",),
    ("PUT", "/inventory/assets/{asset_id}/unassign"): ("assets:assign",),
    ("GET", "/inventory/stats"): ("inventory:read",),
    ("GET", "/inventory/categories"): ("assets:read",),
    ("GET", "/inventory/locations"): ("assets:read",),
    ("GET", "/inventory/maintenance"): ("maintenance:read",),
    ("POST", "/inventory/maintenance"): ("maintenance:create",),
    ("PUT", "/inventory/maintenance/{maintenance_id}"): ("maintenance:update",),

    # Service requests
    ("GET", "/requests"): ("requests:read",),
    ("POST", "/requests"): ("requests:create",),
    ("GET", "/requests/my-requests"): ("requests:read",),
    ("GET", "/requests/assigned-to-me"): ("requests:read",),
    ("GET", "/requests/{request_id}"): ("requests:read",),
    ("PUT", "/requests/{request_id}"): ("requests:update",),
    ("DELETE", "/requests/{request_id}"): ("requests:delete",),
    ("POST", "/requests/{request_id}/assign"): ("requests:assign",),
    ("PUT", "/requests/{request_id}/status"): ("requests:update",),
    ("GET", "/requests/{request_id}/comments"): ("requests:read",),
    ("POST", "/requests/{request_id}/comments"): ("requests:comment",),

    # Issues
    ("GET", "/issues"): ("issues:read",),
    ("POST", "/issues"): ("issues:create",),
    ("GET", "/issues/{issue_id}"): ("issues:read",),
    ("PATCH", "/issues/{issue_id}"): ("issues:update",),
    ("DELETE", "/issues/{issue_id}"): ("issues:delete",),
    ("POST", "/issues/{issue_id}/assign"): ("issues:assign",),
    ("PUT", "/issues/{issue_id}/status"): ("issues:update",),
    ("POST", "/issues/{issue_id}/labels"): ("issues:update",),
    ("DELETE", "/issues/{issue_id}/labels/{label}"): ("issues:update",),

    # Releases
    ("GET", "/releases"): ("releases:read",),
    ("POST", "/releases"): ("releases:create",),
    ("GET", "/releases/{release_id}"): ("releases:read",),
    ("PATCH", "/releases/{release_id}"): ("releases:update",),
    ("DELETE", "/releases/{release_id}"): ("releases:delete",),
    ("POST", "/releases/{release_id}/issues"): ("releases:update",),
    ("DELETE", "/releases/{release_id}/issues/{issue_id}"): ("releases:update",),

    # Warehouse
    ("GET", "/warehouse/stats"): ("warehouse:read",),
    ("GET", "/warehouse/categories"): ("inventory:read",),
    ("GET", "/warehouse/suppliers"): ("inventory:read",),
    ("GET", "/warehouse/items"): ("inventory:read",),
    ("POST", "/warehouse/items"): ("inventory:create",),
    ("GET", "/warehouse/items/{item_id}"): ("inventory:read",),
    ("PUT", "/warehouse/items/{item_id}"): ("inventory:update",),
    ("DELETE", "/warehouse/items/{item_id}"): ("inventory:delete",),
    ("PUT", "/warehouse/items/{item_id}/stock"): ("stock:update",),
    ("GET", "/warehouse/items/{item_id}/stock-history"): ("stock:read",),
    ("GET", "/warehouse/stock-movements"): ("stock:read",),
    ("GET", "/warehouse/alerts"): ("warehouse:read",),
    ("PUT", "/warehouse/alerts/{alert_id}/resolve"): ("warehouse:update",),
}


@lru_cache(maxsize=None)
def _template_regex(template: str):
    regex, _, _ = compile_path(template)
    return regex


def api_relative_path(path: str) -> Optional[str]:
    prefix = settings.API_V1_PREFIX
    if prefix and not path.startswith(prefix):
        return None
    return path[len(prefix):] or "/"


def match_route_template(method: str, path: str, route_path: Optional[str] = None) -> Optional[str]:
    """
    Find the ROUTE_PERMISSIONS template for a request.

    Args:
        method: HTTP method
        path: Request path relative to the API prefix
        route_path: Template of the route that actually matched, either
            router-relative or full; the table template must end with it,
            so a parameterised entry never stands in for a sibling route

    Returns:
        The most specific matching template, or None
    """
    method = method.upper()
    matches = []
    for key_method, template in ROUTE_PERMISSIONS:
        if key_method != method or not _template_regex(template).match(path):
            continue
        if route_path is not None and not f"{settings.API_V1_PREFIX}{template}".endswith(route_path):
            continue
        matches.append(template)
    if not matches:
        return None
    return min(matches, key=lambda template: template.count("{"))


def route_key(request: Request) -> Optional[Tuple[str, str]]:
    """(method, table template) of the matched route"""
    path = api_relative_path(request.scope.get("path") or request.url.path)
    if path is None:
        return None
    route = request.scope.get("route")
    route_path = getattr(route, "path_format", None) if route is not None else None
    template = match_route_template(request.method, path, route_path)
    if template is None:
        return None
    return request.method.upper(), template


def required_permissions(request: Request) -> Optional[Tuple[str, ...]]:
    key = route_key(request)
    if key is None:
        return None
    return ROUTE_PERMISSIONS.get(key)


def authorize(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """
    Authenticate the caller and check the matched route's required tags.

    Runs before the endpoint body, so a denial leaves no trace in the
    database. Endpoints depend on it again to obtain the current user;
    FastAPI resolves it once per request.

    Raises:
        AuthenticationError: No valid bearer token
        AuthorizationError: Route not in ROUTE_PERMISSIONS, or a tag is missing
    """
    required = required_permissions(request)
    if required is None:
        logger.warning(f"Denied {request.method} {request.url.path}: route has no permission entry")
        raise AuthorizationError("Access to this route is not configured")

    if not required:
        return current_user

    effective = permission_service.get_effective_permissions(db, current_user.id)
    if not permission_service.has_permissions(effective, required):
        missing = sorted(set(required) - effective)
        logger.warning(
            f"Denied {request.method} {request.url.path} for user {current_user.id}: missing {missing}"
        )
        raise AuthorizationError(details={"required": list(required), "missing": missing})

    return current_user
