"""Static permission catalog and default role grants"""

from typing import Dict, FrozenSet, Iterable, Tuple


def permission_tag(resource: str, action: str) -> str:
    """Canonical ``resource:action`` form of a permission"""
    return f"{resource}:{action}"


# (resource, action, description)
PERMISSION_CATALOG: Tuple[Tuple[str, str, str], ...] = (
    # Administration
    ("admin", "read", "View administrative dashboard"),
    ("audit", "read", "View audit logs"),
    ("permissions", "read", "View the permission catalog"),

    # User management
    ("users", "create", "Create new users"),
    ("users", "read", "View user information"),
    ("users", "update", "Update user information"),
    ("users", "delete", "Delete users"),

    # Role management
    ("roles", "create", "Create roles"),
    ("roles", "read", "View roles"),
    ("roles", "update", "Update roles and their permissions"),
    ("roles", "delete", "Delete roles"),

    # Assets
    ("assets", "create", "Register new assets"),
    ("assets", "read", "View assets"),
    ("assets", "update", "Update assets"),
    ("assets", "delete", "Delete assets"),
    ("assets", "assign", "Assign and unassign assets"),
    ("maintenance", "create", "Schedule asset maintenance"),
    ("maintenance", "read", "View maintenance schedules"),
    ("maintenance", "update", "Update and complete maintenance"),

    # Warehouse inventory
    ("inventory", "create", "Add new inventory items"),
    ("inventory", "read", "View inventory"),
    ("inventory", "update", "Update inventory items"),
    ("inventory", "delete", "Remove inventory items"),
    ("stock", "read", "View stock movements"),
    ("stock", "update", "Adjust stock levels"),
    ("warehouse", "read", "View warehouse alerts and statistics"),
    ("warehouse", "update", "Resolve warehouse alerts"),

    # Service requests
    ("requests", "create", "Create new requests"),
    ("requests", "read", "View requests"),
    ("requests", "update", "Update requests"),
    ("requests", "delete", "Delete requests"),
    ("requests", "assign", "Assign requests"),
    ("requests", "comment", "Comment on requests"),

    # Issues
    ("issues", "create", "Report issues"),
    ("issues", "read", "View issues"),
    ("issues", "update", "Update issues"),
    ("issues", "delete", "Delete issues"),
    ("issues", "assign", "Assign issues"),

    # Releases
    ("releases", "create", "Create releases"),
    ("releases", "read", "View releases"),
    ("releases", "update", "Update releases and their issue links"),
    ("releases", "delete", "Delete releases"),
)

ALL_PERMISSION_TAGS: FrozenSet[str] = frozenset(
    permission_tag(resource, action) for resource, action, _ in PERMISSION_CATALOG
)


def _tags_where(predicate) -> FrozenSet[str]:
    return frozenset(
        permission_tag(resource, action)
        for resource, action, _ in PERMISSION_CATALOG
        if predicate(resource, action)
    )


ADMIN_ROLE = "Admin"
MANAGER_ROLE = "Manager"
TECHNICIAN_ROLE = "Technician"
USER_ROLE = "User"

# name -> (description, granted tags)
DEFAULT_ROLES: Dict[str, Tuple[str, FrozenSet[str]]] = {
    ADMIN_ROLE: (
        "System administrator with full access",
        ALL_PERMISSION_TAGS,
    ),
    MANAGER_ROLE: (
        "Department manager with elevated privileges",
        ALL_PERMISSION_TAGS - {"users:delete", "roles:create", "roles:update", "roles:delete"},
    ),
    TECHNICIAN_ROLE: (
        "IT technician with maintenance and support access",
        _tags_where(lambda resource, action: action == "read" and resource not in ("admin", "audit"))
        | {
            "assets:update", "assets:assign",
            "maintenance:create", "maintenance:update",
            "stock:update",
            "requests:update", "requests:comment",
            "issues:create", "issues:update", "issues:assign",
        },
    ),
    USER_ROLE: (
        "Standard user with basic access",
        frozenset({
            "requests:create", "requests:read", "requests:comment",
            "issues:create", "issues:read",
            "assets:read",
            "releases:read",
        }),
    ),
}

DEFAULT_USER_ROLE = USER_ROLE


def unknown_tags(tags: Iterable[str]) -> FrozenSet[str]:
    """Tags not present in the catalog"""
    return frozenset(tags) - ALL_PERMISSION_TAGS
