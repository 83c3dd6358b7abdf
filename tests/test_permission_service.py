from servicedesk.core.permissions import ALL_PERMISSION_TAGS, DEFAULT_ROLES, TECHNICIAN_ROLE, USER_ROLE
from servicedesk.models.user import Permission, Role
from servicedesk.schemas.role import RoleUpdate
from servicedesk.services.permission_service import permission_service
from servicedesk.services.role_service import role_service

from conftest import make_user


def test_effective_permissions_are_union_of_roles(db):
    user = make_user(db, "tech", [TECHNICIAN_ROLE, USER_ROLE])

    effective = permission_service.get_effective_permissions(db, user.id)

    expected = set(DEFAULT_ROLES[TECHNICIAN_ROLE][1]) | set(DEFAULT_ROLES[USER_ROLE][1])
    assert effective == expected


def test_user_without_roles_has_no_permissions(db):
    user = make_user(db, "nobody")
    assert permission_service.get_effective_permissions(db, user.id) == set()


def test_unknown_user_has_no_permissions(db):
    assert permission_service.get_effective_permissions(db, 4242) == set()


def test_role_change_applies_immediately(db, admin_user):
    user = make_user(db, "bob", [USER_ROLE])
    assert "releases:create" not in permission_service.get_effective_permissions(db, user.id)

    role = db.query(Role).filter(Role.name == USER_ROLE).one()
    grant = db.query(Permission).filter(Permission.resource == "releases", Permission.action == "create").one()
    role_service.update_role(
        db,
        role.id,
        RoleUpdate(permission_ids=[p.id for p in role.permissions] + [grant.id]),
        admin_user.id,
    )

    assert "releases:create" in permission_service.get_effective_permissions(db, user.id)


def test_has_permissions_requires_every_tag():
    held = {"assets:read", "assets:assign"}
    assert permission_service.has_permissions(held, ["assets:read", "assets:assign"])
    assert not permission_service.has_permissions(held, ["assets:read", "assets:delete"])
    assert permission_service.has_permissions(held, [])


def test_seeding_is_idempotent(db):
    assert db.query(Permission).count() == len(ALL_PERMISSION_TAGS)
    assert permission_service.seed_permission_catalog(db) == 0
    assert permission_service.seed_default_roles(db) == 0
    assert db.query(Role).count() == len(DEFAULT_ROLES)


def test_seeding_keeps_customised_roles(db, admin_user):
    role = db.query(Role).filter(Role.name == USER_ROLE).one()
    role_service.update_role(db, role.id, RoleUpdate(permission_ids=[]), admin_user.id)

    permission_service.seed_default_roles(db)

    db.refresh(role)
    assert role.permissions == []
