from servicedesk.core.permissions import USER_ROLE
from servicedesk.models.audit import AuditLog
from servicedesk.models.user import Role, User
from servicedesk.services.audit_service import AuditAction

from conftest import auth_headers, make_user


def _role_id(db, name):
    return db.query(Role).filter(Role.name == name).one().id


def test_create_user_with_roles(client, db, admin_user):
    response = client.post(
        "/api/v1/admin/users",
        json={
            "email": "New.Hire@Example.com",
            "username": "newhire",
            "password": "welcome123",
            "role_ids": [_role_id(db, USER_ROLE)],
        },
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "new.hire@example.com"
    assert [role["name"] for role in body["roles"]] == [USER_ROLE]
    assert "password_hash" not in body

    entry = db.query(AuditLog).filter(AuditLog.action == AuditAction.CREATE_USER).one()
    assert entry.user_id == admin_user.id
    assert "welcome123" not in (entry.new_values or "")


def test_duplicate_email_is_409(client, admin_user):
    response = client.post(
        "/api/v1/admin/users",
        json={"email": admin_user.email, "username": "someone", "password": "welcome123"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 409


def test_unknown_role_id_is_404(client, admin_user):
    response = client.post(
        "/api/v1/admin/users",
        json={"email": "x@example.com", "username": "xuser", "password": "welcome123", "role_ids": [9999]},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 404


def test_password_change_is_audited_without_the_password(client, db, admin_user):
    target = make_user(db, "carol", [USER_ROLE])

    response = client.put(
        f"/api/v1/admin/users/{target.id}",
        json={"password": "rotated-pass-1"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    entry = db.query(AuditLog).filter(AuditLog.action == AuditAction.UPDATE_USER).one()
    assert '"password_changed": true' in entry.new_values
    assert "rotated-pass-1" not in entry.new_values


def test_admin_cannot_delete_self(client, db, admin_user):
    response = client.delete(f"/api/v1/admin/users/{admin_user.id}", headers=auth_headers(admin_user))

    assert response.status_code == 403
    assert db.query(User).filter(User.id == admin_user.id).count() == 1


def test_delete_other_user(client, db, admin_user):
    target = make_user(db, "dave", [USER_ROLE])
    target_id = target.id

    response = client.delete(f"/api/v1/admin/users/{target_id}", headers=auth_headers(admin_user))

    assert response.status_code == 204
    assert db.query(User).filter(User.id == target_id).count() == 0
    entry = db.query(AuditLog).filter(AuditLog.action == AuditAction.DELETE_USER).one()
    assert entry.resource_id == str(target_id)


def test_role_in_use_cannot_be_deleted(client, db, admin_user):
    make_user(db, "erin", [USER_ROLE])
    role_id = _role_id(db, USER_ROLE)

    response = client.delete(f"/api/v1/admin/roles/{role_id}", headers=auth_headers(admin_user))

    assert response.status_code == 403
    assert response.json()["details"]["assigned_users"] == 1
    assert db.query(Role).filter(Role.id == role_id).count() == 1


def test_unused_role_can_be_deleted(client, db, admin_user):
    created = client.post(
        "/api/v1/admin/roles",
        json={"name": "Auditor", "description": "Read-only audit access"},
        headers=auth_headers(admin_user),
    )
    assert created.status_code == 201
    role_id = created.json()["id"]

    response = client.delete(f"/api/v1/admin/roles/{role_id}", headers=auth_headers(admin_user))

    assert response.status_code == 204
    assert db.query(Role).filter(Role.id == role_id).count() == 0


def test_duplicate_role_name_is_409(client, admin_user):
    response = client.post(
        "/api/v1/admin/roles",
        json={"name": USER_ROLE},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 409


def test_audit_log_listing_is_newest_first(client, db, admin_user):
    make_user(db, "frank")
    for name in ("Auditor", "Reviewer"):
        client.post("/api/v1/admin/roles", json={"name": name}, headers=auth_headers(admin_user))

    response = client.get(
        "/api/v1/admin/audit-logs",
        params={"action": AuditAction.CREATE_ROLE},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 2
    assert [entry["new_values"]["name"] for entry in body["data"]] == ["Reviewer", "Auditor"]
    assert body["data"][0]["username"] == admin_user.username


def test_dashboard_stats(client, admin_user):
    response = client.get("/api/v1/admin/dashboard/stats", headers=auth_headers(admin_user))
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_users"] == 1
    assert stats["total_roles"] == 4


def test_oversized_password_on_update_is_422(client, db, admin_user):
    target = make_user(db, "dora", [USER_ROLE])
    old_hash = target.password_hash

    response = client.put(
        f"/api/v1/admin/users/{target.id}",
        json={"password": "p" * 73},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 422
    db.refresh(target)
    assert target.password_hash == old_hash


def test_explicit_null_on_required_field_is_422(client, db, admin_user):
    target = make_user(db, "eliot", [USER_ROLE])

    for field in ("email", "username", "is_active", "is_verified"):
        response = client.put(
            f"/api/v1/admin/users/{target.id}",
            json={field: None},
            headers=auth_headers(admin_user),
        )
        assert response.status_code == 422, field

    db.refresh(target)
    assert target.email == "eliot@example.com"
    assert target.is_active is True


def test_null_optional_profile_field_is_cleared(client, db, admin_user):
    target = make_user(db, "fern", [USER_ROLE])
    target.first_name = "Fern"
    db.commit()

    response = client.put(
        f"/api/v1/admin/users/{target.id}",
        json={"first_name": None},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    assert response.json()["first_name"] is None
