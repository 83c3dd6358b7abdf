from servicedesk.core.permissions import TECHNICIAN_ROLE, USER_ROLE
from servicedesk.models.asset import Asset

from conftest import auth_headers, make_user

ASSETS = "/api/v1/inventory/assets"


def _create(client, user, **fields):
    payload = {"name": "ThinkPad T14", "category": "Laptops"}
    payload.update(fields)
    return client.post(ASSETS, json=payload, headers=auth_headers(user))


def test_create_generates_tag_from_category(client, admin_user):
    response = _create(client, admin_user)

    assert response.status_code == 201
    body = response.json()
    assert body["asset_tag"].startswith("LAP-")
    assert body["status"] == "AVAILABLE"
    assert body["created_by_id"] == admin_user.id


def test_duplicate_tag_is_409(client, admin_user):
    assert _create(client, admin_user, asset_tag="HW-0001").status_code == 201
    assert _create(client, admin_user, asset_tag="HW-0001").status_code == 409


def test_assign_and_unassign(client, db, admin_user):
    employee = make_user(db, "quinn", [USER_ROLE])
    tech = make_user(db, "ravi", [TECHNICIAN_ROLE])
    asset_id = _create(client, admin_user).json()["id"]

    assigned = client.put(
        f"{ASSETS}/{asset_id}/assign",
        json={"assigned_to_id": employee.id, "notes": "New starter"},
        headers=auth_headers(tech),
    )
    assert assigned.status_code == 200
    assert assigned.json()["status"] == "ASSIGNED"
    assert assigned.json()["assigned_to_id"] == employee.id

    released = client.put(f"{ASSETS}/{asset_id}/unassign", headers=auth_headers(tech))
    assert released.status_code == 200
    assert released.json()["status"] == "AVAILABLE"
    assert released.json()["assigned_to_id"] is None


def test_assigning_unavailable_asset_is_400(client, db, admin_user):
    employee = make_user(db, "sara", [USER_ROLE])
    asset_id = _create(client, admin_user).json()["id"]
    client.put(f"{ASSETS}/{asset_id}", json={"status": "MAINTENANCE"}, headers=auth_headers(admin_user))

    response = client.put(
        f"{ASSETS}/{asset_id}/assign",
        json={"assigned_to_id": employee.id},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 400
    assert db.query(Asset).filter(Asset.id == asset_id).one().assigned_to_id is None


def test_assign_to_unknown_user_is_404(client, admin_user):
    asset_id = _create(client, admin_user).json()["id"]
    response = client.put(
        f"{ASSETS}/{asset_id}/assign",
        json={"assigned_to_id": 9999},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 404


def test_status_cannot_be_set_to_assigned_directly(client, admin_user):
    asset_id = _create(client, admin_user).json()["id"]
    response = client.put(f"{ASSETS}/{asset_id}", json={"status": "ASSIGNED"}, headers=auth_headers(admin_user))
    assert response.status_code == 400


def test_plain_user_can_read_but_not_assign(client, db, admin_user, plain_user):
    asset_id = _create(client, admin_user).json()["id"]

    assert client.get(f"{ASSETS}/{asset_id}", headers=auth_headers(plain_user)).status_code == 200
    response = client.put(
        f"{ASSETS}/{asset_id}/assign",
        json={"assigned_to_id": plain_user.id},
        headers=auth_headers(plain_user),
    )
    assert response.status_code == 403


def test_list_filters_and_stats(client, admin_user):
    _create(client, admin_user, name="Monitor", category="Displays")
    _create(client, admin_user)

    listed = client.get(ASSETS, params={"category": "Displays"}, headers=auth_headers(admin_user)).json()
    assert [asset["name"] for asset in listed["data"]] == ["Monitor"]

    stats = client.get("/api/v1/inventory/stats", headers=auth_headers(admin_user)).json()
    assert stats["total_assets"] == 2
    assert stats["available_assets"] == 2
