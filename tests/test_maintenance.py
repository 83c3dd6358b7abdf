from datetime import timedelta

from servicedesk.core.permissions import TECHNICIAN_ROLE
from servicedesk.core.security import utcnow
from servicedesk.models.asset import MaintenanceSchedule
from servicedesk.models.audit import AuditLog
from servicedesk.services.audit_service import AuditAction

from conftest import auth_headers, make_user

ASSETS = "/api/v1/inventory/assets"
MAINTENANCE = "/api/v1/inventory/maintenance"


def _asset(client, user, **fields):
    payload = {"name": "Core switch", "category": "Network", "location": "Rack 2"}
    payload.update(fields)
    return client.post(ASSETS, json=payload, headers=auth_headers(user)).json()["id"]


def _schedule(client, user, asset_id, days=7, **fields):
    payload = {
        "asset_id": asset_id,
        "type": "PREVENTIVE",
        "title": "Firmware update",
        "scheduled_date": (utcnow() + timedelta(days=days)).isoformat(),
    }
    payload.update(fields)
    return client.post(MAINTENANCE, json=payload, headers=auth_headers(user))


def test_technician_schedules_maintenance(client, db, admin_user):
    tech = make_user(db, "tomas", [TECHNICIAN_ROLE])
    asset_id = _asset(client, admin_user)

    response = _schedule(client, tech, asset_id, assigned_to_id=tech.id)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "SCHEDULED"
    assert body["created_by_id"] == tech.id
    assert body["completed_date"] is None
    entry = db.query(AuditLog).filter(AuditLog.action == AuditAction.SCHEDULE_MAINTENANCE).one()
    assert entry.resource_id == str(body["id"])


def test_unknown_asset_is_404(client, admin_user):
    assert _schedule(client, admin_user, 9999).status_code == 404


def test_retired_asset_cannot_be_scheduled(client, db, admin_user):
    asset_id = _asset(client, admin_user)
    client.put(f"{ASSETS}/{asset_id}", json={"status": "RETIRED"}, headers=auth_headers(admin_user))

    response = _schedule(client, admin_user, asset_id)

    assert response.status_code == 400
    assert db.query(MaintenanceSchedule).count() == 0


def test_plain_user_cannot_schedule(client, admin_user, plain_user):
    asset_id = _asset(client, admin_user)

    assert _schedule(client, plain_user, asset_id).status_code == 403
    assert client.get(MAINTENANCE, headers=auth_headers(plain_user)).status_code == 403


def test_list_is_ordered_and_upcoming_skips_past_and_closed_jobs(client, admin_user):
    asset_id = _asset(client, admin_user)
    later = _schedule(client, admin_user, asset_id, days=20, title="Replace fans").json()["id"]
    sooner = _schedule(client, admin_user, asset_id, days=3).json()["id"]
    _schedule(client, admin_user, asset_id, days=-2, title="Missed inspection", type="INSPECTION")
    _schedule(client, admin_user, asset_id, days=5, title="Already done", status="COMPLETED")

    listed = client.get(MAINTENANCE, params={"asset_id": asset_id}, headers=auth_headers(admin_user)).json()
    assert len(listed) == 4
    assert listed[0]["title"] == "Missed inspection"

    upcoming = client.get(MAINTENANCE, params={"upcoming": True}, headers=auth_headers(admin_user)).json()
    assert [job["id"] for job in upcoming] == [sooner, later]


def test_completing_stamps_completed_date_and_locks_the_job(client, db, admin_user):
    asset_id = _asset(client, admin_user)
    job_id = _schedule(client, admin_user, asset_id).json()["id"]

    done = client.put(
        f"{MAINTENANCE}/{job_id}",
        json={"status": "COMPLETED", "notes": "Flashed 9.1"},
        headers=auth_headers(admin_user),
    )
    assert done.status_code == 200
    assert done.json()["completed_date"] is not None
    assert done.json()["notes"] == "Flashed 9.1"

    locked = client.put(f"{MAINTENANCE}/{job_id}", json={"notes": "Late edit"}, headers=auth_headers(admin_user))
    assert locked.status_code == 400

    reopened = client.put(f"{MAINTENANCE}/{job_id}", json={"status": "IN_PROGRESS"}, headers=auth_headers(admin_user))
    assert reopened.status_code == 200
    assert reopened.json()["completed_date"] is None
    assert db.query(AuditLog).filter(AuditLog.action == AuditAction.UPDATE_MAINTENANCE).count() == 2


def test_update_unknown_schedule_is_404(client, admin_user):
    response = client.put(f"{MAINTENANCE}/9999", json={"notes": "x"}, headers=auth_headers(admin_user))
    assert response.status_code == 404


def test_stats_count_upcoming_maintenance(client, admin_user):
    asset_id = _asset(client, admin_user)
    _schedule(client, admin_user, asset_id, days=10)
    _schedule(client, admin_user, asset_id, days=45)

    stats = client.get("/api/v1/inventory/stats", headers=auth_headers(admin_user)).json()

    assert stats["upcoming_maintenance"] == 1


def test_asset_categories_and_locations(client, admin_user, plain_user):
    _asset(client, admin_user)
    _asset(client, admin_user, name="Edge router")
    _asset(client, admin_user, name="ThinkPad", category="Laptops", location="HQ")

    categories = client.get("/api/v1/inventory/categories", headers=auth_headers(plain_user))
    assert categories.status_code == 200
    assert categories.json() == [{"name": "Laptops", "count": 1}, {"name": "Network", "count": 2}]

    locations = client.get("/api/v1/inventory/locations", headers=auth_headers(plain_user)).json()
    assert locations == [{"name": "HQ", "count": 1}, {"name": "Rack 2", "count": 2}]
