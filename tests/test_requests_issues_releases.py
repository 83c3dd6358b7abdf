from servicedesk.core.permissions import TECHNICIAN_ROLE, USER_ROLE
from servicedesk.models.audit import AuditLog
from servicedesk.models.service_request import RequestComment
from servicedesk.services.audit_service import AuditAction

from conftest import auth_headers, make_user


def _open_request(client, user):
    response = client.post(
        "/api/v1/requests",
        json={"title": "New monitor", "description": "Second screen for design work", "type": "EQUIPMENT_REQUEST"},
        headers=auth_headers(user),
    )
    assert response.status_code == 201
    return response.json()


def _report_issue(client, user, **fields):
    payload = {"title": "VPN drops", "description": "Disconnects every hour", "type": "BUG"}
    payload.update(fields)
    response = client.post("/api/v1/issues", json=payload, headers=auth_headers(user))
    assert response.status_code == 201
    return response.json()


def test_request_lifecycle(client, db, admin_user, plain_user):
    tech = make_user(db, "tara", [TECHNICIAN_ROLE])
    request = _open_request(client, plain_user)
    assert request["status"] == "PENDING"
    assert request["requester_id"] == plain_user.id

    assigned = client.post(
        f"/api/v1/requests/{request['id']}/assign",
        json={"assignee_id": tech.id, "notes": "Taking this one"},
        headers=auth_headers(admin_user),
    )
    assert assigned.status_code == 200
    assert assigned.json()["status"] == "IN_PROGRESS"

    completed = client.put(
        f"/api/v1/requests/{request['id']}/status",
        json={"status": "COMPLETED", "notes": "Delivered"},
        headers=auth_headers(tech),
    )
    assert completed.status_code == 200
    assert completed.json()["closed_at"] is not None

    comments = client.get(f"/api/v1/requests/{request['id']}/comments", headers=auth_headers(plain_user)).json()
    contents = {comment["content"] for comment in comments}
    assert "Status updated to COMPLETED: Delivered" in contents
    assert "Assigned: Taking this one" in contents


def test_in_progress_request_cannot_be_deleted(client, db, admin_user, plain_user):
    tech = make_user(db, "uma", [TECHNICIAN_ROLE])
    request = _open_request(client, plain_user)
    client.post(
        f"/api/v1/requests/{request['id']}/assign",
        json={"assignee_id": tech.id},
        headers=auth_headers(admin_user),
    )

    response = client.delete(f"/api/v1/requests/{request['id']}", headers=auth_headers(admin_user))

    assert response.status_code == 400


def test_requester_can_comment(client, db, plain_user):
    request = _open_request(client, plain_user)

    response = client.post(
        f"/api/v1/requests/{request['id']}/comments",
        json={"content": "Any update?"},
        headers=auth_headers(plain_user),
    )

    assert response.status_code == 201
    assert db.query(RequestComment).filter(RequestComment.author_id == plain_user.id).count() == 1
    assert db.query(AuditLog).filter(AuditLog.action == AuditAction.ADD_REQUEST_COMMENT).count() == 1


def test_issue_labels(client, db, admin_user):
    issue = _report_issue(client, admin_user, labels=["network"])
    url = f"/api/v1/issues/{issue['id']}/labels"

    added = client.post(url, json={"label": "vpn"}, headers=auth_headers(admin_user))
    assert added.json()["labels"] == ["network", "vpn"]

    again = client.post(url, json={"label": "vpn"}, headers=auth_headers(admin_user))
    assert again.json()["labels"] == ["network", "vpn"]
    assert db.query(AuditLog).filter(AuditLog.action == AuditAction.ADD_ISSUE_LABEL).count() == 1

    removed = client.delete(f"{url}/network", headers=auth_headers(admin_user))
    assert removed.json()["labels"] == ["vpn"]
    assert client.delete(f"{url}/network", headers=auth_headers(admin_user)).status_code == 404

    filtered = client.get("/api/v1/issues", params={"label": "vpn"}, headers=auth_headers(admin_user)).json()
    assert [row["id"] for row in filtered["data"]] == [issue["id"]]


def test_issue_close_and_reopen(client, admin_user):
    issue = _report_issue(client, admin_user)
    url = f"/api/v1/issues/{issue['id']}/status"

    closed = client.put(url, json={"status": "CLOSED"}, headers=auth_headers(admin_user)).json()
    assert closed["closed_at"] is not None

    reopened = client.put(url, json={"status": "OPEN"}, headers=auth_headers(admin_user)).json()
    assert reopened["closed_at"] is None


def test_plain_user_cannot_delete_issue(client, plain_user):
    issue = _report_issue(client, plain_user)
    response = client.delete(f"/api/v1/issues/{issue['id']}", headers=auth_headers(plain_user))
    assert response.status_code == 403


def test_duplicate_release_version_is_409(client, admin_user):
    payload = {"version": "2.4.0", "title": "Spring update", "release_date": "2026-04-01T00:00:00"}

    assert client.post("/api/v1/releases", json=payload, headers=auth_headers(admin_user)).status_code == 201
    assert client.post("/api/v1/releases", json=payload, headers=auth_headers(admin_user)).status_code == 409


def test_release_issue_links(client, admin_user):
    issue = _report_issue(client, admin_user)
    release = client.post(
        "/api/v1/releases",
        json={"version": "2.5.0", "title": "Fixes", "release_date": "2026-05-01T00:00:00"},
        headers=auth_headers(admin_user),
    ).json()
    url = f"/api/v1/releases/{release['id']}/issues"

    linked = client.post(url, json={"issue_id": issue["id"]}, headers=auth_headers(admin_user))
    assert linked.status_code == 200
    assert [row["id"] for row in linked.json()["issues"]] == [issue["id"]]

    assert client.post(url, json={"issue_id": issue["id"]}, headers=auth_headers(admin_user)).status_code == 409
    assert client.post(url, json={"issue_id": 9999}, headers=auth_headers(admin_user)).status_code == 404

    unlinked = client.delete(f"{url}/{issue['id']}", headers=auth_headers(admin_user))
    assert unlinked.json()["issues"] == []
    assert client.delete(f"{url}/{issue['id']}", headers=auth_headers(admin_user)).status_code == 404


def test_label_filter_matches_whole_labels_and_paginates(client, admin_user):
    first = _report_issue(client, admin_user, title="Printer jam", labels=["hardware", "printer"])
    _report_issue(client, admin_user, title="Laser printers", labels=["printers"])
    third = _report_issue(client, admin_user, title="Printer driver", labels=["printer"])

    page = client.get(
        "/api/v1/issues", params={"label": "printer", "limit": 1}, headers=auth_headers(admin_user)
    ).json()

    assert page["pagination"]["total"] == 2
    assert [row["id"] for row in page["data"]] == [third["id"]]

    second_page = client.get(
        "/api/v1/issues", params={"label": "printer", "limit": 1, "page": 2}, headers=auth_headers(admin_user)
    ).json()
    assert [row["id"] for row in second_page["data"]] == [first["id"]]


def test_my_requests_and_assigned_to_me_are_scoped_to_the_caller(client, db, admin_user, plain_user):
    tech = make_user(db, "uma", [TECHNICIAN_ROLE])
    colleague = make_user(db, "victor", [USER_ROLE])
    mine = _open_request(client, plain_user)
    _open_request(client, colleague)
    client.post(
        f"/api/v1/requests/{mine['id']}/assign",
        json={"assignee_id": tech.id},
        headers=auth_headers(admin_user),
    )

    own = client.get("/api/v1/requests/my-requests", headers=auth_headers(plain_user))
    assert own.status_code == 200
    assert [r["id"] for r in own.json()["data"]] == [mine["id"]]

    assigned = client.get("/api/v1/requests/assigned-to-me", headers=auth_headers(tech)).json()
    assert [r["id"] for r in assigned["data"]] == [mine["id"]]

    filtered = client.get(
        "/api/v1/requests/assigned-to-me", params={"status": "PENDING"}, headers=auth_headers(tech)
    ).json()
    assert filtered["data"] == []
    assert client.get("/api/v1/requests/assigned-to-me", headers=auth_headers(colleague)).json()["data"] == []


def test_null_on_required_request_and_issue_fields_is_ignored(client, admin_user, plain_user):
    request = _open_request(client, plain_user)
    updated = client.put(
        f"/api/v1/requests/{request['id']}",
        json={"title": None, "priority": None, "department": "Design"},
        headers=auth_headers(admin_user),
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "New monitor"
    assert updated.json()["priority"] == request["priority"]
    assert updated.json()["department"] == "Design"

    issue = _report_issue(client, admin_user)
    patched = client.patch(
        f"/api/v1/issues/{issue['id']}",
        json={"title": None, "type": None},
        headers=auth_headers(admin_user),
    )
    assert patched.status_code == 200
    assert patched.json()["title"] == "VPN drops"
    assert patched.json()["type"] == "BUG"
