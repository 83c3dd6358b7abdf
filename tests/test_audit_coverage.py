from datetime import datetime, timedelta

import pytest

from servicedesk.core.security import utcnow
from servicedesk.models.audit import AuditLog
from servicedesk.models.warehouse import StockAlert
from servicedesk.schemas.asset import (
    AssetCreate,
    AssetUpdate,
    MaintenanceCreate,
    MaintenanceStatus,
    MaintenanceType,
    MaintenanceUpdate,
)
from servicedesk.schemas.issue import IssueCreate, IssueStatus, IssueType, IssueUpdate, ReleaseCreate, ReleaseUpdate
from servicedesk.schemas.role import RoleCreate, RoleUpdate
from servicedesk.schemas.service_request import CommentCreate, RequestCreate, RequestStatus, RequestType, RequestUpdate
from servicedesk.schemas.user import UserCreate, UserUpdate
from servicedesk.schemas.warehouse import (
    InventoryItemCreate,
    InventoryItemUpdate,
    StockMovementCreate,
    StockMovementType,
)
from servicedesk.services.audit_service import AuditAction
from servicedesk.services.asset_service import asset_service
from servicedesk.services.issue_service import issue_service
from servicedesk.services.release_service import release_service
from servicedesk.services.request_service import request_service
from servicedesk.services.role_service import role_service
from servicedesk.services.user_service import user_service
from servicedesk.services.warehouse_service import warehouse_service


def _request(db, actor):
    return request_service.create_request(
        db, RequestCreate(title="Headset", description="Broken mic", type=RequestType.EQUIPMENT_REQUEST), actor.id
    ).id


def _issue(db, actor):
    return issue_service.create_issue(
        db, IssueCreate(title="SSO loop", description="Redirects forever", type=IssueType.BUG), actor.id
    ).id


def _release(db, actor):
    return release_service.create_release(
        db, ReleaseCreate(version="3.0.0", title="Q3", release_date=datetime(2026, 9, 1)), actor.id
    ).id


def _item(db, actor):
    return warehouse_service.create_item(
        db, InventoryItemCreate(name="USB cables", current_stock=0, min_stock_level=0), actor.id
    ).id


def _role(db, actor):
    return role_service.create_role(db, RoleCreate(name="Auditors"), actor.id).id


def _asset(db, actor):
    return asset_service.create_asset(db, AssetCreate(name="Core switch", category="Network"), actor.id).id


def _assigned_asset(db, actor):
    asset_id = _asset(db, actor)
    asset_service.assign_asset(db, asset_id, actor.id, actor.id)
    return asset_id


def _user(db, actor):
    return user_service.create_user(
        db, UserCreate(email="dana@example.com", username="dana", password="password123"), actor.id
    ).id


def _labelled_issue(db, actor):
    issue_id = _issue(db, actor)
    issue_service.add_label(db, issue_id, "network", actor.id)
    return issue_id


def _open_alert(db, actor):
    item = warehouse_service.create_item(
        db, InventoryItemCreate(name="Toner", current_stock=1, min_stock_level=5), actor.id
    )
    return db.query(StockAlert).filter(StockAlert.inventory_item_id == item.id).one().id


def _maintenance(db, actor):
    asset_id = _asset(db, actor)
    return asset_service.schedule_maintenance(
        db,
        MaintenanceCreate(
            asset_id=asset_id,
            type=MaintenanceType.PREVENTIVE,
            title="Firmware update",
            scheduled_date=utcnow() + timedelta(days=7),
        ),
        actor.id,
    ).id


def _release_with_issue(db, actor):
    release_id = _release(db, actor)
    issue_id = _issue(db, actor)
    release_service.add_issue(db, release_id, issue_id, actor.id)
    return release_id, issue_id


def _release_and_issue(db, actor):
    return _release(db, actor), _issue(db, actor)


# (expected action, setup returning the target id, operation returning the audited resource id)
CASES = {
    "create_request": (
        AuditAction.CREATE_REQUEST,
        lambda db, actor: None,
        lambda db, actor, _: _request(db, actor),
    ),
    "update_request": (
        AuditAction.UPDATE_REQUEST,
        _request,
        lambda db, actor, rid: request_service.update_request(db, rid, RequestUpdate(title="Headset v2"), actor.id).id,
    ),
    "delete_request": (
        AuditAction.DELETE_REQUEST,
        _request,
        lambda db, actor, rid: request_service.delete_request(db, rid, actor.id) or rid,
    ),
    "assign_request": (
        AuditAction.ASSIGN_REQUEST,
        _request,
        lambda db, actor, rid: request_service.assign_request(db, rid, actor.id, actor.id).id,
    ),
    "request_status": (
        AuditAction.UPDATE_REQUEST_STATUS,
        _request,
        lambda db, actor, rid: request_service.update_status(db, rid, RequestStatus.COMPLETED, actor.id).id,
    ),
    "comment_on_request": (
        AuditAction.ADD_REQUEST_COMMENT,
        _request,
        lambda db, actor, rid: request_service.add_comment(db, rid, CommentCreate(content="On it"), actor.id).request_id,
    ),
    "create_issue": (
        AuditAction.CREATE_ISSUE,
        lambda db, actor: None,
        lambda db, actor, _: _issue(db, actor),
    ),
    "update_issue": (
        AuditAction.UPDATE_ISSUE,
        _issue,
        lambda db, actor, iid: issue_service.update_issue(db, iid, IssueUpdate(title="SSO redirect loop"), actor.id).id,
    ),
    "delete_issue": (
        AuditAction.DELETE_ISSUE,
        _issue,
        lambda db, actor, iid: issue_service.delete_issue(db, iid, actor.id) or iid,
    ),
    "assign_issue": (
        AuditAction.ASSIGN_ISSUE,
        _issue,
        lambda db, actor, iid: issue_service.assign_issue(db, iid, actor.id, actor.id).id,
    ),
    "issue_status": (
        AuditAction.UPDATE_ISSUE_STATUS,
        _issue,
        lambda db, actor, iid: issue_service.update_status(db, iid, IssueStatus.RESOLVED, actor.id).id,
    ),
    "add_issue_label": (
        AuditAction.ADD_ISSUE_LABEL,
        _issue,
        lambda db, actor, iid: issue_service.add_label(db, iid, "network", actor.id).id,
    ),
    "remove_issue_label": (
        AuditAction.REMOVE_ISSUE_LABEL,
        _labelled_issue,
        lambda db, actor, iid: issue_service.remove_label(db, iid, "network", actor.id).id,
    ),
    "create_release": (
        AuditAction.CREATE_RELEASE,
        lambda db, actor: None,
        lambda db, actor, _: _release(db, actor),
    ),
    "update_release": (
        AuditAction.UPDATE_RELEASE,
        _release,
        lambda db, actor, rid: release_service.update_release(db, rid, ReleaseUpdate(title="Q3 final"), actor.id).id,
    ),
    "delete_release": (
        AuditAction.DELETE_RELEASE,
        _release,
        lambda db, actor, rid: release_service.delete_release(db, rid, actor.id) or rid,
    ),
    "link_release_issue": (
        AuditAction.ADD_RELEASE_ISSUE,
        _release_and_issue,
        lambda db, actor, ids: release_service.add_issue(db, ids[0], ids[1], actor.id).id,
    ),
    "unlink_release_issue": (
        AuditAction.REMOVE_RELEASE_ISSUE,
        _release_with_issue,
        lambda db, actor, ids: release_service.remove_issue(db, ids[0], ids[1], actor.id).id,
    ),
    "create_item": (
        AuditAction.CREATE_INVENTORY_ITEM,
        lambda db, actor: None,
        lambda db, actor, _: _item(db, actor),
    ),
    "update_item": (
        AuditAction.UPDATE_INVENTORY_ITEM,
        _item,
        lambda db, actor, iid: warehouse_service.update_item(db, iid, InventoryItemUpdate(location="Shelf B"), actor.id).id,
    ),
    "delete_item": (
        AuditAction.DELETE_INVENTORY_ITEM,
        _item,
        lambda db, actor, iid: warehouse_service.delete_item(db, iid, actor.id) or iid,
    ),
    "adjust_stock": (
        AuditAction.ADJUST_STOCK,
        _item,
        lambda db, actor, iid: warehouse_service.adjust_stock(
            db, iid, StockMovementCreate(type=StockMovementType.STOCK_IN, quantity=25), actor.id
        ).id,
    ),
    "create_asset": (
        AuditAction.CREATE_ASSET,
        lambda db, actor: None,
        lambda db, actor, _: _asset(db, actor),
    ),
    "update_asset": (
        AuditAction.UPDATE_ASSET,
        _asset,
        lambda db, actor, aid: asset_service.update_asset(db, aid, AssetUpdate(location="Rack 4"), actor.id).id,
    ),
    "delete_asset": (
        AuditAction.DELETE_ASSET,
        _asset,
        lambda db, actor, aid: asset_service.delete_asset(db, aid, actor.id) or aid,
    ),
    "assign_asset": (
        AuditAction.ASSIGN_ASSET,
        _asset,
        lambda db, actor, aid: asset_service.assign_asset(db, aid, actor.id, actor.id).id,
    ),
    "unassign_asset": (
        AuditAction.UNASSIGN_ASSET,
        _assigned_asset,
        lambda db, actor, aid: asset_service.unassign_asset(db, aid, actor.id).id,
    ),
    "schedule_maintenance": (
        AuditAction.SCHEDULE_MAINTENANCE,
        lambda db, actor: None,
        lambda db, actor, _: _maintenance(db, actor),
    ),
    "update_maintenance": (
        AuditAction.UPDATE_MAINTENANCE,
        _maintenance,
        lambda db, actor, mid: asset_service.update_maintenance(
            db, mid, MaintenanceUpdate(status=MaintenanceStatus.COMPLETED), actor.id
        ).id,
    ),
    "resolve_stock_alert": (
        AuditAction.RESOLVE_STOCK_ALERT,
        _open_alert,
        lambda db, actor, aid: warehouse_service.resolve_alert(db, aid, actor.id).id,
    ),
    "create_role": (
        AuditAction.CREATE_ROLE,
        lambda db, actor: None,
        lambda db, actor, _: _role(db, actor),
    ),
    "update_role": (
        AuditAction.UPDATE_ROLE,
        _role,
        lambda db, actor, rid: role_service.update_role(db, rid, RoleUpdate(description="Read-only audit"), actor.id).id,
    ),
    "delete_role": (
        AuditAction.DELETE_ROLE,
        _role,
        lambda db, actor, rid: role_service.delete_role(db, rid, actor.id) or rid,
    ),
    "create_user": (
        AuditAction.CREATE_USER,
        lambda db, actor: None,
        lambda db, actor, _: _user(db, actor),
    ),
    "update_user": (
        AuditAction.UPDATE_USER,
        _user,
        lambda db, actor, uid: user_service.update_user(db, uid, UserUpdate(first_name="Dana"), actor.id).id,
    ),
    "delete_user": (
        AuditAction.DELETE_USER,
        _user,
        lambda db, actor, uid: user_service.delete_user(db, uid, actor.id) or uid,
    ),
}


@pytest.mark.parametrize("case", sorted(CASES))
def test_mutation_writes_one_matching_audit_entry(db, admin_user, case):
    action, setup, operation = CASES[case]
    target = setup(db, admin_user)
    before = db.query(AuditLog.id).order_by(AuditLog.id.desc()).first()
    last_id = before[0] if before else 0

    resource_id = operation(db, admin_user, target)

    entries = db.query(AuditLog).filter(AuditLog.id > last_id).all()
    assert len(entries) == 1
    assert entries[0].action == action
    assert entries[0].resource_id == str(resource_id)
    assert entries[0].user_id == admin_user.id
