import json

import pytest
from sqlalchemy.exc import OperationalError

from servicedesk.core.exceptions import InvalidStateError
from servicedesk.models.asset import Asset
from servicedesk.models.audit import AuditLog
from servicedesk.schemas.asset import AssetCreate, AssetUpdate
from servicedesk.services.asset_service import asset_service
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service, serialize_snapshot


def test_each_mutation_writes_exactly_one_entry(db, admin_user):
    asset = asset_service.create_asset(db, AssetCreate(name="Dock", category="Peripherals"), admin_user.id)
    asset_service.update_asset(db, asset.id, AssetUpdate(location="HQ-2"), admin_user.id)
    asset_service.delete_asset(db, asset.id, admin_user.id)

    entries = db.query(AuditLog).order_by(AuditLog.id).all()
    assert [entry.action for entry in entries] == [
        AuditAction.CREATE_ASSET,
        AuditAction.UPDATE_ASSET,
        AuditAction.DELETE_ASSET,
    ]
    assert all(entry.resource_type == ResourceType.ASSET for entry in entries)
    assert all(entry.resource_id == str(asset.id) for entry in entries)

    update_entry = entries[1]
    assert json.loads(update_entry.old_values)["location"] is None
    assert json.loads(update_entry.new_values)["location"] == "HQ-2"


def test_rejected_mutation_writes_nothing(db, admin_user):
    asset = asset_service.create_asset(db, AssetCreate(name="Dock"), admin_user.id)
    asset_service.assign_asset(db, asset.id, admin_user.id, admin_user.id)
    before = db.query(AuditLog).count()

    with pytest.raises(InvalidStateError):
        asset_service.delete_asset(db, asset.id, admin_user.id)

    assert db.query(AuditLog).count() == before


def test_entries_cannot_be_updated(db, admin_user):
    entry = audit_service.record(
        db, actor_id=admin_user.id, action="TEST", resource_type="TEST", resource_id=1
    )
    entry.action = "TAMPERED"

    with pytest.raises(RuntimeError):
        db.commit()
    db.rollback()


def test_entries_cannot_be_deleted(db, admin_user):
    entry = audit_service.record(
        db, actor_id=admin_user.id, action="TEST", resource_type="TEST", resource_id=1
    )
    db.delete(entry)

    with pytest.raises(RuntimeError):
        db.commit()
    db.rollback()
    assert db.query(AuditLog).count() == 1


def test_audit_failure_keeps_business_change(db, admin_user, monkeypatch):
    original_commit = db.commit

    def failing_commit():
        if any(isinstance(obj, AuditLog) for obj in db.new):
            raise OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))
        return original_commit()

    monkeypatch.setattr(db, "commit", failing_commit)

    asset = asset_service.create_asset(db, AssetCreate(name="Webcam"), admin_user.id)

    monkeypatch.undo()
    assert db.query(Asset).filter(Asset.id == asset.id).count() == 1
    assert db.query(AuditLog).count() == 0


def test_snapshot_serialisation_is_stable():
    first = serialize_snapshot({"b": 1, "a": "x"})
    second = serialize_snapshot({"a": "x", "b": 1})
    assert first == second == '{"a": "x", "b": 1}'
    assert serialize_snapshot(None) is None
