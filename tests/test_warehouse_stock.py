from datetime import timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import update
from sqlalchemy.sql.dml import Update

from servicedesk.core.exceptions import ConcurrentModificationError, InsufficientStockError
from servicedesk.core.security import utcnow
from servicedesk.models.warehouse import InventoryItem, StockAlert, StockMovement
from servicedesk.schemas.warehouse import InventoryItemCreate, StockMovementCreate, StockMovementType
from servicedesk.services.warehouse_service import apply_movement, warehouse_service

from conftest import auth_headers


def _item(db, actor, stock=10, min_level=2, name="Printer toner"):
    return warehouse_service.create_item(
        db,
        InventoryItemCreate(name=name, category="Consumables", current_stock=stock, min_stock_level=min_level),
        actor.id,
    )


def test_apply_movement_arithmetic():
    assert apply_movement(10, StockMovementType.STOCK_IN, 5) == (15, 5)
    assert apply_movement(10, StockMovementType.STOCK_OUT, 4) == (6, 4)
    assert apply_movement(10, StockMovementType.ADJUSTMENT, 7) == (7, 3)
    assert apply_movement(10, StockMovementType.ADJUSTMENT, 12) == (12, 2)
    with pytest.raises(InsufficientStockError):
        apply_movement(10, StockMovementType.STOCK_OUT, 11)


def test_create_item_records_initial_stock(db, admin_user):
    item = _item(db, admin_user)

    assert item.sku.startswith("PRI-")
    movement = db.query(StockMovement).filter(StockMovement.inventory_item_id == item.id).one()
    assert movement.type == "STOCK_IN"
    assert movement.quantity == 10
    assert movement.reason == "Initial stock"


def test_stock_in_over_http(client, db, admin_user):
    item = _item(db, admin_user)

    response = client.put(
        f"/api/v1/warehouse/items/{item.id}/stock",
        json={"type": "STOCK_IN", "quantity": 5, "reason": "Delivery"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    assert response.json()["current_stock"] == 15
    latest = db.query(StockMovement).order_by(StockMovement.id.desc()).first()
    assert (latest.previous_stock, latest.new_stock, latest.quantity) == (10, 15, 5)


def test_stock_out_beyond_stock_is_rejected(client, db, admin_user):
    item = _item(db, admin_user)

    response = client.put(
        f"/api/v1/warehouse/items/{item.id}/stock",
        json={"type": "STOCK_OUT", "quantity": 20},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 400
    db.refresh(item)
    assert item.current_stock == 10
    assert db.query(StockMovement).filter(StockMovement.inventory_item_id == item.id).count() == 1


def test_adjustment_records_absolute_difference(db, admin_user):
    item = _item(db, admin_user)

    warehouse_service.adjust_stock(
        db, item.id, StockMovementCreate(type=StockMovementType.ADJUSTMENT, quantity=7, reason="Count"), admin_user.id
    )

    db.refresh(item)
    assert item.current_stock == 7
    latest = db.query(StockMovement).order_by(StockMovement.id.desc()).first()
    assert latest.type == "ADJUSTMENT"
    assert latest.quantity == 3


def test_low_stock_alert_is_raised_once(db, admin_user):
    item = _item(db, admin_user, stock=10, min_level=5)
    stock_out = StockMovementCreate(type=StockMovementType.STOCK_OUT, quantity=3)

    warehouse_service.adjust_stock(db, item.id, stock_out, admin_user.id)
    assert db.query(StockAlert).count() == 0

    warehouse_service.adjust_stock(db, item.id, stock_out, admin_user.id)
    warehouse_service.adjust_stock(db, item.id, stock_out, admin_user.id)

    alerts = db.query(StockAlert).filter(StockAlert.inventory_item_id == item.id).all()
    assert len(alerts) == 1
    assert alerts[0].resolved is False
    assert alerts[0].current_stock == 4


def test_resolved_alert_allows_a_new_one(db, admin_user):
    item = _item(db, admin_user, stock=3, min_level=5)
    first = db.query(StockAlert).filter(StockAlert.inventory_item_id == item.id).one()

    warehouse_service.resolve_alert(db, first.id, admin_user.id)
    warehouse_service.adjust_stock(
        db, item.id, StockMovementCreate(type=StockMovementType.STOCK_OUT, quantity=1), admin_user.id
    )

    alerts = db.query(StockAlert).filter(StockAlert.inventory_item_id == item.id).order_by(StockAlert.id).all()
    assert [alert.resolved for alert in alerts] == [True, False]


def test_resolving_twice_is_rejected(client, db, admin_user):
    item = _item(db, admin_user, stock=1, min_level=5)
    alert = db.query(StockAlert).filter(StockAlert.inventory_item_id == item.id).one()
    url = f"/api/v1/warehouse/alerts/{alert.id}/resolve"

    assert client.put(url, headers=auth_headers(admin_user)).status_code == 200
    assert client.put(url, headers=auth_headers(admin_user)).status_code == 400


def test_concurrent_write_is_retried(db, admin_user, monkeypatch):
    item = _item(db, admin_user)
    item_id = item.id
    original_execute = db.execute
    state = {"interfered": False}

    def racing_execute(statement, *args, **kwargs):
        if isinstance(statement, Update) and not state["interfered"]:
            state["interfered"] = True
            original_execute(update(InventoryItem).where(InventoryItem.id == item_id).values(current_stock=12))
            db.commit()
        return original_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", racing_execute)

    result = warehouse_service.adjust_stock(
        db, item_id, StockMovementCreate(type=StockMovementType.STOCK_IN, quantity=5), admin_user.id
    )

    assert result.current_stock == 17
    latest = db.query(StockMovement).order_by(StockMovement.id.desc()).first()
    assert (latest.previous_stock, latest.new_stock) == (12, 17)


def test_retries_are_bounded(db, admin_user, monkeypatch):
    item = _item(db, admin_user)
    original_execute = db.execute

    def always_stale(statement, *args, **kwargs):
        if isinstance(statement, Update):
            return SimpleNamespace(rowcount=0)
        return original_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", always_stale)

    with pytest.raises(ConcurrentModificationError):
        warehouse_service.adjust_stock(
            db, item.id, StockMovementCreate(type=StockMovementType.STOCK_IN, quantity=5), admin_user.id
        )

    monkeypatch.undo()
    db.refresh(item)
    assert item.current_stock == 10


def test_item_with_stock_cannot_be_deleted(client, db, admin_user):
    item = _item(db, admin_user)
    response = client.delete(f"/api/v1/warehouse/items/{item.id}", headers=auth_headers(admin_user))
    assert response.status_code == 400


def test_stock_history_covers_the_requested_window(client, db, admin_user):
    item = _item(db, admin_user, stock=10, min_level=0)
    warehouse_service.adjust_stock(
        db, item.id, StockMovementCreate(type=StockMovementType.STOCK_OUT, quantity=3), admin_user.id
    )
    db.add(StockMovement(
        inventory_item_id=item.id,
        type="STOCK_IN",
        quantity=4,
        previous_stock=6,
        new_stock=10,
        created_at=utcnow() - timedelta(days=40),
    ))
    db.commit()
    url = f"/api/v1/warehouse/items/{item.id}/stock-history"

    recent = client.get(url, headers=auth_headers(admin_user))
    assert recent.status_code == 200
    assert [(p["type"], p["new_stock"]) for p in recent.json()] == [("STOCK_IN", 10), ("STOCK_OUT", 7)]

    wider = client.get(url, params={"days": 90}, headers=auth_headers(admin_user)).json()
    assert len(wider) == 3
    assert wider[0]["quantity"] == 4

    assert client.get(url, params={"days": 0}, headers=auth_headers(admin_user)).status_code == 422
    assert client.get(
        "/api/v1/warehouse/items/9999/stock-history", headers=auth_headers(admin_user)
    ).status_code == 404


def test_category_and_supplier_listings(client, db, admin_user):
    warehouse_service.create_item(db, InventoryItemCreate(name="Toner", category="Consumables", supplier="Acme"), admin_user.id)
    warehouse_service.create_item(db, InventoryItemCreate(name="Paper", category="Consumables"), admin_user.id)
    warehouse_service.create_item(db, InventoryItemCreate(name="HDMI cable", category="Cables", supplier="Acme"), admin_user.id)

    categories = client.get("/api/v1/warehouse/categories", headers=auth_headers(admin_user)).json()
    assert categories == [{"name": "Cables", "count": 1}, {"name": "Consumables", "count": 2}]

    suppliers = client.get("/api/v1/warehouse/suppliers", headers=auth_headers(admin_user)).json()
    assert suppliers == [{"name": "Acme", "count": 2}]
