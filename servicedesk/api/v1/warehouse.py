"""Warehouse routes - inventory items, stock and alerts"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from servicedesk.core.database import get_db
from servicedesk.schemas.warehouse import (
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryItemResponse,
    StockMovementCreate,
    StockMovementResponse,
    StockAlertResponse,
    StockHistoryPoint,
)
from servicedesk.schemas.asset import NamedCount
from servicedesk.schemas.response import Page
from servicedesk.services.warehouse_service import warehouse_service
from servicedesk.api.permissions import authorize
from servicedesk.models.user import User

router = APIRouter(dependencies=[Depends(authorize)])


@router.get("/stats")
def get_warehouse_stats(db: Session = Depends(get_db)):
    """Item, stock, alert and movement counts"""
    return warehouse_service.get_stats(db)


@router.get("/categories", response_model=List[NamedCount])
def list_categories(db: Session = Depends(get_db)):
    """Distinct item categories with item counts"""
    return warehouse_service.list_categories(db)


@router.get("/suppliers", response_model=List[NamedCount])
def list_suppliers(db: Session = Depends(get_db)):
    return warehouse_service.list_suppliers(db)


@router.get("/items", response_model=Page[InventoryItemResponse])
def list_items(
    page: int = 1,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
    supplier: Optional[str] = None,
    low_stock: bool = False,
    db: Session = Depends(get_db),
):
    return warehouse_service.list_items(
        db, page, limit, search=search, category=category, supplier=supplier, low_stock=low_stock
    )


@router.post("/items", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    item_data: InventoryItemCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Add an inventory item; initial stock is recorded as a movement"""
    return warehouse_service.create_item(db, item_data, current_user.id)


@router.get("/items/{item_id}", response_model=InventoryItemResponse)
def get_item(item_id: int, db: Session = Depends(get_db)):
    return warehouse_service.get_item(db, item_id)


@router.put("/items/{item_id}", response_model=InventoryItemResponse)
def update_item(
    item_id: int,
    item_data: InventoryItemUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return warehouse_service.update_item(db, item_id, item_data, current_user.id)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Remove an item with zero stock"""
    warehouse_service.delete_item(db, item_id, current_user.id)


@router.put("/items/{item_id}/stock", response_model=InventoryItemResponse)
def adjust_stock(
    item_id: int,
    movement: StockMovementCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """
    Apply a stock movement

    Args:
        item_id: Inventory item ID
        movement: STOCK_IN / STOCK_OUT quantity, or ADJUSTMENT target level

    Returns:
        Item with its new stock level
    """
    return warehouse_service.adjust_stock(db, item_id, movement, current_user.id)


@router.get("/items/{item_id}/stock-history", response_model=List[StockHistoryPoint])
def get_stock_history(
    item_id: int,
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
):
    """Stock level after each movement in the last `days` days"""
    return warehouse_service.stock_history(db, item_id, days)


@router.get("/stock-movements", response_model=Page[StockMovementResponse])
def list_stock_movements(
    page: int = 1,
    limit: Optional[int] = None,
    item_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return warehouse_service.list_movements(db, page, limit, item_id=item_id)


@router.get("/alerts", response_model=List[StockAlertResponse])
def list_alerts(resolved: Optional[bool] = None, db: Session = Depends(get_db)):
    """Low-stock alerts, optionally filtered by resolution"""
    return warehouse_service.list_alerts(db, resolved=resolved)


@router.put("/alerts/{alert_id}/resolve", response_model=StockAlertResponse)
def resolve_alert(
    alert_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return warehouse_service.resolve_alert(db, alert_id, current_user.id)
