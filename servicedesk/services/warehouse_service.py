"""Warehouse service - inventory items, stock movements and low-stock alerts"""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import timedelta

from servicedesk.core.exceptions import (
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidStateError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from servicedesk.core.security import utcnow
from servicedesk.models.warehouse import InventoryItem, StockAlert, StockMovement
from servicedesk.schemas.warehouse import (
    InventoryItemCreate,
    InventoryItemUpdate,
    StockMovementCreate,
    StockMovementType,
)
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service
from servicedesk.services.identifiers import category_prefix, generate_code
from servicedesk.services.pagination import paginate
import logging

logger = logging.getLogger(__name__)

MAX_STOCK_UPDATE_ATTEMPTS = 3


def apply_movement(current: int, movement_type: StockMovementType, quantity: int) -> Tuple[int, int]:
    """
    Stock arithmetic for one movement.

    Args:
        current: Stock before the movement
        movement_type: STOCK_IN, STOCK_OUT or ADJUSTMENT
        quantity: Units moved; for ADJUSTMENT the absolute target level

    Returns:
        (new stock, quantity recorded on the movement)

    Raises:
        InsufficientStockError: STOCK_OUT larger than the current stock
    """
    movement_type = StockMovementType(movement_type)
    if movement_type == StockMovementType.STOCK_IN:
        return current + quantity, quantity
    if movement_type == StockMovementType.STOCK_OUT:
        if quantity > current:
            raise InsufficientStockError(quantity, current)
        return current - quantity, quantity
    return quantity, abs(quantity - current)


class WarehouseService:
    """Service for warehouse inventory"""

    @staticmethod
    def get_item(db: Session, item_id: int) -> InventoryItem:
        item = db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
        if not item:
            raise ResourceNotFoundError("Inventory item")
        return item

    @staticmethod
    def list_items(
        db: Session,
        page: int,
        limit: int,
        search: Optional[str] = None,
        category: Optional[str] = None,
        supplier: Optional[str] = None,
        low_stock: bool = False,
    ) -> dict:
        query = db.query(InventoryItem)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                InventoryItem.name.ilike(pattern),
                InventoryItem.sku.ilike(pattern),
                InventoryItem.description.ilike(pattern),
            ))
        if category:
            query = query.filter(InventoryItem.category == category)
        if supplier:
            query = query.filter(InventoryItem.supplier == supplier)
        if low_stock:
            query = query.filter(InventoryItem.current_stock <= InventoryItem.min_stock_level)
        query = query.order_by(InventoryItem.name, InventoryItem.id)
        return paginate(query, page, limit)

    @staticmethod
    def create_item(db: Session, data: InventoryItemCreate, actor_id: int) -> InventoryItem:
        """
        Add an inventory item; initial stock is recorded as a STOCK_IN movement

        Args:
            db: Database session
            data: Item fields
            actor_id: Acting user

        Returns:
            Created item
        """
        sku = data.sku or generate_code(category_prefix(data.name, "SKU"))
        if db.query(InventoryItem).filter(InventoryItem.sku == sku).first():
            raise ResourceAlreadyExistsError("Inventory item with this SKU")

        item = InventoryItem(
            **data.model_dump(exclude={"sku"}),
            sku=sku,
            last_stock_update=utcnow() if data.current_stock else None,
            created_by_id=actor_id,
        )
        db.add(item)
        db.flush()
        if data.current_stock > 0:
            db.add(StockMovement(
                inventory_item_id=item.id,
                type=StockMovementType.STOCK_IN.value,
                quantity=data.current_stock,
                previous_stock=0,
                new_stock=data.current_stock,
                reason="Initial stock",
                user_id=actor_id,
            ))
        db.commit()
        db.refresh(item)

        WarehouseService._raise_low_stock_alert(db, item, actor_id)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.CREATE_INVENTORY_ITEM,
            resource_type=ResourceType.INVENTORY_ITEM,
            resource_id=item.id,
            new_values=item.to_dict(),
        )
        logger.info(f"Created inventory item {item.sku} with stock {item.current_stock}")
        return item

    @staticmethod
    def update_item(db: Session, item_id: int, data: InventoryItemUpdate, actor_id: int) -> InventoryItem:
        item = WarehouseService.get_item(db, item_id)
        old_values = item.to_dict()

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("name", "min_stock_level"):
                continue
            setattr(item, field, value)

        db.commit()
        db.refresh(item)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_INVENTORY_ITEM,
            resource_type=ResourceType.INVENTORY_ITEM,
            resource_id=item.id,
            old_values=old_values,
            new_values=item.to_dict(),
        )
        return item

    @staticmethod
    def delete_item(db: Session, item_id: int, actor_id: int) -> None:
        """Remove an item; refused while any stock remains"""
        item = WarehouseService.get_item(db, item_id)
        if item.current_stock > 0:
            raise InvalidStateError("Cannot delete item with current stock")

        old_values = item.to_dict()
        db.delete(item)
        db.commit()

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.DELETE_INVENTORY_ITEM,
            resource_type=ResourceType.INVENTORY_ITEM,
            resource_id=item_id,
            old_values=old_values,
        )
        logger.info(f"Deleted inventory item {old_values['sku']}")

    @staticmethod
    def adjust_stock(db: Session, item_id: int, movement: StockMovementCreate, actor_id: int) -> InventoryItem:
        """
        Apply a stock movement to an item.

        The counter is written with a compare-and-swap on the value that was
        read, so concurrent adjustments never overwrite each other. A lost
        race re-reads and retries.

        Args:
            db: Database session
            item_id: Inventory item ID
            movement: Movement type, quantity and reference data
            actor_id: Acting user

        Returns:
            Item with its new stock level

        Raises:
            InsufficientStockError: STOCK_OUT exceeds current stock
            ConcurrentModificationError: Retries exhausted
        """
        movement_type = StockMovementType(movement.type)

        for attempt in range(1, MAX_STOCK_UPDATE_ATTEMPTS + 1):
            item = (
                db.query(InventoryItem)
                .populate_existing()
                .filter(InventoryItem.id == item_id)
                .first()
            )
            if not item:
                raise ResourceNotFoundError("Inventory item")
            previous = item.current_stock
            new_stock, recorded_quantity = apply_movement(previous, movement_type, movement.quantity)

            result = db.execute(
                update(InventoryItem)
                .where(
                    InventoryItem.id == item_id,
                    InventoryItem.current_stock == previous,
                )
                .values(current_stock=new_stock, last_stock_update=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                db.add(StockMovement(
                    inventory_item_id=item_id,
                    type=movement_type.value,
                    quantity=recorded_quantity,
                    previous_stock=previous,
                    new_stock=new_stock,
                    reason=movement.reason,
                    reference_number=movement.reference_number,
                    user_id=actor_id,
                ))
                db.commit()
                break

            db.rollback()
            logger.warning(f"Stock of item {item_id} changed concurrently (attempt {attempt})")
        else:
            raise ConcurrentModificationError("Stock level was modified by another request. Please try again.")

        db.refresh(item)
        WarehouseService._raise_low_stock_alert(db, item, actor_id)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.ADJUST_STOCK,
            resource_type=ResourceType.INVENTORY_ITEM,
            resource_id=item_id,
            old_values={"current_stock": previous},
            new_values={
                "current_stock": new_stock,
                "type": movement_type.value,
                "quantity": recorded_quantity,
                "reason": movement.reason,
            },
        )
        logger.info(f"Stock of item {item.sku}: {previous} -> {new_stock} ({movement_type.value})")
        return item

    @staticmethod
    def _raise_low_stock_alert(db: Session, item: InventoryItem, actor_id: Optional[int]) -> Optional[StockAlert]:
        """
        Open a low-stock alert when the item is at or below its minimum,
        unless one is already unresolved. The partial unique index
        uq_stock_alerts_unresolved_item settles concurrent attempts.
        """
        if item.current_stock > item.min_stock_level:
            return None

        existing = (
            db.query(StockAlert)
            .filter(StockAlert.inventory_item_id == item.id, StockAlert.resolved == False)  # noqa: E712
            .first()
        )
        if existing:
            return None

        alert = StockAlert(
            inventory_item_id=item.id,
            message=f"Stock level ({item.current_stock}) is below minimum threshold ({item.min_stock_level})",
            current_stock=item.current_stock,
            min_level=item.min_stock_level,
            resolved=False,
            created_by_id=actor_id,
        )
        try:
            with db.begin_nested():
                db.add(alert)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"Unresolved stock alert for item {item.id} already exists")
            return None

        logger.warning(f"Low stock alert raised for item {item.sku} ({item.current_stock} <= {item.min_stock_level})")
        return alert

    @staticmethod
    def list_movements(db: Session, page: int, limit: int, item_id: Optional[int] = None) -> dict:
        query = db.query(StockMovement)
        if item_id is not None:
            query = query.filter(StockMovement.inventory_item_id == item_id)
        query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        return paginate(query, page, limit)

    @staticmethod
    def stock_history(db: Session, item_id: int, days: int = 30) -> List[StockMovement]:
        """
        Movements of one item over the last ``days`` days, oldest first

        Each movement carries the stock level it left behind, so the rows
        plot as a stock-over-time series.
        """
        WarehouseService.get_item(db, item_id)
        since = utcnow() - timedelta(days=days)
        return (
            db.query(StockMovement)
            .filter(StockMovement.inventory_item_id == item_id, StockMovement.created_at >= since)
            .order_by(StockMovement.created_at.asc(), StockMovement.id.asc())
            .all()
        )

    @staticmethod
    def _grouped_counts(db: Session, column) -> List[dict]:
        rows = (
            db.query(column, func.count(InventoryItem.id))
            .filter(column.isnot(None), column != "")
            .group_by(column)
            .order_by(column.asc())
            .all()
        )
        return [{"name": name, "count": count} for name, count in rows]

    @staticmethod
    def list_categories(db: Session) -> List[dict]:
        return WarehouseService._grouped_counts(db, InventoryItem.category)

    @staticmethod
    def list_suppliers(db: Session) -> List[dict]:
        return WarehouseService._grouped_counts(db, InventoryItem.supplier)

    @staticmethod
    def list_alerts(db: Session, resolved: Optional[bool] = None):
        query = db.query(StockAlert)
        if resolved is not None:
            query = query.filter(StockAlert.resolved == resolved)
        return query.order_by(StockAlert.created_at.desc(), StockAlert.id.desc()).all()

    @staticmethod
    def resolve_alert(db: Session, alert_id: int, actor_id: int) -> StockAlert:
        alert = db.query(StockAlert).filter(StockAlert.id == alert_id).first()
        if not alert:
            raise ResourceNotFoundError("Stock alert")
        if alert.resolved:
            raise InvalidStateError("Stock alert is already resolved")

        alert.resolved = True
        alert.resolved_at = utcnow()
        alert.resolved_by_id = actor_id
        db.commit()
        db.refresh(alert)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.RESOLVE_STOCK_ALERT,
            resource_type=ResourceType.STOCK_ALERT,
            resource_id=alert.id,
            old_values={"resolved": False},
            new_values={"resolved": True, "inventory_item_id": alert.inventory_item_id},
        )
        return alert

    @staticmethod
    def get_stats(db: Session) -> dict:
        since = utcnow() - timedelta(hours=24)
        return {
            "total_items": db.query(InventoryItem).count(),
            "total_stock_units": db.query(func.coalesce(func.sum(InventoryItem.current_stock), 0)).scalar(),
            "low_stock_items": db.query(InventoryItem)
            .filter(InventoryItem.current_stock <= InventoryItem.min_stock_level)
            .count(),
            "out_of_stock_items": db.query(InventoryItem).filter(InventoryItem.current_stock == 0).count(),
            "pending_alerts": db.query(StockAlert).filter(StockAlert.resolved == False).count(),  # noqa: E712
            "recent_movements": db.query(StockMovement).filter(StockMovement.created_at >= since).count(),
        }


warehouse_service = WarehouseService()
