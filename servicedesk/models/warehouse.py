"""Warehouse inventory, stock movement and alert models"""

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey, Index, CheckConstraint, text
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from servicedesk.core.database import Base


class InventoryItem(Base):
    """Consumable stock kept in the warehouse"""

    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    category = Column(String(100))
    location = Column(String(100))
    supplier = Column(String(100))
    current_stock = Column(Integer, default=0, nullable=False)
    min_stock_level = Column(Integer, default=0, nullable=False)
    unit_price = Column(Numeric(12, 2))
    last_stock_update = Column(DateTime(timezone=True))
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    created_by = relationship("User")
    movements = relationship(
        "StockMovement",
        back_populates="item",
        cascade="all, delete-orphan",
    )
    alerts = relationship(
        "StockAlert",
        back_populates="item",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint('current_stock >= 0', name='chk_current_stock_non_negative'),
        CheckConstraint('min_stock_level >= 0', name='chk_min_stock_level_non_negative'),
    )

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, sku='{self.sku}', current_stock={self.current_stock})>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "location": self.location,
            "supplier": self.supplier,
            "current_stock": self.current_stock,
            "min_stock_level": self.min_stock_level,
            "unit_price": str(self.unit_price) if self.unit_price is not None else None,
        }


class StockMovement(Base):
    """One change to an item's stock counter"""

    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    previous_stock = Column(Integer)
    new_stock = Column(Integer)
    reason = Column(String(255))
    reference_number = Column(String(100))
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    item = relationship("InventoryItem", back_populates="movements")
    user = relationship("User")

    __table_args__ = (
        Index('idx_stock_movements_item', 'inventory_item_id'),
        CheckConstraint(
            "type IN ('STOCK_IN', 'STOCK_OUT', 'ADJUSTMENT')",
            name='chk_stock_movement_type'
        ),
        CheckConstraint('quantity >= 0', name='chk_stock_movement_quantity'),
    )


class StockAlert(Base):
    """Low-stock notification; at most one unresolved per item"""

    __tablename__ = "stock_alerts"

    id = Column(Integer, primary_key=True, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False)
    message = Column(String(255), nullable=False)
    current_stock = Column(Integer, nullable=False)
    min_level = Column(Integer, nullable=False)
    resolved = Column(Boolean, default=False, nullable=False)
    resolved_at = Column(DateTime(timezone=True))
    resolved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    item = relationship("InventoryItem", back_populates="alerts")

    __table_args__ = (
        Index(
            'uq_stock_alerts_unresolved_item',
            'inventory_item_id',
            unique=True,
            postgresql_where=text('resolved = false'),
            sqlite_where=text('resolved = 0'),
        ),
    )
