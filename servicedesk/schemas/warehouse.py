"""Warehouse schemas"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class StockMovementType(str, Enum):
    STOCK_IN = "STOCK_IN"
    STOCK_OUT = "STOCK_OUT"
    ADJUSTMENT = "ADJUSTMENT"


class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    sku: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=100)
    current_stock: int = Field(0, ge=0)
    min_stock_level: int = Field(0, ge=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class InventoryItemUpdate(BaseModel):
    """Stock is changed through stock movements only"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=100)
    min_stock_level: Optional[int] = Field(None, ge=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class StockMovementCreate(BaseModel):
    """For ADJUSTMENT, quantity is the new absolute stock level"""
    type: StockMovementType
    quantity: int = Field(..., ge=0)
    reason: Optional[str] = Field(None, max_length=255)
    reference_number: Optional[str] = Field(None, max_length=100)


class InventoryItemResponse(BaseModel):
    id: int
    sku: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    supplier: Optional[str] = None
    current_stock: int
    min_stock_level: int
    unit_price: Optional[Decimal] = None
    last_stock_update: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockMovementResponse(BaseModel):
    id: int
    inventory_item_id: int
    type: StockMovementType
    quantity: int
    previous_stock: Optional[int] = None
    new_stock: Optional[int] = None
    reason: Optional[str] = None
    reference_number: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockAlertResponse(BaseModel):
    id: int
    inventory_item_id: int
    message: str
    current_stock: int
    min_level: int
    resolved: bool
    resolved_at: Optional[datetime] = None
    resolved_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockHistoryPoint(BaseModel):
    """Stock level after one movement"""
    created_at: Optional[datetime] = None
    new_stock: Optional[int] = None
    type: StockMovementType
    quantity: int

    class Config:
        from_attributes = True
