"""Asset schemas"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AssetStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    ASSIGNED = "ASSIGNED"
    MAINTENANCE = "MAINTENANCE"
    RETIRED = "RETIRED"


class AssetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    asset_tag: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    serial_number: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)


class AssetUpdate(BaseModel):
    """Assignment is changed through the assign/unassign endpoints only"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    serial_number: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    status: Optional[AssetStatus] = None


class AssetAssignment(BaseModel):
    assigned_to_id: int
    notes: Optional[str] = None


class AssetResponse(BaseModel):
    id: int
    asset_tag: str
    name: str
    description: Optional[str] = None
    serial_number: Optional[str] = None
    model: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    status: AssetStatus
    assigned_to_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MaintenanceType(str, Enum):
    PREVENTIVE = "PREVENTIVE"
    CORRECTIVE = "CORRECTIVE"
    UPGRADE = "UPGRADE"
    INSPECTION = "INSPECTION"


class MaintenanceStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MaintenanceCreate(BaseModel):
    asset_id: int
    type: MaintenanceType
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    scheduled_date: datetime
    assigned_to_id: Optional[int] = None
    status: MaintenanceStatus = MaintenanceStatus.SCHEDULED
    notes: Optional[str] = None


class MaintenanceUpdate(BaseModel):
    """Reschedule, reassign or move a maintenance job through its statuses"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    assigned_to_id: Optional[int] = None
    status: Optional[MaintenanceStatus] = None
    notes: Optional[str] = None


class MaintenanceResponse(BaseModel):
    id: int
    asset_id: int
    type: MaintenanceType
    title: str
    description: Optional[str] = None
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    status: MaintenanceStatus
    assigned_to_id: Optional[int] = None
    notes: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NamedCount(BaseModel):
    """Distinct value of a grouping column and how many rows carry it"""
    name: str
    count: int
