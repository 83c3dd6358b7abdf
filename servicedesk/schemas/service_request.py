"""Service request schemas"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RequestType(str, Enum):
    EQUIPMENT_REQUEST = "EQUIPMENT_REQUEST"
    MAINTENANCE_REQUEST = "MAINTENANCE_REQUEST"
    SOFTWARE_REQUEST = "SOFTWARE_REQUEST"
    ACCESS_REQUEST = "ACCESS_REQUEST"
    OTHER = "OTHER"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class RequestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    type: RequestType
    priority: Priority = Priority.MEDIUM
    department: Optional[str] = Field(None, max_length=100)
    due_date: Optional[datetime] = None


class RequestUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    priority: Optional[Priority] = None
    department: Optional[str] = Field(None, max_length=100)
    due_date: Optional[datetime] = None


class RequestAssign(BaseModel):
    assignee_id: int
    notes: Optional[str] = None


class RequestStatusUpdate(BaseModel):
    status: RequestStatus
    notes: Optional[str] = None


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    id: int
    content: str
    author_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RequestResponse(BaseModel):
    id: int
    title: str
    description: str
    type: RequestType
    priority: Priority
    status: RequestStatus
    department: Optional[str] = None
    due_date: Optional[datetime] = None
    requester_id: Optional[int] = None
    assignee_id: Optional[int] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
