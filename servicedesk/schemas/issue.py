"""Issue and release schemas"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from servicedesk.schemas.service_request import Priority


class IssueType(str, Enum):
    BUG = "BUG"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    IMPROVEMENT = "IMPROVEMENT"
    TASK = "TASK"


class IssueStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


def _dedupe_labels(labels):
    seen = []
    for label in labels:
        label = label.strip()
        if label and label not in seen:
            seen.append(label)
    return seen


class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    type: IssueType
    priority: Priority = Priority.MEDIUM
    labels: List[str] = Field(default_factory=list)

    @field_validator('labels')
    @classmethod
    def unique_labels(cls, v):
        return _dedupe_labels(v)


class IssueUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    type: Optional[IssueType] = None
    priority: Optional[Priority] = None
    labels: Optional[List[str]] = None

    @field_validator('labels')
    @classmethod
    def unique_labels(cls, v):
        return _dedupe_labels(v) if v is not None else v


class IssueAssign(BaseModel):
    assignee_id: int


class IssueStatusUpdate(BaseModel):
    status: IssueStatus
    notes: Optional[str] = None


class LabelCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=50)


class IssueResponse(BaseModel):
    id: int
    title: str
    description: str
    type: IssueType
    priority: Priority
    status: IssueStatus
    labels: List[str] = []
    reporter_id: Optional[int] = None
    assignee_id: Optional[int] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReleaseCreate(BaseModel):
    version: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    release_date: datetime
    is_prerelease: bool = False


class ReleaseUpdate(BaseModel):
    version: Optional[str] = Field(None, min_length=1, max_length=50)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    release_date: Optional[datetime] = None
    is_prerelease: Optional[bool] = None


class ReleaseIssueLink(BaseModel):
    issue_id: int


class ReleaseIssueSummary(BaseModel):
    id: int
    title: str
    type: IssueType
    priority: Priority
    status: IssueStatus

    class Config:
        from_attributes = True


class ReleaseResponse(BaseModel):
    id: int
    version: str
    title: str
    description: Optional[str] = None
    release_date: datetime
    is_prerelease: bool
    issues: List[ReleaseIssueSummary] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
