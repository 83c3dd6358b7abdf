"""Issue tracking routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from servicedesk.core.database import get_db
from servicedesk.schemas.issue import (
    IssueCreate,
    IssueUpdate,
    IssueAssign,
    IssueStatusUpdate,
    IssueResponse,
    IssueStatus,
    IssueType,
    LabelCreate,
)
from servicedesk.schemas.service_request import Priority
from servicedesk.schemas.response import Page
from servicedesk.services.issue_service import issue_service
from servicedesk.api.permissions import authorize
from servicedesk.models.user import User

router = APIRouter(dependencies=[Depends(authorize)])


@router.get("", response_model=Page[IssueResponse])
def list_issues(
    page: int = 1,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    status: Optional[IssueStatus] = None,
    priority: Optional[Priority] = None,
    type: Optional[IssueType] = None,
    assignee_id: Optional[int] = None,
    reporter_id: Optional[int] = None,
    label: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List issues with optional filters"""
    return issue_service.list_issues(
        db, page, limit,
        search=search,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        type=type.value if type else None,
        assignee_id=assignee_id,
        reporter_id=reporter_id,
        label=label,
    )


@router.post("", response_model=IssueResponse, status_code=status.HTTP_201_CREATED)
def create_issue(
    issue_data: IssueCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Report an issue; the caller is the reporter"""
    return issue_service.create_issue(db, issue_data, current_user.id)


@router.get("/{issue_id}", response_model=IssueResponse)
def get_issue(issue_id: int, db: Session = Depends(get_db)):
    return issue_service.get_issue(db, issue_id)


@router.patch("/{issue_id}", response_model=IssueResponse)
def update_issue(
    issue_id: int,
    issue_data: IssueUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return issue_service.update_issue(db, issue_id, issue_data, current_user.id)


@router.delete("/{issue_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_issue(
    issue_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Delete an issue that is not in progress"""
    issue_service.delete_issue(db, issue_id, current_user.id)


@router.post("/{issue_id}/assign", response_model=IssueResponse)
def assign_issue(
    issue_id: int,
    assignment: IssueAssign,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return issue_service.assign_issue(db, issue_id, assignment.assignee_id, current_user.id)


@router.put("/{issue_id}/status", response_model=IssueResponse)
def update_issue_status(
    issue_id: int,
    status_data: IssueStatusUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Change issue status; CLOSED records the closing time"""
    return issue_service.update_status(
        db, issue_id, status_data.status, current_user.id, notes=status_data.notes
    )


@router.post("/{issue_id}/labels", response_model=IssueResponse)
def add_label(
    issue_id: int,
    label_data: LabelCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return issue_service.add_label(db, issue_id, label_data.label, current_user.id)


@router.delete("/{issue_id}/labels/{label}", response_model=IssueResponse)
def remove_label(
    issue_id: int,
    label: str,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return issue_service.remove_label(db, issue_id, label, current_user.id)
