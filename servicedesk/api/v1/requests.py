"""Service request routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from servicedesk.core.database import get_db
from servicedesk.schemas.service_request import (
    RequestCreate,
    RequestUpdate,
    RequestAssign,
    RequestStatusUpdate,
    RequestResponse,
    RequestStatus,
    RequestType,
    Priority,
    CommentCreate,
    CommentResponse,
)
from servicedesk.schemas.response import Page
from servicedesk.services.request_service import request_service
from servicedesk.api.permissions import authorize
from servicedesk.models.user import User

router = APIRouter(dependencies=[Depends(authorize)])


@router.get("", response_model=Page[RequestResponse])
def list_requests(
    page: int = 1,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    status: Optional[RequestStatus] = None,
    priority: Optional[Priority] = None,
    type: Optional[RequestType] = None,
    assignee_id: Optional[int] = None,
    requester_id: Optional[int] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List service requests with optional filters"""
    return request_service.list_requests(
        db, page, limit,
        search=search,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        type=type.value if type else None,
        assignee_id=assignee_id,
        requester_id=requester_id,
        department=department,
    )


@router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
def create_request(
    request_data: RequestCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Open a request; the caller is the requester"""
    return request_service.create_request(db, request_data, current_user.id)


@router.get("/my-requests", response_model=Page[RequestResponse])
def list_my_requests(
    page: int = 1,
    limit: Optional[int] = None,
    status: Optional[RequestStatus] = None,
    priority: Optional[Priority] = None,
    type: Optional[RequestType] = None,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Requests opened by the caller"""
    return request_service.list_requests(
        db, page, limit,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        type=type.value if type else None,
        requester_id=current_user.id,
    )


@router.get("/assigned-to-me", response_model=Page[RequestResponse])
def list_assigned_requests(
    page: int = 1,
    limit: Optional[int] = None,
    status: Optional[RequestStatus] = None,
    priority: Optional[Priority] = None,
    type: Optional[RequestType] = None,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Requests assigned to the caller"""
    return request_service.list_requests(
        db, page, limit,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        type=type.value if type else None,
        assignee_id=current_user.id,
    )


@router.get("/{request_id}", response_model=RequestResponse)
def get_request(request_id: int, db: Session = Depends(get_db)):
    return request_service.get_request(db, request_id)


@router.put("/{request_id}", response_model=RequestResponse)
def update_request(
    request_id: int,
    request_data: RequestUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return request_service.update_request(db, request_id, request_data, current_user.id)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Delete a request that is not in progress"""
    request_service.delete_request(db, request_id, current_user.id)


@router.post("/{request_id}/assign", response_model=RequestResponse)
def assign_request(
    request_id: int,
    assignment: RequestAssign,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Assign to a technician; the request moves to IN_PROGRESS"""
    return request_service.assign_request(
        db, request_id, assignment.assignee_id, current_user.id, notes=assignment.notes
    )


@router.put("/{request_id}/status", response_model=RequestResponse)
def update_request_status(
    request_id: int,
    status_data: RequestStatusUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """
    Change request status

    Args:
        request_id: Request ID
        status_data: New status and optional notes, stored as a comment

    Returns:
        Updated request
    """
    return request_service.update_status(
        db, request_id, status_data.status, current_user.id, notes=status_data.notes
    )


@router.get("/{request_id}/comments", response_model=List[CommentResponse])
def list_comments(request_id: int, db: Session = Depends(get_db)):
    return request_service.list_comments(db, request_id)


@router.post("/{request_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    request_id: int,
    comment: CommentCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return request_service.add_comment(db, request_id, comment, current_user.id)
