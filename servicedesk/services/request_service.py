"""Service request service - intake, assignment, status workflow and comments"""

from enum import Enum
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from servicedesk.core.exceptions import InvalidStateError, ResourceNotFoundError
from servicedesk.core.security import utcnow
from servicedesk.models.service_request import RequestComment, ServiceRequest
from servicedesk.models.user import User
from servicedesk.schemas.service_request import (
    CommentCreate,
    RequestCreate,
    RequestStatus,
    RequestUpdate,
)
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service
from servicedesk.services.pagination import paginate
import logging

logger = logging.getLogger(__name__)


class RequestService:
    """Service for IT service requests"""

    @staticmethod
    def get_request(db: Session, request_id: int) -> ServiceRequest:
        request = db.query(ServiceRequest).filter(ServiceRequest.id == request_id).first()
        if not request:
            raise ResourceNotFoundError("Request")
        return request

    @staticmethod
    def list_requests(
        db: Session,
        page: int,
        limit: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        type: Optional[str] = None,
        assignee_id: Optional[int] = None,
        requester_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> dict:
        """Paginated request list with optional filters"""
        query = db.query(ServiceRequest)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                ServiceRequest.title.ilike(pattern),
                ServiceRequest.description.ilike(pattern),
            ))
        if status:
            query = query.filter(ServiceRequest.status == status)
        if priority:
            query = query.filter(ServiceRequest.priority == priority)
        if type:
            query = query.filter(ServiceRequest.type == type)
        if assignee_id is not None:
            query = query.filter(ServiceRequest.assignee_id == assignee_id)
        if requester_id is not None:
            query = query.filter(ServiceRequest.requester_id == requester_id)
        if department:
            query = query.filter(ServiceRequest.department == department)
        query = query.order_by(ServiceRequest.created_at.desc(), ServiceRequest.id.desc())
        return paginate(query, page, limit)

    @staticmethod
    def create_request(db: Session, data: RequestCreate, actor_id: int) -> ServiceRequest:
        """
        Open a new request on behalf of the caller

        Args:
            db: Database session
            data: Request fields
            actor_id: Requesting user

        Returns:
            Created request in PENDING status
        """
        request = ServiceRequest(
            title=data.title,
            description=data.description,
            type=data.type.value,
            priority=data.priority.value,
            department=data.department,
            due_date=data.due_date,
            status=RequestStatus.PENDING.value,
            requester_id=actor_id,
        )
        db.add(request)
        db.commit()
        db.refresh(request)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.CREATE_REQUEST,
            resource_type=ResourceType.REQUEST,
            resource_id=request.id,
            new_values=request.to_dict(),
        )
        logger.info(f"Request {request.id} created by user {actor_id}")
        return request

    @staticmethod
    def update_request(db: Session, request_id: int, data: RequestUpdate, actor_id: int) -> ServiceRequest:
        request = RequestService.get_request(db, request_id)
        old_values = request.to_dict()

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("title", "description", "priority"):
                continue
            setattr(request, field, value.value if isinstance(value, Enum) else value)

        db.commit()
        db.refresh(request)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_REQUEST,
            resource_type=ResourceType.REQUEST,
            resource_id=request.id,
            old_values=old_values,
            new_values=request.to_dict(),
        )
        return request

    @staticmethod
    def delete_request(db: Session, request_id: int, actor_id: int) -> None:
        """Delete a request; refused while work on it is in progress"""
        request = RequestService.get_request(db, request_id)
        if request.status == RequestStatus.IN_PROGRESS.value:
            raise InvalidStateError("Cannot delete a request that is in progress")

        old_values = request.to_dict()
        db.delete(request)
        db.commit()

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.DELETE_REQUEST,
            resource_type=ResourceType.REQUEST,
            resource_id=request_id,
            old_values=old_values,
        )
        logger.info(f"Request {request_id} deleted by user {actor_id}")

    @staticmethod
    def assign_request(db: Session, request_id: int, assignee_id: int, actor_id: int, notes: Optional[str] = None) -> ServiceRequest:
        """
        Hand a request to a technician; the request moves to IN_PROGRESS

        Args:
            db: Database session
            request_id: Request ID
            assignee_id: Technician user ID
            actor_id: Acting user
            notes: Optional note, stored as a comment

        Returns:
            Updated request
        """
        request = RequestService.get_request(db, request_id)
        if request.status in (RequestStatus.COMPLETED.value, RequestStatus.CANCELLED.value, RequestStatus.REJECTED.value):
            raise InvalidStateError(f"Cannot assign a request with status {request.status}")
        if not db.query(User).filter(User.id == assignee_id).first():
            raise ResourceNotFoundError("User")

        old_values = {"assignee_id": request.assignee_id, "status": request.status}
        request.assignee_id = assignee_id
        request.status = RequestStatus.IN_PROGRESS.value
        if notes:
            db.add(RequestComment(request_id=request.id, author_id=actor_id, content=f"Assigned: {notes}"))
        db.commit()
        db.refresh(request)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.ASSIGN_REQUEST,
            resource_type=ResourceType.REQUEST,
            resource_id=request.id,
            old_values=old_values,
            new_values={"assignee_id": assignee_id, "status": request.status},
        )
        logger.info(f"Request {request.id} assigned to user {assignee_id}")
        return request

    @staticmethod
    def update_status(db: Session, request_id: int, status: RequestStatus, actor_id: int, notes: Optional[str] = None) -> ServiceRequest:
        """Move a request to a new status; COMPLETED stamps closed_at"""
        request = RequestService.get_request(db, request_id)
        old_values = {"status": request.status}

        request.status = RequestStatus(status).value
        if request.status == RequestStatus.COMPLETED.value:
            request.closed_at = utcnow()
        if notes:
            db.add(RequestComment(
                request_id=request.id,
                author_id=actor_id,
                content=f"Status updated to {request.status}: {notes}",
            ))
        db.commit()
        db.refresh(request)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_REQUEST_STATUS,
            resource_type=ResourceType.REQUEST,
            resource_id=request.id,
            old_values=old_values,
            new_values={"status": request.status, "notes": notes},
        )
        return request

    @staticmethod
    def add_comment(db: Session, request_id: int, data: CommentCreate, actor_id: int) -> RequestComment:
        request = RequestService.get_request(db, request_id)
        comment = RequestComment(request_id=request.id, author_id=actor_id, content=data.content)
        db.add(comment)
        db.commit()
        db.refresh(comment)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.ADD_REQUEST_COMMENT,
            resource_type=ResourceType.REQUEST,
            resource_id=request.id,
            new_values={"comment_id": comment.id, "content": comment.content},
        )
        return comment

    @staticmethod
    def list_comments(db: Session, request_id: int) -> List[RequestComment]:
        RequestService.get_request(db, request_id)
        return (
            db.query(RequestComment)
            .filter(RequestComment.request_id == request_id)
            .order_by(RequestComment.created_at.desc(), RequestComment.id.desc())
            .all()
        )


request_service = RequestService()
