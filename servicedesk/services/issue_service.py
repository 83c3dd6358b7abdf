"""Issue service - bug/feature tracking"""

from enum import Enum
from typing import Optional

from sqlalchemy import cast, exists, func, literal, or_, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session

from servicedesk.core.exceptions import InvalidStateError, ResourceNotFoundError
from servicedesk.core.security import utcnow
from servicedesk.models.issue import Issue
from servicedesk.models.user import User
from servicedesk.schemas.issue import IssueCreate, IssueStatus, IssueUpdate
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service
from servicedesk.services.pagination import paginate
import logging

logger = logging.getLogger(__name__)


class IssueService:
    """Service for issue tracking"""

    @staticmethod
    def get_issue(db: Session, issue_id: int) -> Issue:
        issue = db.query(Issue).filter(Issue.id == issue_id).first()
        if not issue:
            raise ResourceNotFoundError("Issue")
        return issue

    @staticmethod
    def _has_label(db: Session, label: str):
        """JSON containment on the labels column for the bound dialect"""
        if db.get_bind().dialect.name == "postgresql":
            return cast(Issue.labels, JSONB).contains([label])
        labels = func.json_each(Issue.labels).table_valued("value")
        return exists(select(literal(1)).select_from(labels).where(labels.c.value == label))

    @staticmethod
    def list_issues(
        db: Session,
        page: int,
        limit: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        type: Optional[str] = None,
        assignee_id: Optional[int] = None,
        reporter_id: Optional[int] = None,
        label: Optional[str] = None,
    ) -> dict:
        """Paginated issue list with optional filters"""
        query = db.query(Issue)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Issue.title.ilike(pattern), Issue.description.ilike(pattern)))
        if status:
            query = query.filter(Issue.status == status)
        if priority:
            query = query.filter(Issue.priority == priority)
        if type:
            query = query.filter(Issue.type == type)
        if assignee_id is not None:
            query = query.filter(Issue.assignee_id == assignee_id)
        if reporter_id is not None:
            query = query.filter(Issue.reporter_id == reporter_id)
        if label:
            query = query.filter(IssueService._has_label(db, label))
        query = query.order_by(Issue.created_at.desc(), Issue.id.desc())
        return paginate(query, page, limit)

    @staticmethod
    def create_issue(db: Session, data: IssueCreate, actor_id: int) -> Issue:
        """
        Report a new issue; the caller becomes the reporter

        Args:
            db: Database session
            data: Issue fields
            actor_id: Reporting user

        Returns:
            Created issue in OPEN status
        """
        issue = Issue(
            title=data.title,
            description=data.description,
            type=data.type.value,
            priority=data.priority.value,
            labels=list(data.labels),
            status=IssueStatus.OPEN.value,
            reporter_id=actor_id,
        )
        db.add(issue)
        db.commit()
        db.refresh(issue)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.CREATE_ISSUE,
            resource_type=ResourceType.ISSUE,
            resource_id=issue.id,
            new_values=issue.to_dict(),
        )
        logger.info(f"Issue {issue.id} reported by user {actor_id}")
        return issue

    @staticmethod
    def update_issue(db: Session, issue_id: int, data: IssueUpdate, actor_id: int) -> Issue:
        issue = IssueService.get_issue(db, issue_id)
        old_values = issue.to_dict()

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("title", "description", "type", "priority"):
                continue
            if field == "labels":
                value = list(value or [])
            setattr(issue, field, value.value if isinstance(value, Enum) else value)

        db.commit()
        db.refresh(issue)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_ISSUE,
            resource_type=ResourceType.ISSUE,
            resource_id=issue.id,
            old_values=old_values,
            new_values=issue.to_dict(),
        )
        return issue

    @staticmethod
    def delete_issue(db: Session, issue_id: int, actor_id: int) -> None:
        """Delete an issue; refused while it is in progress"""
        issue = IssueService.get_issue(db, issue_id)
        if issue.status == IssueStatus.IN_PROGRESS.value:
            raise InvalidStateError("Cannot delete issue that is in progress")

        old_values = issue.to_dict()
        db.delete(issue)
        db.commit()

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.DELETE_ISSUE,
            resource_type=ResourceType.ISSUE,
            resource_id=issue_id,
            old_values=old_values,
        )
        logger.info(f"Issue {issue_id} deleted by user {actor_id}")

    @staticmethod
    def assign_issue(db: Session, issue_id: int, assignee_id: int, actor_id: int) -> Issue:
        issue = IssueService.get_issue(db, issue_id)
        if not db.query(User).filter(User.id == assignee_id).first():
            raise ResourceNotFoundError("User")

        old_values = {"assignee_id": issue.assignee_id, "status": issue.status}
        issue.assignee_id = assignee_id
        if issue.status == IssueStatus.OPEN.value:
            issue.status = IssueStatus.IN_PROGRESS.value
        db.commit()
        db.refresh(issue)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.ASSIGN_ISSUE,
            resource_type=ResourceType.ISSUE,
            resource_id=issue.id,
            old_values=old_values,
            new_values={"assignee_id": assignee_id, "status": issue.status},
        )
        return issue

    @staticmethod
    def update_status(db: Session, issue_id: int, status: IssueStatus, actor_id: int, notes: Optional[str] = None) -> Issue:
        """Move an issue to a new status; CLOSED stamps closed_at, reopening clears it"""
        issue = IssueService.get_issue(db, issue_id)
        old_values = {"status": issue.status}

        issue.status = IssueStatus(status).value
        if issue.status == IssueStatus.CLOSED.value:
            issue.closed_at = utcnow()
        elif issue.status in (IssueStatus.OPEN.value, IssueStatus.IN_PROGRESS.value):
            issue.closed_at = None
        db.commit()
        db.refresh(issue)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_ISSUE_STATUS,
            resource_type=ResourceType.ISSUE,
            resource_id=issue.id,
            old_values=old_values,
            new_values={"status": issue.status, "notes": notes},
        )
        return issue

    @staticmethod
    def add_label(db: Session, issue_id: int, label: str, actor_id: int) -> Issue:
        """Attach a label; adding an existing label leaves the list unchanged"""
        issue = IssueService.get_issue(db, issue_id)
        label = label.strip()
        old_labels = list(issue.labels or [])
        if label in old_labels:
            return issue

        issue.labels = old_labels + [label]
        db.commit()
        db.refresh(issue)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.ADD_ISSUE_LABEL,
            resource_type=ResourceType.ISSUE,
            resource_id=issue.id,
            old_values={"labels": old_labels},
            new_values={"labels": list(issue.labels), "added_label": label},
        )
        return issue

    @staticmethod
    def remove_label(db: Session, issue_id: int, label: str, actor_id: int) -> Issue:
        issue = IssueService.get_issue(db, issue_id)
        old_labels = list(issue.labels or [])
        if label not in old_labels:
            raise ResourceNotFoundError("Label")

        issue.labels = [existing for existing in old_labels if existing != label]
        db.commit()
        db.refresh(issue)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.REMOVE_ISSUE_LABEL,
            resource_type=ResourceType.ISSUE,
            resource_id=issue.id,
            old_values={"labels": old_labels},
            new_values={"labels": list(issue.labels), "removed_label": label},
        )
        return issue


issue_service = IssueService()
