"""Audit service - append-only trail of state-changing actions."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from servicedesk.models.audit import AuditLog
from servicedesk.schemas.audit import AuditLogFilter, AuditLogResponse
from servicedesk.services.pagination import paginate

logger = logging.getLogger(__name__)


class AuditAction:
    """Action codes written to audit_logs.action"""

    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    REGISTER_USER = "REGISTER_USER"

    CREATE_ROLE = "CREATE_ROLE"
    UPDATE_ROLE = "UPDATE_ROLE"
    DELETE_ROLE = "DELETE_ROLE"

    CREATE_ASSET = "CREATE_ASSET"
    UPDATE_ASSET = "UPDATE_ASSET"
    DELETE_ASSET = "DELETE_ASSET"
    ASSIGN_ASSET = "ASSIGN_ASSET"
    UNASSIGN_ASSET = "UNASSIGN_ASSET"
    SCHEDULE_MAINTENANCE = "SCHEDULE_MAINTENANCE"
    UPDATE_MAINTENANCE = "UPDATE_MAINTENANCE"

    CREATE_REQUEST = "CREATE_REQUEST"
    UPDATE_REQUEST = "UPDATE_REQUEST"
    DELETE_REQUEST = "DELETE_REQUEST"
    ASSIGN_REQUEST = "ASSIGN_REQUEST"
    UPDATE_REQUEST_STATUS = "UPDATE_REQUEST_STATUS"
    ADD_REQUEST_COMMENT = "ADD_REQUEST_COMMENT"

    CREATE_ISSUE = "CREATE_ISSUE"
    UPDATE_ISSUE = "UPDATE_ISSUE"
    DELETE_ISSUE = "DELETE_ISSUE"
    ASSIGN_ISSUE = "ASSIGN_ISSUE"
    UPDATE_ISSUE_STATUS = "UPDATE_ISSUE_STATUS"
    ADD_ISSUE_LABEL = "ADD_ISSUE_LABEL"
    REMOVE_ISSUE_LABEL = "REMOVE_ISSUE_LABEL"

    CREATE_RELEASE = "CREATE_RELEASE"
    UPDATE_RELEASE = "UPDATE_RELEASE"
    DELETE_RELEASE = "DELETE_RELEASE"
    ADD_RELEASE_ISSUE = "ADD_RELEASE_ISSUE"
    REMOVE_RELEASE_ISSUE = "REMOVE_RELEASE_ISSUE"

    CREATE_INVENTORY_ITEM = "CREATE_INVENTORY_ITEM"
    UPDATE_INVENTORY_ITEM = "UPDATE_INVENTORY_ITEM"
    DELETE_INVENTORY_ITEM = "DELETE_INVENTORY_ITEM"
    ADJUST_STOCK = "ADJUST_STOCK"
    RESOLVE_STOCK_ALERT = "RESOLVE_STOCK_ALERT"


class ResourceType:
    USER = "USER"
    ROLE = "ROLE"
    ASSET = "ASSET"
    MAINTENANCE = "MAINTENANCE"
    REQUEST = "REQUEST"
    ISSUE = "ISSUE"
    RELEASE = "RELEASE"
    INVENTORY_ITEM = "INVENTORY_ITEM"
    STOCK_ALERT = "STOCK_ALERT"


def serialize_snapshot(values: Optional[Dict[str, Any]]) -> Optional[str]:
    """Fixed textual form of a snapshot; None stays None"""
    if values is None:
        return None
    return json.dumps(values, ensure_ascii=False, sort_keys=True, default=str)


def deserialize_snapshot(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return {"raw": raw}
    return value if isinstance(value, dict) else {"value": value}


class AuditService:
    """Persist immutable audit trail entries."""

    @staticmethod
    def record(
        db: Session,
        *,
        actor_id: Optional[int],
        action: str,
        resource_type: str,
        resource_id: Any,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """
        Append one audit entry after a business mutation has been committed.

        A failure here is logged and swallowed: the business change it
        describes is already committed and stays that way.

        Returns:
            The stored entry, or None if the write failed
        """
        entry = AuditLog(
            user_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            old_values=serialize_snapshot(old_values),
            new_values=serialize_snapshot(new_values),
        )
        try:
            db.add(entry)
            db.commit()
            db.refresh(entry)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                f"Failed to write audit entry {action} {resource_type}:{resource_id} "
                f"by user {actor_id}: {exc}"
            )
            return None
        return entry

    @staticmethod
    def to_response(entry: AuditLog) -> AuditLogResponse:
        return AuditLogResponse(
            id=entry.id,
            user_id=entry.user_id,
            username=entry.user.username if entry.user else None,
            action=entry.action,
            resource_type=entry.resource_type,
            resource_id=entry.resource_id,
            old_values=deserialize_snapshot(entry.old_values),
            new_values=deserialize_snapshot(entry.new_values),
            created_at=entry.created_at,
        )

    @staticmethod
    def list_logs(db: Session, filters: AuditLogFilter, page: int, limit: int) -> dict:
        """Filtered, newest-first audit log page"""
        query = db.query(AuditLog)
        if filters.user_id is not None:
            query = query.filter(AuditLog.user_id == filters.user_id)
        if filters.action:
            query = query.filter(AuditLog.action == filters.action)
        if filters.resource_type:
            query = query.filter(AuditLog.resource_type == filters.resource_type)
        if filters.start_date:
            query = query.filter(AuditLog.created_at >= filters.start_date)
        if filters.end_date:
            query = query.filter(AuditLog.created_at <= filters.end_date)

        query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        return paginate(query, page, limit, AuditService.to_response)


audit_service = AuditService()
