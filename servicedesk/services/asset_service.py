"""Asset service - IT asset register and assignment"""

from datetime import timedelta
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from servicedesk.core.exceptions import (
    AssetNotAvailableError,
    InvalidStateError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from servicedesk.core.security import utcnow
from servicedesk.models.asset import Asset, MaintenanceSchedule
from servicedesk.models.user import User
from servicedesk.schemas.asset import (
    AssetCreate,
    AssetStatus,
    AssetUpdate,
    MaintenanceCreate,
    MaintenanceStatus,
    MaintenanceUpdate,
)
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service
from servicedesk.services.identifiers import category_prefix, generate_code
from servicedesk.services.pagination import paginate
import logging

logger = logging.getLogger(__name__)

UPCOMING_MAINTENANCE_DAYS = 30


class AssetService:
    """Service for asset management"""

    @staticmethod
    def get_asset(db: Session, asset_id: int) -> Asset:
        asset = db.query(Asset).filter(Asset.id == asset_id).first()
        if not asset:
            raise ResourceNotFoundError("Asset")
        return asset

    @staticmethod
    def list_assets(
        db: Session,
        page: int,
        limit: int,
        search: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        assigned_to_id: Optional[int] = None,
    ) -> dict:
        """Paginated asset list with optional filters"""
        query = db.query(Asset)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Asset.name.ilike(pattern),
                Asset.asset_tag.ilike(pattern),
                Asset.serial_number.ilike(pattern),
                Asset.model.ilike(pattern),
            ))
        if status:
            query = query.filter(Asset.status == status)
        if category:
            query = query.filter(Asset.category == category)
        if assigned_to_id is not None:
            query = query.filter(Asset.assigned_to_id == assigned_to_id)
        query = query.order_by(Asset.created_at.desc(), Asset.id.desc())
        return paginate(query, page, limit)

    @staticmethod
    def create_asset(db: Session, data: AssetCreate, actor_id: int) -> Asset:
        """
        Register a new asset; a tag is generated when none is given

        Args:
            db: Database session
            data: Asset fields
            actor_id: Acting user

        Returns:
            Created asset
        """
        asset_tag = data.asset_tag or generate_code(category_prefix(data.category, "AST"))
        if db.query(Asset).filter(Asset.asset_tag == asset_tag).first():
            raise ResourceAlreadyExistsError("Asset with this tag")

        asset = Asset(
            **data.model_dump(exclude={"asset_tag"}),
            asset_tag=asset_tag,
            status=AssetStatus.AVAILABLE.value,
            created_by_id=actor_id,
        )
        db.add(asset)
        db.commit()
        db.refresh(asset)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.CREATE_ASSET,
            resource_type=ResourceType.ASSET,
            resource_id=asset.id,
            new_values=asset.to_dict(),
        )
        logger.info(f"Created asset {asset.asset_tag}")
        return asset

    @staticmethod
    def update_asset(db: Session, asset_id: int, data: AssetUpdate, actor_id: int) -> Asset:
        """Update descriptive fields or move between non-assigned statuses"""
        asset = AssetService.get_asset(db, asset_id)
        old_values = asset.to_dict()

        changes = data.model_dump(exclude_unset=True)
        status = changes.pop("status", None)
        if status is not None:
            status = AssetStatus(status).value
            if status == AssetStatus.ASSIGNED.value and asset.assigned_to_id is None:
                raise InvalidStateError("Use the assign operation to assign an asset")
            if status != AssetStatus.ASSIGNED.value and asset.assigned_to_id is not None:
                raise InvalidStateError("Unassign the asset before changing its status")
            asset.status = status

        for field, value in changes.items():
            if value is None and field == "name":
                continue
            setattr(asset, field, value)

        db.commit()
        db.refresh(asset)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_ASSET,
            resource_type=ResourceType.ASSET,
            resource_id=asset.id,
            old_values=old_values,
            new_values=asset.to_dict(),
        )
        return asset

    @staticmethod
    def delete_asset(db: Session, asset_id: int, actor_id: int) -> None:
        """Delete an asset; refused while it is assigned"""
        asset = AssetService.get_asset(db, asset_id)
        if asset.status == AssetStatus.ASSIGNED.value or asset.assigned_to_id is not None:
            raise InvalidStateError("Cannot delete an assigned asset")

        old_values = asset.to_dict()
        db.delete(asset)
        db.commit()

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.DELETE_ASSET,
            resource_type=ResourceType.ASSET,
            resource_id=asset_id,
            old_values=old_values,
        )
        logger.info(f"Deleted asset {old_values['asset_tag']}")

    @staticmethod
    def assign_asset(db: Session, asset_id: int, assigned_to_id: int, actor_id: int, notes: Optional[str] = None) -> Asset:
        """
        Assign an available asset to a user

        Args:
            db: Database session
            asset_id: Asset ID
            assigned_to_id: Receiving user ID
            actor_id: Acting user
            notes: Optional assignment notes, kept in the audit entry

        Returns:
            Updated asset
        """
        asset = AssetService.get_asset(db, asset_id)
        if asset.status != AssetStatus.AVAILABLE.value:
            raise AssetNotAvailableError(asset.status)
        if not db.query(User).filter(User.id == assigned_to_id).first():
            raise ResourceNotFoundError("User")

        old_values = asset.to_dict()
        asset.assigned_to_id = assigned_to_id
        asset.assigned_at = utcnow()
        asset.status = AssetStatus.ASSIGNED.value
        db.commit()
        db.refresh(asset)

        new_values = asset.to_dict()
        if notes:
            new_values["notes"] = notes
        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.ASSIGN_ASSET,
            resource_type=ResourceType.ASSET,
            resource_id=asset.id,
            old_values=old_values,
            new_values=new_values,
        )
        logger.info(f"Asset {asset.asset_tag} assigned to user {assigned_to_id}")
        return asset

    @staticmethod
    def unassign_asset(db: Session, asset_id: int, actor_id: int) -> Asset:
        """Return an assigned asset to the available pool"""
        asset = AssetService.get_asset(db, asset_id)
        if asset.assigned_to_id is None and asset.status != AssetStatus.ASSIGNED.value:
            raise InvalidStateError("Asset is not assigned")

        old_values = asset.to_dict()
        asset.assigned_to_id = None
        asset.assigned_at = None
        asset.status = AssetStatus.AVAILABLE.value
        db.commit()
        db.refresh(asset)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UNASSIGN_ASSET,
            resource_type=ResourceType.ASSET,
            resource_id=asset.id,
            old_values=old_values,
            new_values=asset.to_dict(),
        )
        logger.info(f"Asset {asset.asset_tag} unassigned")
        return asset

    @staticmethod
    def _ensure_user(db: Session, user_id: Optional[int]) -> None:
        if user_id is not None and not db.query(User).filter(User.id == user_id).first():
            raise ResourceNotFoundError("User")

    @staticmethod
    def get_maintenance(db: Session, maintenance_id: int) -> MaintenanceSchedule:
        schedule = db.query(MaintenanceSchedule).filter(MaintenanceSchedule.id == maintenance_id).first()
        if not schedule:
            raise ResourceNotFoundError("Maintenance schedule")
        return schedule

    @staticmethod
    def list_maintenance(db: Session, asset_id: Optional[int] = None, upcoming: bool = False) -> List[MaintenanceSchedule]:
        """Schedules by date; upcoming keeps future jobs that are still SCHEDULED"""
        query = db.query(MaintenanceSchedule)
        if asset_id is not None:
            query = query.filter(MaintenanceSchedule.asset_id == asset_id)
        if upcoming:
            query = query.filter(
                MaintenanceSchedule.status == MaintenanceStatus.SCHEDULED.value,
                MaintenanceSchedule.scheduled_date >= utcnow(),
            )
        return query.order_by(MaintenanceSchedule.scheduled_date.asc(), MaintenanceSchedule.id.asc()).all()

    @staticmethod
    def schedule_maintenance(db: Session, data: MaintenanceCreate, actor_id: int) -> MaintenanceSchedule:
        """
        Plan maintenance for an asset

        Args:
            db: Database session
            data: Schedule fields
            actor_id: Acting user

        Returns:
            Created schedule

        Raises:
            ResourceNotFoundError: Unknown asset or assignee
            InvalidStateError: Asset is retired
        """
        asset = AssetService.get_asset(db, data.asset_id)
        if asset.status == AssetStatus.RETIRED.value:
            raise InvalidStateError("Cannot schedule maintenance for a retired asset")
        AssetService._ensure_user(db, data.assigned_to_id)

        schedule = MaintenanceSchedule(
            **data.model_dump(exclude={"type", "status"}),
            type=data.type.value,
            status=data.status.value,
            created_by_id=actor_id,
        )
        if schedule.status == MaintenanceStatus.COMPLETED.value:
            schedule.completed_date = utcnow()
        db.add(schedule)
        db.commit()
        db.refresh(schedule)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.SCHEDULE_MAINTENANCE,
            resource_type=ResourceType.MAINTENANCE,
            resource_id=schedule.id,
            new_values=schedule.to_dict(),
        )
        logger.info(f"Maintenance {schedule.id} scheduled for asset {asset.asset_tag} on {schedule.scheduled_date}")
        return schedule

    @staticmethod
    def update_maintenance(db: Session, maintenance_id: int, data: MaintenanceUpdate, actor_id: int) -> MaintenanceSchedule:
        """Update a schedule; COMPLETED stamps completed_date, leaving it clears the stamp"""
        schedule = AssetService.get_maintenance(db, maintenance_id)
        if schedule.status in (MaintenanceStatus.COMPLETED.value, MaintenanceStatus.CANCELLED.value) \
                and data.status is None:
            raise InvalidStateError(f"Maintenance is already {schedule.status.lower()}")
        old_values = schedule.to_dict()

        changes = data.model_dump(exclude_unset=True)
        status = changes.pop("status", None)
        if "assigned_to_id" in changes:
            AssetService._ensure_user(db, changes["assigned_to_id"])
        for field, value in changes.items():
            if value is None and field in ("title", "scheduled_date"):
                continue
            setattr(schedule, field, value)

        if status is not None:
            schedule.status = MaintenanceStatus(status).value
            if schedule.status == MaintenanceStatus.COMPLETED.value:
                schedule.completed_date = schedule.completed_date or utcnow()
            else:
                schedule.completed_date = None

        db.commit()
        db.refresh(schedule)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_MAINTENANCE,
            resource_type=ResourceType.MAINTENANCE,
            resource_id=schedule.id,
            old_values=old_values,
            new_values=schedule.to_dict(),
        )
        return schedule

    @staticmethod
    def _grouped_counts(db: Session, column) -> List[dict]:
        rows = (
            db.query(column, func.count(Asset.id))
            .filter(column.isnot(None), column != "")
            .group_by(column)
            .order_by(column.asc())
            .all()
        )
        return [{"name": name, "count": count} for name, count in rows]

    @staticmethod
    def list_categories(db: Session) -> List[dict]:
        """Distinct asset categories with asset counts"""
        return AssetService._grouped_counts(db, Asset.category)

    @staticmethod
    def list_locations(db: Session) -> List[dict]:
        """Distinct asset locations with asset counts"""
        return AssetService._grouped_counts(db, Asset.location)

    @staticmethod
    def get_stats(db: Session) -> dict:
        counts = dict(db.query(Asset.status, func.count(Asset.id)).group_by(Asset.status).all())
        now = utcnow()
        upcoming = (
            db.query(func.count(MaintenanceSchedule.id))
            .filter(
                MaintenanceSchedule.status == MaintenanceStatus.SCHEDULED.value,
                MaintenanceSchedule.scheduled_date >= now,
                MaintenanceSchedule.scheduled_date <= now + timedelta(days=UPCOMING_MAINTENANCE_DAYS),
            )
            .scalar()
        )
        return {
            "total_assets": sum(counts.values()),
            "available_assets": counts.get(AssetStatus.AVAILABLE.value, 0),
            "assigned_assets": counts.get(AssetStatus.ASSIGNED.value, 0),
            "maintenance_assets": counts.get(AssetStatus.MAINTENANCE.value, 0),
            "retired_assets": counts.get(AssetStatus.RETIRED.value, 0),
            "upcoming_maintenance": upcoming,
        }


asset_service = AssetService()
