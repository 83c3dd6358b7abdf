"""Release service - versioned releases and their issue links"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from servicedesk.core.exceptions import ResourceAlreadyExistsError, ResourceNotFoundError
from servicedesk.models.issue import Issue, Release
from servicedesk.schemas.issue import ReleaseCreate, ReleaseUpdate
from servicedesk.services.audit_service import AuditAction, ResourceType, audit_service
from servicedesk.services.pagination import paginate
import logging

logger = logging.getLogger(__name__)


class ReleaseService:
    """Service for release management"""

    @staticmethod
    def get_release(db: Session, release_id: int) -> Release:
        release = db.query(Release).filter(Release.id == release_id).first()
        if not release:
            raise ResourceNotFoundError("Release")
        return release

    @staticmethod
    def _ensure_unique_version(db: Session, version: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(Release).filter(Release.version == version)
        if exclude_id is not None:
            query = query.filter(Release.id != exclude_id)
        if query.first():
            raise ResourceAlreadyExistsError(f"Release version {version}")

    @staticmethod
    def list_releases(
        db: Session,
        page: int,
        limit: int,
        search: Optional[str] = None,
        is_prerelease: Optional[bool] = None,
    ) -> dict:
        query = db.query(Release)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Release.version.ilike(pattern),
                Release.title.ilike(pattern),
                Release.description.ilike(pattern),
            ))
        if is_prerelease is not None:
            query = query.filter(Release.is_prerelease == is_prerelease)
        query = query.order_by(Release.release_date.desc(), Release.id.desc())
        return paginate(query, page, limit)

    @staticmethod
    def create_release(db: Session, data: ReleaseCreate, actor_id: int) -> Release:
        """
        Create a release with a unique version string

        Args:
            db: Database session
            data: Release fields
            actor_id: Acting user

        Returns:
            Created release
        """
        ReleaseService._ensure_unique_version(db, data.version)
        release = Release(**data.model_dump())
        db.add(release)
        db.commit()
        db.refresh(release)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.CREATE_RELEASE,
            resource_type=ResourceType.RELEASE,
            resource_id=release.id,
            new_values=release.to_dict(),
        )
        logger.info(f"Release {release.version} created")
        return release

    @staticmethod
    def update_release(db: Session, release_id: int, data: ReleaseUpdate, actor_id: int) -> Release:
        release = ReleaseService.get_release(db, release_id)
        old_values = release.to_dict()

        changes = data.model_dump(exclude_unset=True)
        if changes.get("version") and changes["version"] != release.version:
            ReleaseService._ensure_unique_version(db, changes["version"], exclude_id=release.id)
        for field, value in changes.items():
            if value is None and field in ("version", "title", "release_date", "is_prerelease"):
                continue
            setattr(release, field, value)

        db.commit()
        db.refresh(release)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.UPDATE_RELEASE,
            resource_type=ResourceType.RELEASE,
            resource_id=release.id,
            old_values=old_values,
            new_values=release.to_dict(),
        )
        return release

    @staticmethod
    def delete_release(db: Session, release_id: int, actor_id: int) -> None:
        """Delete a release; linked issues are kept"""
        release = ReleaseService.get_release(db, release_id)
        old_values = release.to_dict()
        old_values["issue_ids"] = sorted(issue.id for issue in release.issues)

        db.delete(release)
        db.commit()

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.DELETE_RELEASE,
            resource_type=ResourceType.RELEASE,
            resource_id=release_id,
            old_values=old_values,
        )
        logger.info(f"Release {old_values['version']} deleted")

    @staticmethod
    def add_issue(db: Session, release_id: int, issue_id: int, actor_id: int) -> Release:
        """Link an issue to a release; a second link of the same pair conflicts"""
        release = ReleaseService.get_release(db, release_id)
        issue = db.query(Issue).filter(Issue.id == issue_id).first()
        if not issue:
            raise ResourceNotFoundError("Issue")
        if issue in release.issues:
            raise ResourceAlreadyExistsError("Issue link for this release")

        release.issues.append(issue)
        db.commit()
        db.refresh(release)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.ADD_RELEASE_ISSUE,
            resource_type=ResourceType.RELEASE,
            resource_id=release.id,
            new_values={"issue_id": issue_id, "version": release.version},
        )
        return release

    @staticmethod
    def remove_issue(db: Session, release_id: int, issue_id: int, actor_id: int) -> Release:
        release = ReleaseService.get_release(db, release_id)
        linked = next((issue for issue in release.issues if issue.id == issue_id), None)
        if linked is None:
            raise ResourceNotFoundError("Issue link for this release")

        release.issues.remove(linked)
        db.commit()
        db.refresh(release)

        audit_service.record(
            db,
            actor_id=actor_id,
            action=AuditAction.REMOVE_RELEASE_ISSUE,
            resource_type=ResourceType.RELEASE,
            resource_id=release.id,
            old_values={"issue_id": issue_id, "version": release.version},
        )
        return release


release_service = ReleaseService()
