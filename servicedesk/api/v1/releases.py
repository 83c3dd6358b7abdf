"""Release routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from servicedesk.core.database import get_db
from servicedesk.schemas.issue import ReleaseCreate, ReleaseUpdate, ReleaseIssueLink, ReleaseResponse
from servicedesk.schemas.response import Page
from servicedesk.services.release_service import release_service
from servicedesk.api.permissions import authorize
from servicedesk.models.user import User

router = APIRouter(dependencies=[Depends(authorize)])


@router.get("", response_model=Page[ReleaseResponse])
def list_releases(
    page: int = 1,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    is_prerelease: Optional[bool] = None,
    db: Session = Depends(get_db),
):
    """List releases, newest release date first"""
    return release_service.list_releases(db, page, limit, search=search, is_prerelease=is_prerelease)


@router.post("", response_model=ReleaseResponse, status_code=status.HTTP_201_CREATED)
def create_release(
    release_data: ReleaseCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Create a release; the version must be unique"""
    return release_service.create_release(db, release_data, current_user.id)


@router.get("/{release_id}", response_model=ReleaseResponse)
def get_release(release_id: int, db: Session = Depends(get_db)):
    return release_service.get_release(db, release_id)


@router.patch("/{release_id}", response_model=ReleaseResponse)
def update_release(
    release_id: int,
    release_data: ReleaseUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return release_service.update_release(db, release_id, release_data, current_user.id)


@router.delete("/{release_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_release(
    release_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    release_service.delete_release(db, release_id, current_user.id)


@router.post("/{release_id}/issues", response_model=ReleaseResponse)
def add_issue_to_release(
    release_id: int,
    link: ReleaseIssueLink,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Link an issue; linking the same issue twice is a conflict"""
    return release_service.add_issue(db, release_id, link.issue_id, current_user.id)


@router.delete("/{release_id}/issues/{issue_id}", response_model=ReleaseResponse)
def remove_issue_from_release(
    release_id: int,
    issue_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return release_service.remove_issue(db, release_id, issue_id, current_user.id)
