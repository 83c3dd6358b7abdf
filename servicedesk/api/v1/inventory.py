"""Asset inventory routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from servicedesk.core.database import get_db
from servicedesk.schemas.asset import (
    AssetCreate,
    AssetUpdate,
    AssetAssignment,
    AssetResponse,
    AssetStatus,
    MaintenanceCreate,
    MaintenanceResponse,
    MaintenanceUpdate,
    NamedCount,
)
from servicedesk.schemas.response import Page
from servicedesk.services.asset_service import asset_service
from servicedesk.api.permissions import authorize
from servicedesk.models.user import User

router = APIRouter(dependencies=[Depends(authorize)])


@router.get("/assets", response_model=Page[AssetResponse])
def list_assets(
    page: int = 1,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    status: Optional[AssetStatus] = None,
    category: Optional[str] = None,
    assigned_to_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """List assets with optional search and filters"""
    return asset_service.list_assets(
        db, page, limit,
        search=search,
        status=status.value if status else None,
        category=category,
        assigned_to_id=assigned_to_id,
    )


@router.post("/assets", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
def create_asset(
    asset_data: AssetCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Register an asset; the tag is generated when omitted"""
    return asset_service.create_asset(db, asset_data, current_user.id)


@router.get("/assets/{asset_id}", response_model=AssetResponse)
def get_asset(asset_id: int, db: Session = Depends(get_db)):
    return asset_service.get_asset(db, asset_id)


@router.put("/assets/{asset_id}", response_model=AssetResponse)
def update_asset(
    asset_id: int,
    asset_data: AssetUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return asset_service.update_asset(db, asset_id, asset_data, current_user.id)


@router.delete("/assets/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset(
    asset_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """Delete an asset that is not assigned"""
    asset_service.delete_asset(db, asset_id, current_user.id)


@router.put("/assets/{asset_id}/assign", response_model=AssetResponse)
def assign_asset(
    asset_id: int,
    assignment: AssetAssignment,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    """
    Assign an asset to a user

    Args:
        asset_id: Asset to assign; must be AVAILABLE
        assignment: Receiving user and optional notes

    Returns:
        Updated asset
    """
    return asset_service.assign_asset(
        db, asset_id, assignment.assigned_to_id, current_user.id, notes=assignment.notes
    )


@router.put("/assets/{asset_id}/unassign", response_model=AssetResponse)
def unassign_asset(
    asset_id: int,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return asset_service.unassign_asset(db, asset_id, current_user.id)


@router.get("/stats")
def get_inventory_stats(db: Session = Depends(get_db)):
    """Asset counts by status"""
    return asset_service.get_stats(db)


@router.get("/maintenance", response_model=List[MaintenanceResponse])
def list_maintenance(
    asset_id: Optional[int] = None,
    upcoming: bool = False,
    db: Session = Depends(get_db),
):
    """Maintenance schedules ordered by date"""
    return asset_service.list_maintenance(db, asset_id=asset_id, upcoming=upcoming)


@router.post("/maintenance", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
def schedule_maintenance(
    maintenance_data: MaintenanceCreate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return asset_service.schedule_maintenance(db, maintenance_data, current_user.id)


@router.put("/maintenance/{maintenance_id}", response_model=MaintenanceResponse)
def update_maintenance(
    maintenance_id: int,
    maintenance_data: MaintenanceUpdate,
    current_user: User = Depends(authorize),
    db: Session = Depends(get_db),
):
    return asset_service.update_maintenance(db, maintenance_id, maintenance_data, current_user.id)


@router.get("/categories", response_model=List[NamedCount])
def list_categories(db: Session = Depends(get_db)):
    return asset_service.list_categories(db)


@router.get("/locations", response_model=List[NamedCount])
def list_locations(db: Session = Depends(get_db)):
    return asset_service.list_locations(db)
