"""Hardware/software asset model"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from servicedesk.core.database import Base


class Asset(Base):
    """Tracked IT asset"""

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    asset_tag = Column(String(50), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    serial_number = Column(String(100))
    model = Column(String(100))
    category = Column(String(100))
    location = Column(String(100))
    status = Column(String(20), default="AVAILABLE", nullable=False)
    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(DateTime(timezone=True))
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    created_by = relationship("User", foreign_keys=[created_by_id])
    maintenance_schedules = relationship(
        "MaintenanceSchedule", back_populates="asset", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('idx_assets_status', 'status'),
        Index('idx_assets_assigned_to', 'assigned_to_id'),
        CheckConstraint(
            "status IN ('AVAILABLE', 'ASSIGNED', 'MAINTENANCE', 'RETIRED')",
            name='chk_asset_status'
        ),
    )

    def __repr__(self):
        return f"<Asset(id={self.id}, asset_tag='{self.asset_tag}', status='{self.status}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "asset_tag": self.asset_tag,
            "name": self.name,
            "serial_number": self.serial_number,
            "model": self.model,
            "category": self.category,
            "location": self.location,
            "status": self.status,
            "assigned_to_id": self.assigned_to_id,
        }


class MaintenanceSchedule(Base):
    """Planned maintenance for an asset"""

    __tablename__ = "maintenance_schedules"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    scheduled_date = Column(DateTime(timezone=True), nullable=False)
    completed_date = Column(DateTime(timezone=True))
    status = Column(String(20), default="SCHEDULED", nullable=False)
    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    asset = relationship("Asset", back_populates="maintenance_schedules")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])

    __table_args__ = (
        Index('idx_maintenance_asset', 'asset_id'),
        Index('idx_maintenance_scheduled', 'status', 'scheduled_date'),
        CheckConstraint(
            "type IN ('PREVENTIVE', 'CORRECTIVE', 'UPGRADE', 'INSPECTION')",
            name='chk_maintenance_type'
        ),
        CheckConstraint(
            "status IN ('SCHEDULED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED')",
            name='chk_maintenance_status'
        ),
    )

    def __repr__(self):
        return f"<MaintenanceSchedule(id={self.id}, asset_id={self.asset_id}, status='{self.status}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "type": self.type,
            "title": self.title,
            "scheduled_date": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "completed_date": self.completed_date.isoformat() if self.completed_date else None,
            "status": self.status,
            "assigned_to_id": self.assigned_to_id,
            "notes": self.notes,
        }
