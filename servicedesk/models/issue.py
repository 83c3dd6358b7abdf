"""Issue tracking and release models"""

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Table, Index, CheckConstraint, JSON
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from servicedesk.core.database import Base


release_issues = Table(
    "release_issues",
    Base.metadata,
    Column("release_id", Integer, ForeignKey("releases.id", ondelete="CASCADE"), primary_key=True),
    Column("issue_id", Integer, ForeignKey("issues.id", ondelete="CASCADE"), primary_key=True),
)


class Issue(Base):
    """Bug report, feature request or task"""

    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String(30), nullable=False)
    priority = Column(String(20), default="MEDIUM", nullable=False)
    status = Column(String(20), default="OPEN", nullable=False)
    labels = Column(JSON, default=list, nullable=False)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    closed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reporter = relationship("User", foreign_keys=[reporter_id])
    assignee = relationship("User", foreign_keys=[assignee_id])
    releases = relationship("Release", secondary=release_issues, back_populates="issues")

    __table_args__ = (
        Index('idx_issues_status', 'status'),
        Index('idx_issues_assignee', 'assignee_id'),
        CheckConstraint(
            "status IN ('OPEN', 'IN_PROGRESS', 'RESOLVED', 'CLOSED')",
            name='chk_issue_status'
        ),
    )

    def __repr__(self):
        return f"<Issue(id={self.id}, title='{self.title}', status='{self.status}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
            "status": self.status,
            "labels": list(self.labels or []),
            "reporter_id": self.reporter_id,
            "assignee_id": self.assignee_id,
        }


class Release(Base):
    """Versioned release grouping resolved issues"""

    __tablename__ = "releases"

    id = Column(Integer, primary_key=True, index=True)
    version = Column(String(50), unique=True, nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    release_date = Column(DateTime(timezone=True), nullable=False)
    is_prerelease = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    issues = relationship("Issue", secondary=release_issues, back_populates="releases")

    def __repr__(self):
        return f"<Release(id={self.id}, version='{self.version}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "version": self.version,
            "title": self.title,
            "description": self.description,
            "release_date": self.release_date.isoformat() if self.release_date else None,
            "is_prerelease": self.is_prerelease,
        }
