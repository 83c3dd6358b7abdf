"""Service request and comment models"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from servicedesk.core.database import Base


class ServiceRequest(Base):
    """Request raised by a user towards IT support"""

    __tablename__ = "service_requests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String(30), nullable=False)
    priority = Column(String(20), default="MEDIUM", nullable=False)
    status = Column(String(20), default="PENDING", nullable=False)
    department = Column(String(100))
    due_date = Column(DateTime(timezone=True))
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    closed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    requester = relationship("User", foreign_keys=[requester_id])
    assignee = relationship("User", foreign_keys=[assignee_id])
    comments = relationship(
        "RequestComment",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestComment.created_at.desc()",
    )

    __table_args__ = (
        Index('idx_service_requests_status', 'status'),
        Index('idx_service_requests_requester', 'requester_id'),
        Index('idx_service_requests_assignee', 'assignee_id'),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'IN_PROGRESS', 'COMPLETED', 'REJECTED', 'CANCELLED')",
            name='chk_request_status'
        ),
        CheckConstraint(
            "priority IN ('LOW', 'MEDIUM', 'HIGH', 'CRITICAL')",
            name='chk_request_priority'
        ),
    )

    def __repr__(self):
        return f"<ServiceRequest(id={self.id}, title='{self.title}', status='{self.status}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
            "status": self.status,
            "department": self.department,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "requester_id": self.requester_id,
            "assignee_id": self.assignee_id,
        }


class RequestComment(Base):
    """Comment attached to a service request"""

    __tablename__ = "request_comments"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    request = relationship("ServiceRequest", back_populates="comments")
    author = relationship("User")

    __table_args__ = (
        Index('idx_request_comments_request', 'request_id'),
    )
