"""Assignment model definitions."""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import relationship

from lms_backend.core.choices import AssignmentStatus
from lms_backend.database import Base
from lms_backend.models.user import generate_id, utcnow


class Assignment(Base):
    """An assessment published for a unit."""
    __tablename__ = "assignments"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    unit_code = Column(
        String,
        ForeignKey("units.code", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    deadline = Column(DateTime(timezone=True), nullable=False)
    published_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    status = Column(
        Enum(AssignmentStatus, native_enum=False, length=20),
        default=AssignmentStatus.OPEN,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    unit = relationship("Unit", back_populates="assignments")
    submissions = relationship(
        "StudentAssignment",
        back_populates="assignment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
