"""Unit model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from lms_backend.database import Base
from lms_backend.models.user import utcnow


class Unit(Base):
    """A subject within a course, taught over four weekly materials."""
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String)
    course_code = Column(
        String,
        ForeignKey("courses.code", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    current_week = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="units")
    assignments = relationship(
        "Assignment",
        back_populates="unit",
        order_by="Assignment.deadline",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    progress = relationship(
        "StudentProgress",
        back_populates="unit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    teacher_links = relationship(
        "UnitTeacher",
        back_populates="unit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
