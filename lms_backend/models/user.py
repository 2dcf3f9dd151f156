"""User model definitions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from lms_backend.core.choices import Role
from lms_backend.database import Base


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Represents a student or coordinator account."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_id)
    first_name = Column(String, nullable=False)
    last_name = Column(String)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    role = Column(Enum(Role, native_enum=False, length=20), nullable=False, index=True)

    # student attributes
    course_code = Column(String, ForeignKey("courses.code", ondelete="SET NULL"), index=True)
    year = Column(Integer)

    # coordinator attributes
    title = Column(String)
    access_level = Column(String)
    course_managed = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    course = relationship("Course", back_populates="students")
    progress = relationship(
        "StudentProgress",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    submissions = relationship(
        "StudentAssignment",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
