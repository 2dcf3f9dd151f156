"""Submission model definitions."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from lms_backend.core.choices import SubmissionStatus
from lms_backend.database import Base
from lms_backend.models.user import generate_id, utcnow


class StudentAssignment(Base):
    """A student's deliverable for one assignment and its grading state."""
    __tablename__ = "student_assignments"
    __table_args__ = (
        UniqueConstraint('student_id', 'assignment_id', name='uq_student_assignment_pair'),
        CheckConstraint('grade IS NULL OR (grade >= 0 AND grade <= 100)', name='ck_student_assignment_grade'),
    )

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(String, unique=True, nullable=False, index=True, default=generate_id)
    student_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assignment_id = Column(
        String,
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submission_status = Column(
        Enum(SubmissionStatus, native_enum=False, length=20),
        default=SubmissionStatus.EMPTY,
        nullable=False,
    )
    submission_name = Column(String)
    submitted_at = Column(DateTime(timezone=True))
    grade = Column(Integer)
    comment = Column(String)
    graded_by = Column(String)
    graded_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    student = relationship("User", back_populates="submissions")
    assignment = relationship("Assignment", back_populates="submissions")
