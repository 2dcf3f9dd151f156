"""Teacher and teaching-assignment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from lms_backend.database import Base
from lms_backend.models.user import generate_id, utcnow

DEFAULT_TEACHING_ROLE = 'LECTURER'


class Teacher(Base):
    """Teaching staff listed in the academic reference data."""
    __tablename__ = "teachers"

    id = Column(String, primary_key=True, default=generate_id)
    first_name = Column(String, nullable=False)
    last_name = Column(String)
    email = Column(String, unique=True, index=True)
    title = Column(String, default='Teacher')
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    unit_links = relationship(
        "UnitTeacher",
        back_populates="teacher",
        order_by="UnitTeacher.unit_code",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def units_taught(self) -> list[str]:
        return [link.unit_code for link in self.unit_links]


class UnitTeacher(Base):
    """Links a teacher to a unit they teach."""
    __tablename__ = "unit_teachers"
    __table_args__ = (
        UniqueConstraint('teacher_id', 'unit_code', name='uq_unit_teacher_pair'),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(String, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_code = Column(
        String,
        ForeignKey("units.code", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(String, default=DEFAULT_TEACHING_ROLE, nullable=False)

    teacher = relationship("Teacher", back_populates="unit_links")
    unit = relationship("Unit", back_populates="teacher_links")
