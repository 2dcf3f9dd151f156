"""Student progress model definitions."""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from lms_backend.core.choices import MaterialStatus
from lms_backend.database import Base
from lms_backend.models.user import utcnow

WEEK_FIELDS = ('week1_material', 'week2_material', 'week3_material', 'week4_material')


def _material_column():
    return Column(
        Enum(MaterialStatus, native_enum=False, length=20),
        default=MaterialStatus.NOT_DONE,
        nullable=False,
    )


class StudentProgress(Base):
    """Completion of the four weekly materials of one unit by one student."""
    __tablename__ = "student_progress"
    __table_args__ = (
        UniqueConstraint('student_id', 'unit_code', name='uq_student_progress_student_unit'),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_code = Column(
        String,
        ForeignKey("units.code", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    week1_material = _material_column()
    week2_material = _material_column()
    week3_material = _material_column()
    week4_material = _material_column()
    last_updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    updated_by = Column(String)

    student = relationship("User", back_populates="progress")
    unit = relationship("Unit", back_populates="progress")

    @property
    def week_flags(self) -> list[MaterialStatus]:
        return [getattr(self, field) for field in WEEK_FIELDS]
