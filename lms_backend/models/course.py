"""Course model definitions."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from lms_backend.database import Base
from lms_backend.models.user import utcnow


class Course(Base):
    """A degree programme made of units."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    units = relationship(
        "Unit",
        back_populates="course",
        order_by="Unit.code",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    students = relationship("User", back_populates="course")

    @property
    def unit_codes(self) -> list[str]:
        return [unit.code for unit in self.units]
