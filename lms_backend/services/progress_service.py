import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from lms_backend.core.choices import Role
from lms_backend.core.errors import not_found
from lms_backend.models.progress import WEEK_FIELDS, StudentProgress
from lms_backend.models.unit import Unit
from lms_backend.models.user import User
from lms_backend.services import metrics

logger = logging.getLogger(__name__)


class ProgressService:
    """Reads and writes the per-student, per-unit weekly completion rows."""

    def __init__(self, db: Session):
        self.db = db

    def _with_unit(self):
        return self.db.query(StudentProgress).options(
            joinedload(StudentProgress.unit).joinedload(Unit.course)
        )

    def find(self, student_id: str, unit_code: str) -> StudentProgress | None:
        return self._with_unit().filter(
            StudentProgress.student_id == student_id,
            StudentProgress.unit_code == unit_code,
        ).first()

    def get_student_progress(self, student_id: str) -> list[StudentProgress]:
        return self._with_unit().filter(
            StudentProgress.student_id == student_id,
        ).order_by(StudentProgress.unit_code.asc()).all()

    def get_student_unit_progress(self, student_id: str, unit_code: str) -> StudentProgress:
        progress = self.find(student_id, unit_code)
        if progress is None:
            raise not_found('Progress record not found')
        return progress

    def create_progress(self, student_id: str, unit_code: str) -> StudentProgress:
        """Create the row for (student, unit), or return the one that already exists."""
        student = self.db.query(User).filter(User.id == student_id).first()
        if student is None:
            raise not_found('Student not found')
        unit = self.db.query(Unit).filter(Unit.code == unit_code).first()
        if unit is None:
            raise not_found('Unit not found')

        existing = self.find(student_id, unit_code)
        if existing is not None:
            return existing

        self.db.add(StudentProgress(student_id=student_id, unit_code=unit_code))
        try:
            self.db.commit()
        except IntegrityError:
            # a concurrent request created the same row first
            self.db.rollback()
            existing = self.find(student_id, unit_code)
            if existing is None:
                raise
            return existing

        return self.find(student_id, unit_code)

    def update_progress(
        self,
        student_id: str,
        unit_code: str,
        changes: dict,
        updated_by: str | None = None,
    ) -> StudentProgress:
        progress = self.get_student_unit_progress(student_id, unit_code)

        for field in WEEK_FIELDS:
            if changes.get(field) is not None:
                setattr(progress, field, changes[field])
        if updated_by is not None:
            progress.updated_by = updated_by
        progress.last_updated = datetime.now(timezone.utc)

        self.db.commit()
        self.db.refresh(progress)
        return progress

    def calculate_progress_percentage(self, student_id: str, unit_code: str) -> int:
        progress = self.db.query(StudentProgress).filter(
            StudentProgress.student_id == student_id,
            StudentProgress.unit_code == unit_code,
        ).first()
        if progress is None:
            return 0
        return metrics.progress_percentage(progress)

    def get_unit_progress_summary(self, unit_code: str) -> list[dict]:
        rows = (
            self.db.query(StudentProgress)
            .join(User, StudentProgress.student_id == User.id)
            .options(joinedload(StudentProgress.student))
            .filter(StudentProgress.unit_code == unit_code)
            .order_by(User.first_name.asc())
            .all()
        )
        return [
            {
                'progress': row,
                'completed_weeks': metrics.completed_weeks(row),
                'progress_percentage': metrics.progress_percentage(row),
            }
            for row in rows
        ]

    def initialize_unit_progress(self, unit_code: str) -> dict:
        """Create missing rows for every student of the unit's course; existing rows are kept."""
        unit = self.db.query(Unit).filter(Unit.code == unit_code).first()
        if unit is None:
            raise not_found('Unit not found')

        student_ids = [
            student_id
            for (student_id,) in self.db.query(User.id).filter(
                User.role == Role.STUDENT,
                User.course_code == unit.course_code,
            )
        ]
        existing_ids = {
            student_id
            for (student_id,) in self.db.query(StudentProgress.student_id).filter(
                StudentProgress.unit_code == unit_code,
            )
        }

        created = 0
        for student_id in student_ids:
            if student_id in existing_ids:
                continue
            self.db.add(StudentProgress(student_id=student_id, unit_code=unit_code))
            created += 1

        if created:
            self.db.commit()
        logger.info('Initialized progress for %s students in unit %s', created, unit_code)

        return {
            'message': f'Initialized progress for {created} students',
            'records_created': created,
        }
