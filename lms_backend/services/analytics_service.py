import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lms_backend.core.choices import Role, SubmissionStatus
from lms_backend.core.errors import not_found
from lms_backend.models.assignment import Assignment
from lms_backend.models.course import Course
from lms_backend.models.progress import StudentProgress
from lms_backend.models.submission import StudentAssignment
from lms_backend.models.teacher import Teacher, UnitTeacher
from lms_backend.models.unit import Unit
from lms_backend.models.user import User
from lms_backend.services import metrics
from lms_backend.services.progress_service import ProgressService
from lms_backend.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Dashboard aggregates over progress and submission rows."""

    def __init__(self, db: Session):
        self.db = db

    def _count(self, column, *criteria) -> int:
        return self.db.query(func.count(column)).filter(*criteria).scalar() or 0

    def _progress_rows(self, *criteria) -> list[StudentProgress]:
        return self.db.query(StudentProgress).filter(*criteria).all()

    def _submission_columns(self, *criteria) -> list[tuple]:
        return (
            self.db.query(StudentAssignment.grade, StudentAssignment.submission_status)
            .join(Assignment, StudentAssignment.assignment_id == Assignment.id)
            .filter(*criteria)
            .all()
        )

    def _scoped_metrics(self, unit_filter, progress_criteria) -> dict:
        submissions = self._submission_columns(unit_filter)
        return {
            'assignment_count': self._count(Assignment.id, unit_filter),
            'avg_progress': metrics.average_progress(self._progress_rows(*progress_criteria)),
            'avg_grade': metrics.average_grade(grade for grade, _ in submissions),
            'submission_rate': metrics.submission_rate(status for _, status in submissions),
            'failed_assignments': sum(
                1 for grade, _ in submissions if grade is not None and grade < metrics.FAILING_GRADE
            ),
        }

    def get_dashboard_metrics(self) -> dict:
        submissions = self.db.query(StudentAssignment.grade, StudentAssignment.submission_status).all()
        return {
            'student_count': self._count(User.id, User.role == Role.STUDENT),
            'teacher_count': self._count(Teacher.id),
            'course_count': self._count(Course.id),
            'avg_progress': metrics.average_progress(self._progress_rows()),
            'avg_grade': metrics.average_grade(grade for grade, _ in submissions),
            'submission_rate': metrics.submission_rate(status for _, status in submissions),
        }

    def get_course_metrics(self, course_code: str) -> dict:
        course = self.db.query(Course).filter(Course.code == course_code).first()
        if course is None:
            raise not_found('Course not found')

        unit_codes = [code for (code,) in self.db.query(Unit.code).filter(Unit.course_code == course_code)]
        in_course_units = Assignment.unit_code.in_(unit_codes)
        student_ids = select(User.id).where(
            User.role == Role.STUDENT,
            User.course_code == course_code,
        )

        return {
            'course_code': course_code,
            'student_count': self._count(User.id, User.role == Role.STUDENT, User.course_code == course_code),
            'teacher_count': self._count(
                func.distinct(UnitTeacher.teacher_id),
                UnitTeacher.unit_code.in_(unit_codes),
            ),
            **self._scoped_metrics(
                in_course_units,
                (
                    StudentProgress.unit_code.in_(unit_codes),
                    StudentProgress.student_id.in_(student_ids),
                ),
            ),
        }

    def get_unit_metrics(self, unit_code: str) -> dict:
        unit = self.db.query(Unit).filter(Unit.code == unit_code).first()
        if unit is None:
            raise not_found('Unit not found')

        return {
            'unit_code': unit_code,
            'student_count': self._count(User.id, User.role == Role.STUDENT, User.course_code == unit.course_code),
            'teacher_count': self._count(UnitTeacher.teacher_id, UnitTeacher.unit_code == unit_code),
            **self._scoped_metrics(
                Assignment.unit_code == unit_code,
                (StudentProgress.unit_code == unit_code,),
            ),
        }

    def get_student_analytics(self, student_id: str) -> dict:
        student = self.db.query(User).filter(User.id == student_id, User.role == Role.STUDENT).first()
        if student is None:
            raise not_found('Student not found')

        submissions = SubmissionService(self.db).get_student_submissions(student_id)
        progress = ProgressService(self.db).get_student_progress(student_id)

        return {
            'student': student,
            'metrics': {
                'total_assignments': len(submissions),
                'submitted_assignments': sum(
                    1 for row in submissions if row.submission_status == SubmissionStatus.SUBMITTED
                ),
                'submission_rate': metrics.submission_rate(row.submission_status for row in submissions),
                'average_grade': metrics.average_grade(row.grade for row in submissions),
                'overall_progress': metrics.average_progress(progress),
                'graded_assignments': sum(1 for row in submissions if row.grade is not None),
            },
            'submissions': submissions,
            'progress': progress,
        }

    def get_trends(self, period: str = 'month', interval: str = 'day', now: datetime | None = None) -> list[dict]:
        """Submission count and average grade per bucket over the lookback window."""
        if period not in metrics.TREND_PERIOD_DAYS:
            raise ValueError(f'Unsupported trend period: {period}')
        if interval not in metrics.TREND_INTERVALS:
            raise ValueError(f'Unsupported trend interval: {interval}')

        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=metrics.TREND_PERIOD_DAYS[period])
        rows = self.db.query(StudentAssignment.submitted_at, StudentAssignment.grade).filter(
            StudentAssignment.submitted_at.is_not(None),
            StudentAssignment.submitted_at >= since,
            StudentAssignment.submitted_at <= now,
        ).all()

        buckets: dict = defaultdict(list)
        for submitted_at, grade in rows:
            buckets[metrics.bucket_start(submitted_at, interval)].append(grade)

        logger.debug('Trend buckets for %s/%s: %s', period, interval, len(buckets))
        return [
            {
                'date': bucket.isoformat(),
                'submissions': len(grades),
                'average_grade': metrics.average_grade(grades),
            }
            for bucket, grades in sorted(buckets.items())
        ]
