import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session, joinedload

from lms_backend.core.choices import SubmissionStatus
from lms_backend.core.errors import conflict, not_found
from lms_backend.models.assignment import Assignment
from lms_backend.models.submission import StudentAssignment
from lms_backend.models.unit import Unit
from lms_backend.models.user import User

logger = logging.getLogger(__name__)


class SubmissionService:
    """Submission records and their grading state."""

    def __init__(self, db: Session):
        self.db = db

    def _with_relations(self):
        return self.db.query(StudentAssignment).options(
            joinedload(StudentAssignment.student),
            joinedload(StudentAssignment.assignment).joinedload(Assignment.unit).joinedload(Unit.course),
        )

    def get(self, submission_id: str) -> StudentAssignment:
        submission = self._with_relations().filter(StudentAssignment.submission_id == submission_id).first()
        if submission is None:
            raise not_found('Submission not found')
        return submission

    def get_student_submissions(self, student_id: str) -> list[StudentAssignment]:
        return (
            self._with_relations()
            .join(Assignment, StudentAssignment.assignment_id == Assignment.id)
            .filter(StudentAssignment.student_id == student_id)
            .order_by(Assignment.deadline.asc())
            .all()
        )

    def create(
        self,
        student_id: str,
        assignment_id: str,
        submission_status: SubmissionStatus = SubmissionStatus.EMPTY,
        submission_name: str | None = None,
        submission_id: str | None = None,
    ) -> StudentAssignment:
        if self.db.query(User.id).filter(User.id == student_id).first() is None:
            raise not_found('Student not found')
        if self.db.query(Assignment.id).filter(Assignment.id == assignment_id).first() is None:
            raise not_found('Assignment not found')

        duplicate = self.db.query(StudentAssignment.id).filter(
            StudentAssignment.student_id == student_id,
            StudentAssignment.assignment_id == assignment_id,
        ).first()
        if duplicate is not None:
            raise conflict('A submission for this assignment already exists.')
        if submission_id and self.db.query(StudentAssignment.id).filter(
            StudentAssignment.submission_id == submission_id,
        ).first() is not None:
            raise conflict('A submission with this id already exists.')

        submission = StudentAssignment(
            student_id=student_id,
            assignment_id=assignment_id,
            submission_status=submission_status,
            submission_name=submission_name,
        )
        if submission_id:
            submission.submission_id = submission_id
        if submission_status == SubmissionStatus.SUBMITTED:
            submission.submitted_at = datetime.now(timezone.utc)

        self.db.add(submission)
        self.db.commit()
        return self.get(submission.submission_id)

    def update_grade(
        self,
        submission_id: str,
        grade: int,
        comment: str | None = None,
        graded_by: str | None = None,
    ) -> StudentAssignment:
        submission = self.get(submission_id)
        submission.grade = grade
        submission.comment = comment
        submission.graded_by = graded_by
        submission.graded_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info('Submission %s graded %s by %s', submission_id, grade, graded_by)
        return self.get(submission_id)

    def update_submission(self, submission_id: str, changes: dict) -> StudentAssignment:
        submission = self.get(submission_id)
        new_status = changes.get('submission_status')
        if new_status is not None:
            submission.submission_status = new_status
            # only the first submission is stamped
            if new_status == SubmissionStatus.SUBMITTED and submission.submitted_at is None:
                submission.submitted_at = datetime.now(timezone.utc)
        if 'submission_name' in changes:
            submission.submission_name = changes['submission_name']
        self.db.commit()
        return self.get(submission_id)
