from datetime import datetime

from lms_backend.core.choices import SubmissionStatus
from lms_backend.schemas.academic import AssignmentDetail, AssignmentResponse
from lms_backend.schemas.common import ORMModel
from lms_backend.schemas.user import PersonRef


class SubmissionResponse(ORMModel):
    id: int
    submission_id: str
    student_id: str
    assignment_id: str
    submission_status: SubmissionStatus
    submission_name: str | None = None
    submitted_at: datetime | None = None
    grade: int | None = None
    comment: str | None = None
    graded_by: str | None = None
    graded_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubmissionWithAssignment(SubmissionResponse):
    assignment: AssignmentDetail


class SubmissionWithStudent(SubmissionResponse):
    student: PersonRef | None = None


class GradedSubmission(SubmissionWithStudent):
    assignment: AssignmentResponse
