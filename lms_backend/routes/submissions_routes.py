import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import (
    ensure_self_or_coordinator,
    get_current_user,
    require_coordinator,
    require_student,
)
from lms_backend.core.choices import Role, SubmissionStatus
from lms_backend.database import get_db
from lms_backend.models.submission import StudentAssignment
from lms_backend.models.user import User
from lms_backend.schemas.common import Envelope, ok
from lms_backend.schemas.submission import SubmissionWithAssignment
from lms_backend.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=['submissions'])

MIN_GRADE = 0
MAX_GRADE = 100


class CreateSubmissionRequest(BaseModel):
    student_id: str = Field(min_length=1)
    assignment_id: str = Field(min_length=1)
    submission_id: str | None = Field(default=None, min_length=1)
    submission_status: SubmissionStatus = SubmissionStatus.EMPTY
    submission_name: str | None = None


class GradeSubmissionRequest(BaseModel):
    grade: int = Field(ge=MIN_GRADE, le=MAX_GRADE)
    comment: str | None = None
    graded_by: str | None = None


class UpdateSubmissionRequest(BaseModel):
    submission_status: SubmissionStatus | None = None
    submission_name: str | None = None


def ensure_owner(current_user: User, submission: StudentAssignment) -> None:
    if current_user.role == Role.STUDENT and submission.student_id != current_user.id:
        logger.warning(
            'Access denied: student %s attempted to access submission %s',
            current_user.id,
            submission.submission_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Students can only access their own submissions.',
        )


@router.get('/student/{student_id}', response_model=Envelope[list[SubmissionWithAssignment]])
def get_student_submissions(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    rows = SubmissionService(db).get_student_submissions(student_id)
    return ok([SubmissionWithAssignment.model_validate(row) for row in rows])


@router.get('/{submission_id}', response_model=Envelope[SubmissionWithAssignment])
def get_submission(
    submission_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    submission = SubmissionService(db).get(submission_id)
    ensure_owner(current_user, submission)
    return ok(SubmissionWithAssignment.model_validate(submission))


@router.post('', response_model=Envelope[SubmissionWithAssignment], status_code=status.HTTP_201_CREATED)
def create_submission(
    data: CreateSubmissionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, data.student_id)
    submission = SubmissionService(db).create(
        student_id=data.student_id,
        assignment_id=data.assignment_id,
        submission_status=data.submission_status,
        submission_name=data.submission_name,
        submission_id=data.submission_id,
    )
    return ok(SubmissionWithAssignment.model_validate(submission))


@router.put('/{submission_id}/grade', response_model=Envelope[SubmissionWithAssignment])
def grade_submission(
    submission_id: str,
    data: GradeSubmissionRequest,
    current_user: User = Depends(require_coordinator),
    db: Session = Depends(get_db),
):
    submission = SubmissionService(db).update_grade(
        submission_id,
        grade=data.grade,
        comment=data.comment,
        graded_by=data.graded_by or current_user.id,
    )
    return ok(SubmissionWithAssignment.model_validate(submission))


@router.put('/{submission_id}', response_model=Envelope[SubmissionWithAssignment])
def update_submission(
    submission_id: str,
    data: UpdateSubmissionRequest,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    service = SubmissionService(db)
    ensure_owner(current_user, service.get(submission_id))
    submission = service.update_submission(submission_id, data.model_dump(exclude_unset=True, exclude_none=True))
    return ok(SubmissionWithAssignment.model_validate(submission))
