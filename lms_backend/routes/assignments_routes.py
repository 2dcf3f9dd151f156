from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session, joinedload

from lms_backend.auth.dependencies import ensure_self_or_coordinator, get_current_user, require_coordinator
from lms_backend.core.choices import AssignmentStatus, Role, SubmissionStatus
from lms_backend.core.errors import conflict, not_found
from lms_backend.database import get_db
from lms_backend.models.assignment import Assignment
from lms_backend.models.submission import StudentAssignment
from lms_backend.models.unit import Unit
from lms_backend.models.user import User
from lms_backend.schemas.academic import AssignmentDetail
from lms_backend.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Envelope,
    MessageResponse,
    ok,
    page_response,
    paginate,
)
from lms_backend.schemas.submission import SubmissionWithStudent

router = APIRouter(tags=['assignments'], dependencies=[Depends(get_current_user)])


class CreateAssignmentRequest(BaseModel):
    id: str | None = Field(default=None, min_length=1)
    name: str = Field(min_length=1)
    unit_code: str = Field(min_length=1)
    deadline: datetime
    published_at: datetime | None = None
    status: AssignmentStatus = AssignmentStatus.OPEN

    @model_validator(mode='after')
    def validate_dates(self) -> 'CreateAssignmentRequest':
        if self.published_at is None:
            return self
        # naive and aware datetimes cannot be ordered against each other
        if (self.published_at.tzinfo is None) != (self.deadline.tzinfo is None):
            raise ValueError('published_at and deadline must both include a timezone or both omit it.')
        if self.published_at > self.deadline:
            raise ValueError('Assignments cannot be published after their deadline.')
        return self


class UpdateAssignmentRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    deadline: datetime | None = None
    published_at: datetime | None = None
    status: AssignmentStatus | None = None


class AssignmentSubmissions(BaseModel):
    assignment: AssignmentDetail
    submissions: list[SubmissionWithStudent]
    total_submissions: int
    submitted_count: int
    graded_count: int


class AssignmentListWithSubmissions(BaseModel):
    assignments: list[AssignmentDetail]
    submissions: list[SubmissionWithStudent]


def get_assignment_or_404(assignment_id: str, db: Session) -> Assignment:
    assignment = (
        db.query(Assignment)
        .options(joinedload(Assignment.unit).joinedload(Unit.course))
        .filter(Assignment.id == assignment_id)
        .first()
    )
    if assignment is None:
        raise not_found('Assignment not found')
    return assignment


def load_submissions(db: Session, *criteria) -> list[StudentAssignment]:
    return (
        db.query(StudentAssignment)
        .options(joinedload(StudentAssignment.student))
        .filter(*criteria)
        .order_by(StudentAssignment.id.asc())
        .all()
    )


def enrolled_unit_codes(student_id: str, db: Session) -> list[str]:
    """Units the student has at least one submission record in."""
    rows = (
        db.query(Assignment.unit_code)
        .join(StudentAssignment, StudentAssignment.assignment_id == Assignment.id)
        .filter(StudentAssignment.student_id == student_id)
        .distinct()
        .all()
    )
    return [unit_code for (unit_code,) in rows]


@router.get('')
def list_assignments(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    unit_code: str | None = Query(default=None),
    student_id: str | None = Query(default=None),
    assignment_status: AssignmentStatus | None = Query(default=None, alias='status'),
    submission_status: SubmissionStatus | None = Query(default=None),
    include_submissions: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if student_id:
        ensure_self_or_coordinator(current_user, student_id)
    elif include_submissions and current_user.role == Role.STUDENT:
        student_id = current_user.id

    query = db.query(Assignment).options(joinedload(Assignment.unit).joinedload(Unit.course))
    if unit_code:
        query = query.filter(Assignment.unit_code == unit_code)
    if assignment_status:
        query = query.filter(Assignment.status == assignment_status)
    if student_id and include_submissions:
        unit_codes = enrolled_unit_codes(student_id, db)
        if unit_codes:
            query = query.filter(Assignment.unit_code.in_(unit_codes))

    assignments, total = paginate(query.order_by(Assignment.deadline.asc()), page, limit)
    assignment_models = [AssignmentDetail.model_validate(assignment) for assignment in assignments]

    if not include_submissions:
        return page_response(assignment_models, total, page, limit)

    criteria = [StudentAssignment.assignment_id.in_([assignment.id for assignment in assignments])]
    if student_id:
        criteria.append(StudentAssignment.student_id == student_id)
    if submission_status:
        criteria.append(StudentAssignment.submission_status == submission_status)

    return ok(
        AssignmentListWithSubmissions(
            assignments=assignment_models,
            submissions=[SubmissionWithStudent.model_validate(row) for row in load_submissions(db, *criteria)],
        )
    )


@router.get('/{assignment_id}')
def get_assignment(
    assignment_id: str,
    include_submissions: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    assignment = AssignmentDetail.model_validate(get_assignment_or_404(assignment_id, db))
    if not include_submissions:
        return ok(assignment)

    criteria = [StudentAssignment.assignment_id == assignment_id]
    if current_user.role == Role.STUDENT:
        criteria.append(StudentAssignment.student_id == current_user.id)
    submissions = load_submissions(db, *criteria)
    return ok(
        AssignmentSubmissions(
            assignment=assignment,
            submissions=[SubmissionWithStudent.model_validate(row) for row in submissions],
            total_submissions=len(submissions),
            submitted_count=sum(1 for row in submissions if row.submission_status == SubmissionStatus.SUBMITTED),
            graded_count=sum(1 for row in submissions if row.grade is not None),
        )
    )


@router.post(
    '',
    response_model=Envelope[AssignmentDetail],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_coordinator)],
)
def create_assignment(data: CreateAssignmentRequest, db: Session = Depends(get_db)):
    if data.id and db.query(Assignment.id).filter(Assignment.id == data.id).first() is not None:
        raise conflict('An assignment with this id already exists')
    if db.query(Unit.id).filter(Unit.code == data.unit_code).first() is None:
        raise not_found('Unit not found')

    assignment = Assignment(**data.model_dump(exclude_none=True))
    db.add(assignment)
    db.commit()
    return ok(AssignmentDetail.model_validate(get_assignment_or_404(assignment.id, db)))


@router.put(
    '/{assignment_id}',
    response_model=Envelope[AssignmentDetail],
    dependencies=[Depends(require_coordinator)],
)
def update_assignment(assignment_id: str, data: UpdateAssignmentRequest, db: Session = Depends(get_db)):
    assignment = get_assignment_or_404(assignment_id, db)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(assignment, field, value)
    db.commit()
    return ok(AssignmentDetail.model_validate(get_assignment_or_404(assignment_id, db)))


@router.delete(
    '/{assignment_id}',
    response_model=MessageResponse,
    dependencies=[Depends(require_coordinator)],
)
def delete_assignment(assignment_id: str, db: Session = Depends(get_db)):
    assignment = get_assignment_or_404(assignment_id, db)
    db.delete(assignment)
    db.commit()
    return MessageResponse(message='Assignment deleted successfully')
