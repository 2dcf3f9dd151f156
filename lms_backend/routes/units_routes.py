from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from lms_backend.auth.dependencies import get_current_user, require_coordinator
from lms_backend.core.choices import Role, SubmissionStatus
from lms_backend.core.errors import conflict, not_found
from lms_backend.database import get_db
from lms_backend.models.assignment import Assignment
from lms_backend.models.course import Course
from lms_backend.models.progress import StudentProgress
from lms_backend.models.submission import StudentAssignment
from lms_backend.models.unit import Unit
from lms_backend.models.user import User
from lms_backend.schemas.academic import AssignmentResponse, UnitDetail, UnitWithCourse
from lms_backend.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Envelope,
    MessageResponse,
    ORMModel,
    Page,
    ok,
    page_response,
    paginate,
)
from lms_backend.schemas.progress import ProgressWithStudent
from lms_backend.schemas.submission import GradedSubmission

router = APIRouter(tags=['units'], dependencies=[Depends(get_current_user)])

MIN_WEEK = 1
MAX_WEEK = 52


class CreateUnitRequest(BaseModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str | None = None
    course_code: str = Field(min_length=1)
    current_week: int = Field(default=1, ge=MIN_WEEK, le=MAX_WEEK)

    @field_validator('code', 'course_code')
    @classmethod
    def normalize_code(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Code cannot be blank.')
        return normalized


class UpdateUnitRequest(BaseModel):
    code: str | None = Field(default=None, min_length=1)
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    course_code: str | None = Field(default=None, min_length=1)
    current_week: int | None = Field(default=None, ge=MIN_WEEK, le=MAX_WEEK)

    @field_validator('code', 'course_code')
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Code cannot be blank.')
        return normalized


class SubmissionSummary(ORMModel):
    id: int
    submission_id: str
    student_id: str
    submission_status: SubmissionStatus
    grade: int | None = None


class AssignmentWithSubmissions(AssignmentResponse):
    submissions: list[SubmissionSummary] = []


class UnitWithSubmissions(UnitWithCourse):
    assignments: list[AssignmentWithSubmissions] = []


class CourseDistributionEntry(BaseModel):
    course_code: str
    count: int


class UnitStatsResponse(BaseModel):
    total_units: int
    units_with_assignments: int
    units_without_assignments: int
    course_distribution: list[CourseDistributionEntry]


class UnitProgressResponse(BaseModel):
    unit: UnitDetail
    progress: list[ProgressWithStudent]
    submissions: list[GradedSubmission]


def get_unit_or_404(code: str, db: Session) -> Unit:
    unit = (
        db.query(Unit)
        .options(
            joinedload(Unit.course),
            selectinload(Unit.assignments).selectinload(Assignment.submissions),
        )
        .filter(Unit.code == code)
        .first()
    )
    if unit is None:
        raise not_found('Unit not found')
    return unit


def ensure_course_exists(course_code: str, db: Session) -> None:
    if db.query(Course.id).filter(Course.code == course_code).first() is None:
        raise not_found('Course not found')


@router.get('', response_model=Page[UnitDetail])
def list_units(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    course_code: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = db.query(Unit).options(joinedload(Unit.course), selectinload(Unit.assignments))
    if course_code:
        query = query.filter(Unit.course_code == course_code)
    if search and search.strip():
        pattern = f'%{search.strip()}%'
        query = query.filter(
            or_(Unit.code.ilike(pattern), Unit.name.ilike(pattern), Unit.description.ilike(pattern))
        )

    units, total = paginate(query.order_by(Unit.code.asc()), page, limit)
    return page_response([UnitDetail.model_validate(unit) for unit in units], total, page, limit)


@router.get('/stats', response_model=Envelope[UnitStatsResponse], dependencies=[Depends(require_coordinator)])
def get_unit_stats(code: str | None = Query(default=None), db: Session = Depends(get_db)):
    criteria = [Unit.code == code] if code else []

    total_units = db.query(func.count(Unit.id)).filter(*criteria).scalar() or 0
    units_with_assignments = (
        db.query(func.count(func.distinct(Unit.id)))
        .join(Assignment, Assignment.unit_code == Unit.code)
        .filter(*criteria)
        .scalar()
        or 0
    )
    distribution = (
        db.query(Unit.course_code, func.count(Unit.id))
        .filter(*criteria)
        .group_by(Unit.course_code)
        .order_by(Unit.course_code.asc())
        .all()
    )

    return ok(
        UnitStatsResponse(
            total_units=total_units,
            units_with_assignments=units_with_assignments,
            units_without_assignments=total_units - units_with_assignments,
            course_distribution=[
                CourseDistributionEntry(course_code=course_code, count=count)
                for course_code, count in distribution
            ],
        )
    )


@router.get('/course/{course_code}', response_model=Envelope[list[UnitDetail]])
def get_units_by_course(course_code: str, db: Session = Depends(get_db)):
    units = (
        db.query(Unit)
        .options(joinedload(Unit.course), selectinload(Unit.assignments))
        .filter(Unit.course_code == course_code)
        .order_by(Unit.code.asc())
        .all()
    )
    return ok([UnitDetail.model_validate(unit) for unit in units])


@router.get('/{code}', response_model=Envelope[UnitWithSubmissions])
def get_unit(
    code: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    unit = UnitWithSubmissions.model_validate(get_unit_or_404(code, db))
    if current_user.role == Role.STUDENT:
        for assignment in unit.assignments:
            assignment.submissions = [
                submission for submission in assignment.submissions if submission.student_id == current_user.id
            ]
    return ok(unit)


@router.get(
    '/{code}/progress',
    response_model=Envelope[UnitProgressResponse],
    dependencies=[Depends(require_coordinator)],
)
def get_unit_with_progress(code: str, db: Session = Depends(get_db)):
    unit = get_unit_or_404(code, db)
    progress = (
        db.query(StudentProgress)
        .options(joinedload(StudentProgress.student))
        .filter(StudentProgress.unit_code == code)
        .all()
    )
    submissions = (
        db.query(StudentAssignment)
        .options(joinedload(StudentAssignment.student), joinedload(StudentAssignment.assignment))
        .join(Assignment, StudentAssignment.assignment_id == Assignment.id)
        .filter(Assignment.unit_code == code)
        .all()
    )
    return ok(
        UnitProgressResponse(
            unit=UnitDetail.model_validate(unit),
            progress=[ProgressWithStudent.model_validate(row) for row in progress],
            submissions=[GradedSubmission.model_validate(row) for row in submissions],
        )
    )


@router.post(
    '',
    response_model=Envelope[UnitDetail],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_coordinator)],
)
def create_unit(data: CreateUnitRequest, db: Session = Depends(get_db)):
    if db.query(Unit.id).filter(Unit.code == data.code).first() is not None:
        raise conflict('A unit with this code already exists')
    ensure_course_exists(data.course_code, db)

    unit = Unit(**data.model_dump())
    db.add(unit)
    db.commit()
    return ok(UnitDetail.model_validate(get_unit_or_404(data.code, db)))


@router.put('/{code}', response_model=Envelope[UnitDetail], dependencies=[Depends(require_coordinator)])
def update_unit(code: str, data: UpdateUnitRequest, db: Session = Depends(get_db)):
    unit = get_unit_or_404(code, db)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    new_code = changes.get('code')
    if new_code and new_code != code:
        if db.query(Unit.id).filter(Unit.code == new_code).first() is not None:
            raise conflict('A unit with this code already exists')
    if 'course_code' in changes:
        ensure_course_exists(changes['course_code'], db)

    for field, value in changes.items():
        setattr(unit, field, value)
    db.commit()
    db.expire_all()
    return ok(UnitDetail.model_validate(get_unit_or_404(changes.get('code', code), db)))


@router.delete('/{code}', response_model=MessageResponse, dependencies=[Depends(require_coordinator)])
def delete_unit(code: str, db: Session = Depends(get_db)):
    unit = get_unit_or_404(code, db)
    db.delete(unit)
    db.commit()
    return MessageResponse(message='Unit deleted successfully')
