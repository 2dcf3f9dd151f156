import logging
from collections import defaultdict

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import ensure_self_or_coordinator, get_current_user, require_coordinator
from lms_backend.auth.passwords import hash_password
from lms_backend.core.choices import Role
from lms_backend.core.errors import conflict, not_found
from lms_backend.database import get_db
from lms_backend.models.course import Course
from lms_backend.models.progress import StudentProgress
from lms_backend.models.submission import StudentAssignment
from lms_backend.models.unit import Unit
from lms_backend.models.user import User
from lms_backend.schemas.academic import UnitResponse
from lms_backend.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Envelope,
    MessageResponse,
    ok,
    page_response,
    paginate,
)
from lms_backend.schemas.progress import ProgressResponse, ProgressWithUnit
from lms_backend.schemas.submission import SubmissionResponse, SubmissionWithAssignment
from lms_backend.schemas.user import StudentResponse
from lms_backend.services import metrics
from lms_backend.services.progress_service import ProgressService
from lms_backend.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=['students'])

# bcrypt only hashes the first 72 bytes
MAX_PASSWORD_LENGTH = 72


class CreateStudentRequest(BaseModel):
    id: str | None = Field(default=None, min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str | None = None
    email: str = Field(min_length=3)
    password: str = Field(min_length=8, max_length=MAX_PASSWORD_LENGTH)
    course_code: str | None = None
    year: int | None = Field(default=None, ge=1)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('Email must be a valid address.')
        return normalized


class StudentListData(BaseModel):
    students: list[StudentResponse]
    submissions: list[SubmissionResponse]
    progress: list[ProgressResponse]


class StudentWithGrades(StudentResponse):
    average_grade: int
    submission_rate: int
    average_progress: int


class StudentStatsResponse(BaseModel):
    total_students: int
    avg_progress: int
    avg_submission_rate: int
    avg_grade: int


class StudentDetail(BaseModel):
    student: StudentResponse
    submissions: list[SubmissionWithAssignment]
    progress: list[ProgressWithUnit]


class StudentUnit(UnitResponse):
    progress_percentage: int


def get_student_or_404(student_id: str, db: Session) -> User:
    student = db.query(User).filter(User.id == student_id, User.role == Role.STUDENT).first()
    if student is None:
        raise not_found('Student not found')
    return student


def students_query(db: Session, course_code: str | None = None, search: str | None = None):
    query = db.query(User).filter(User.role == Role.STUDENT)
    if course_code:
        query = query.filter(User.course_code == course_code)
    if search and search.strip():
        pattern = f'%{search.strip()}%'
        query = query.filter(
            or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern), User.email.ilike(pattern))
        )
    return query.order_by(User.first_name.asc(), User.id.asc())


def group_by_student(rows) -> dict[str, list]:
    grouped = defaultdict(list)
    for row in rows:
        grouped[row.student_id].append(row)
    return grouped


@router.get('', dependencies=[Depends(require_coordinator)])
def list_students(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    course_code: str | None = Query(default=None),
    search: str | None = Query(default=None),
    include_data: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    students, total = paginate(students_query(db, course_code, search), page, limit)
    student_models = [StudentResponse.model_validate(student) for student in students]
    if not include_data:
        return page_response(student_models, total, page, limit)

    student_ids = [student.id for student in students]
    submissions = db.query(StudentAssignment).filter(StudentAssignment.student_id.in_(student_ids)).all()
    progress = db.query(StudentProgress).filter(StudentProgress.student_id.in_(student_ids)).all()
    data = StudentListData(
        students=student_models,
        submissions=[SubmissionResponse.model_validate(row) for row in submissions],
        progress=[ProgressResponse.model_validate(row) for row in progress],
    )
    return page_response(data, total, page, limit)


@router.get('/with-grades', dependencies=[Depends(require_coordinator)])
def list_students_with_grades(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    course_code: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    students, total = paginate(students_query(db, course_code, search), page, limit)
    student_ids = [student.id for student in students]

    submissions = group_by_student(
        db.query(StudentAssignment).filter(StudentAssignment.student_id.in_(student_ids))
    )
    progress = group_by_student(
        db.query(StudentProgress).filter(StudentProgress.student_id.in_(student_ids))
    )

    rows = [
        StudentWithGrades(
            **StudentResponse.model_validate(student).model_dump(),
            average_grade=metrics.average_grade(row.grade for row in submissions[student.id]),
            submission_rate=metrics.submission_rate(row.submission_status for row in submissions[student.id]),
            average_progress=metrics.average_progress(progress[student.id]),
        )
        for student in students
    ]
    return page_response(rows, total, page, limit)


@router.get('/stats', response_model=Envelope[StudentStatsResponse], dependencies=[Depends(require_coordinator)])
def get_student_stats(course_code: str | None = Query(default=None), db: Session = Depends(get_db)):
    student_ids = [student.id for student in students_query(db, course_code)]

    submissions = group_by_student(
        db.query(StudentAssignment).filter(StudentAssignment.student_id.in_(student_ids))
    )
    progress = group_by_student(
        db.query(StudentProgress).filter(StudentProgress.student_id.in_(student_ids))
    )

    def mean(values: list[int]) -> int:
        return metrics.round_half_up(sum(values) / len(values)) if values else 0

    # each student weighs the same regardless of how many rows they have
    return ok(
        StudentStatsResponse(
            total_students=len(student_ids),
            avg_progress=mean([metrics.average_progress(progress[student_id]) for student_id in student_ids]),
            avg_submission_rate=mean(
                [
                    metrics.submission_rate(row.submission_status for row in submissions[student_id])
                    for student_id in student_ids
                ]
            ),
            avg_grade=metrics.average_grade(
                row.grade for student_id in student_ids for row in submissions[student_id]
            ),
        )
    )


@router.get('/{student_id}', response_model=Envelope[StudentDetail])
def get_student(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    student = get_student_or_404(student_id, db)

    submissions = SubmissionService(db).get_student_submissions(student_id)
    progress = ProgressService(db).get_student_progress(student_id)
    return ok(
        StudentDetail(
            student=StudentResponse.model_validate(student),
            submissions=[SubmissionWithAssignment.model_validate(row) for row in submissions],
            progress=[ProgressWithUnit.model_validate(row) for row in progress],
        )
    )


@router.get('/{student_id}/units', response_model=Envelope[list[StudentUnit]])
def get_student_units(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    student = get_student_or_404(student_id, db)
    if not student.course_code:
        return ok([])

    units = db.query(Unit).filter(Unit.course_code == student.course_code).order_by(Unit.code.asc()).all()
    progress = {row.unit_code: row for row in ProgressService(db).get_student_progress(student_id)}
    return ok(
        [
            StudentUnit(
                **UnitResponse.model_validate(unit).model_dump(),
                progress_percentage=(
                    metrics.progress_percentage(progress[unit.code]) if unit.code in progress else 0
                ),
            )
            for unit in units
        ]
    )


@router.post(
    '',
    response_model=Envelope[StudentResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_coordinator)],
)
def create_student(data: CreateStudentRequest, db: Session = Depends(get_db)):
    if db.query(User.id).filter(User.email == data.email).first() is not None:
        raise conflict('A user with this email already exists')
    if data.id and db.query(User.id).filter(User.id == data.id).first() is not None:
        raise conflict('A user with this id already exists')
    if data.course_code and db.query(Course.id).filter(Course.code == data.course_code).first() is None:
        raise not_found('Course not found')

    student = User(
        first_name=data.first_name.strip(),
        last_name=data.last_name,
        email=data.email,
        hashed_password=hash_password(data.password),
        role=Role.STUDENT,
        course_code=data.course_code,
        year=data.year,
    )
    if data.id:
        student.id = data.id

    db.add(student)
    db.commit()
    db.refresh(student)
    logger.info('Created student %s', student.id)
    return ok(StudentResponse.model_validate(student))


@router.delete('/{student_id}', response_model=MessageResponse, dependencies=[Depends(require_coordinator)])
def delete_student(student_id: str, db: Session = Depends(get_db)):
    student = get_student_or_404(student_id, db)
    db.delete(student)
    db.commit()
    logger.info('Deleted student %s', student_id)
    return MessageResponse(message='Student deleted successfully')
