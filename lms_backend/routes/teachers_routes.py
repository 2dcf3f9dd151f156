import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from lms_backend.auth.dependencies import get_current_user, require_coordinator
from lms_backend.core.errors import conflict, not_found
from lms_backend.database import get_db
from lms_backend.models.teacher import Teacher, UnitTeacher
from lms_backend.models.unit import Unit
from lms_backend.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    Envelope,
    MessageResponse,
    Page,
    ok,
    page_response,
    paginate,
)
from lms_backend.schemas.teacher import TeacherResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=['teachers'], dependencies=[Depends(get_current_user)])

ACTIVE_WINDOW_DAYS = 30


def _normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if '@' not in normalized:
        raise ValueError('Email must be a valid address.')
    return normalized


class CreateTeacherRequest(BaseModel):
    id: str | None = Field(default=None, min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str | None = None
    email: str | None = None
    title: str | None = None
    units_taught: list[str] = []

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)


class UpdateTeacherRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = None
    email: str | None = None
    title: str | None = None
    units_taught: list[str] | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)


class TeacherStatsResponse(BaseModel):
    total_teachers: int
    active_teachers: int
    inactive_teachers: int


def get_teacher_or_404(teacher_id: str, db: Session) -> Teacher:
    teacher = (
        db.query(Teacher)
        .options(selectinload(Teacher.unit_links))
        .filter(Teacher.id == teacher_id)
        .first()
    )
    if teacher is None:
        raise not_found('Teacher not found')
    return teacher


def ensure_units_exist(unit_codes: list[str], db: Session) -> None:
    wanted = set(unit_codes)
    if not wanted:
        return
    found = {code for (code,) in db.query(Unit.code).filter(Unit.code.in_(wanted))}
    missing = sorted(wanted - found)
    if missing:
        raise not_found(f'Unit not found: {", ".join(missing)}')


def ensure_email_available(email: str | None, db: Session, teacher_id: str | None = None) -> None:
    if not email:
        return
    query = db.query(Teacher.id).filter(Teacher.email == email)
    if teacher_id is not None:
        query = query.filter(Teacher.id != teacher_id)
    if query.first() is not None:
        raise conflict('A teacher with this email already exists')


def build_unit_links(unit_codes: list[str]) -> list[UnitTeacher]:
    # duplicates collapse so the (teacher, unit) pair stays unique
    return [UnitTeacher(unit_code=code) for code in dict.fromkeys(unit_codes)]


@router.get('', response_model=Page[TeacherResponse])
def list_teachers(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None),
    unit_code: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = db.query(Teacher).options(selectinload(Teacher.unit_links))
    if unit_code:
        query = query.filter(
            Teacher.id.in_(db.query(UnitTeacher.teacher_id).filter(UnitTeacher.unit_code == unit_code))
        )
    if search and search.strip():
        pattern = f'%{search.strip()}%'
        query = query.filter(
            or_(Teacher.first_name.ilike(pattern), Teacher.last_name.ilike(pattern), Teacher.email.ilike(pattern))
        )

    teachers, total = paginate(query.order_by(Teacher.first_name.asc(), Teacher.id.asc()), page, limit)
    return page_response([TeacherResponse.model_validate(teacher) for teacher in teachers], total, page, limit)


@router.get('/stats', response_model=Envelope[TeacherStatsResponse], dependencies=[Depends(require_coordinator)])
def get_teacher_stats(db: Session = Depends(get_db)):
    since = datetime.now(timezone.utc) - timedelta(days=ACTIVE_WINDOW_DAYS)
    total = db.query(func.count(Teacher.id)).scalar() or 0
    active = db.query(func.count(Teacher.id)).filter(Teacher.updated_at >= since).scalar() or 0
    return ok(TeacherStatsResponse(total_teachers=total, active_teachers=active, inactive_teachers=total - active))


@router.get('/{teacher_id}', response_model=Envelope[TeacherResponse])
def get_teacher(teacher_id: str, db: Session = Depends(get_db)):
    return ok(TeacherResponse.model_validate(get_teacher_or_404(teacher_id, db)))


@router.post(
    '',
    response_model=Envelope[TeacherResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_coordinator)],
)
def create_teacher(data: CreateTeacherRequest, db: Session = Depends(get_db)):
    if data.id and db.query(Teacher.id).filter(Teacher.id == data.id).first() is not None:
        raise conflict('A teacher with this id already exists')
    ensure_email_available(data.email, db)
    ensure_units_exist(data.units_taught, db)

    teacher = Teacher(
        first_name=data.first_name.strip(),
        last_name=data.last_name,
        email=data.email,
        unit_links=build_unit_links(data.units_taught),
    )
    if data.id:
        teacher.id = data.id
    if data.title:
        teacher.title = data.title

    # the teacher row and its unit links land in the same commit
    db.add(teacher)
    db.commit()
    logger.info('Created teacher %s teaching %s', teacher.id, teacher.units_taught)
    return ok(TeacherResponse.model_validate(get_teacher_or_404(teacher.id, db)))


@router.put('/{teacher_id}', response_model=Envelope[TeacherResponse], dependencies=[Depends(require_coordinator)])
def update_teacher(teacher_id: str, data: UpdateTeacherRequest, db: Session = Depends(get_db)):
    teacher = get_teacher_or_404(teacher_id, db)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    unit_codes = changes.pop('units_taught', None)

    ensure_email_available(changes.get('email'), db, teacher_id=teacher_id)
    if unit_codes is not None:
        ensure_units_exist(unit_codes, db)
        teacher.unit_links = []
        # old links are deleted before the replacements are inserted
        db.flush()
        teacher.unit_links = build_unit_links(unit_codes)

    for field, value in changes.items():
        setattr(teacher, field, value)
    teacher.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.expire_all()
    return ok(TeacherResponse.model_validate(get_teacher_or_404(teacher_id, db)))


@router.delete('/{teacher_id}', response_model=MessageResponse, dependencies=[Depends(require_coordinator)])
def delete_teacher(teacher_id: str, db: Session = Depends(get_db)):
    teacher = get_teacher_or_404(teacher_id, db)
    db.delete(teacher)
    db.commit()
    return MessageResponse(message='Teacher deleted successfully')
