from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session, selectinload

from lms_backend.auth.dependencies import get_current_user, require_coordinator
from lms_backend.core.errors import conflict, not_found
from lms_backend.database import get_db
from lms_backend.models.course import Course
from lms_backend.models.unit import Unit
from lms_backend.schemas.academic import CourseDetail, CourseResponse
from lms_backend.schemas.common import Envelope, MessageResponse, ok

router = APIRouter(tags=['courses'], dependencies=[Depends(get_current_user)])


class CreateCourseRequest(BaseModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)

    @field_validator('code')
    @classmethod
    def normalize_code(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Code cannot be blank.')
        return normalized


class UpdateCourseRequest(BaseModel):
    name: str = Field(min_length=1)


def get_course_or_404(code: str, db: Session) -> Course:
    course = (
        db.query(Course)
        .options(selectinload(Course.units).selectinload(Unit.assignments))
        .filter(Course.code == code)
        .first()
    )
    if course is None:
        raise not_found('Course not found')
    return course


@router.get('', response_model=Envelope[list[CourseDetail]])
def list_courses(db: Session = Depends(get_db)):
    courses = (
        db.query(Course)
        .options(selectinload(Course.units).selectinload(Unit.assignments))
        .order_by(Course.code.asc())
        .all()
    )
    return ok([CourseDetail.model_validate(course) for course in courses])


@router.get('/{code}', response_model=Envelope[CourseDetail])
def get_course(code: str, db: Session = Depends(get_db)):
    return ok(CourseDetail.model_validate(get_course_or_404(code, db)))


@router.post(
    '',
    response_model=Envelope[CourseResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_coordinator)],
)
def create_course(data: CreateCourseRequest, db: Session = Depends(get_db)):
    if db.query(Course.id).filter(Course.code == data.code).first() is not None:
        raise conflict('A course with this code already exists')

    course = Course(code=data.code, name=data.name.strip())
    db.add(course)
    db.commit()
    db.refresh(course)
    return ok(CourseResponse.model_validate(course))


@router.put('/{code}', response_model=Envelope[CourseResponse], dependencies=[Depends(require_coordinator)])
def update_course(code: str, data: UpdateCourseRequest, db: Session = Depends(get_db)):
    course = get_course_or_404(code, db)
    course.name = data.name.strip()
    db.commit()
    db.refresh(course)
    return ok(CourseResponse.model_validate(course))


@router.delete('/{code}', response_model=MessageResponse, dependencies=[Depends(require_coordinator)])
def delete_course(code: str, db: Session = Depends(get_db)):
    course = get_course_or_404(code, db)
    db.delete(course)
    db.commit()
    return MessageResponse(message='Course deleted successfully')
