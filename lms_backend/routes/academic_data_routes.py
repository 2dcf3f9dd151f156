from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import ensure_self_or_coordinator, get_current_user, require_coordinator
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.schemas.academic import (
    AssignmentResponse,
    CourseDetail,
    CourseResponse,
    UnitResponse,
    UnitWithAssignments,
    UnitWithCourse,
)
from lms_backend.schemas.common import Envelope, ok
from lms_backend.schemas.progress import ProgressWithStudent, ProgressWithUnit
from lms_backend.schemas.submission import GradedSubmission, SubmissionWithAssignment
from lms_backend.schemas.teacher import TeacherResponse
from lms_backend.schemas.user import CoordinatorResponse, StudentResponse
from lms_backend.services.academic_data_service import AcademicDataService

router = APIRouter(tags=['academic-data'], dependencies=[Depends(get_current_user)])


class CourseWithUnitCodes(CourseResponse):
    unit_codes: list[str] = []


class AcademicData(BaseModel):
    courses: list[CourseWithUnitCodes]
    units: list[UnitResponse]
    assignments: list[AssignmentResponse]
    teachers: list[TeacherResponse]
    coordinators: list[CoordinatorResponse]


class AcademicSummary(BaseModel):
    course_count: int
    unit_count: int
    assignment_count: int
    student_count: int
    teacher_count: int


class CourseAcademicData(BaseModel):
    course: CourseDetail
    students: list[StudentResponse]
    coordinators: list[CoordinatorResponse]
    units: list[UnitResponse]
    assignments: list[AssignmentResponse]


class UnitAcademicData(BaseModel):
    unit: UnitWithCourse
    students: list[StudentResponse]
    assignments: list[AssignmentResponse]
    progress: list[ProgressWithStudent]
    submissions: list[GradedSubmission]


class StudentAcademicData(BaseModel):
    student: StudentResponse
    course: CourseResponse | None = None
    units: list[UnitWithAssignments]
    progress: list[ProgressWithUnit]
    submissions: list[SubmissionWithAssignment]


@router.get('', response_model=Envelope[AcademicData])
def get_academic_data(db: Session = Depends(get_db)):
    return ok(AcademicData.model_validate(AcademicDataService(db).get_academic_data(), from_attributes=True))


@router.get('/summary', response_model=Envelope[AcademicSummary])
def get_academic_summary(db: Session = Depends(get_db)):
    return ok(AcademicSummary(**AcademicDataService(db).get_academic_summary()))


@router.get('/course/{course_code}', response_model=Envelope[CourseAcademicData])
def get_course_academic_data(course_code: str, db: Session = Depends(get_db)):
    data = AcademicDataService(db).get_course_academic_data(course_code)
    return ok(CourseAcademicData.model_validate(data, from_attributes=True))


@router.get(
    '/unit/{unit_code}',
    response_model=Envelope[UnitAcademicData],
    dependencies=[Depends(require_coordinator)],
)
def get_unit_academic_data(unit_code: str, db: Session = Depends(get_db)):
    data = AcademicDataService(db).get_unit_academic_data(unit_code)
    return ok(UnitAcademicData.model_validate(data, from_attributes=True))


@router.get('/student/{student_id}', response_model=Envelope[StudentAcademicData])
def get_student_academic_data(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    data = AcademicDataService(db).get_student_academic_data(student_id)
    return ok(StudentAcademicData.model_validate(data, from_attributes=True))
